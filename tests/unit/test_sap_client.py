from __future__ import annotations

import json
from dataclasses import dataclass

import pytest

from account_service.application.ports.account_directory_port import (
    AccountDirectoryUnavailableError,
)
from account_service.infrastructure.sap.sap_client import (
    SapAccountDirectory,
    SapHttpResponse,
    parse_customer_payload,
)


@dataclass
class _QueuedTransport:
    responses: list[SapHttpResponse]
    error: Exception | None = None

    def __post_init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        timeout_seconds: float,
    ) -> SapHttpResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "timeout_seconds": timeout_seconds,
            }
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def _payload(*, status: str = "Successfull") -> bytes:
    return json.dumps(
        {
            "status": status,
            "message": "ok",
            "data": {
                "sapAccount": {
                    "id": "100200",
                    "distributorName": "Acme Traders",
                    "emailAddress": "orders@acme.example",
                    "phoneNumber": "0722000111",
                    "accountType": "Cash Customer",
                    "status": {"name": "Active", "code": "active"},
                }
            },
        }
    ).encode("utf-8")


def _directory(transport: _QueuedTransport, **kwargs: object) -> SapAccountDirectory:
    return SapAccountDirectory(
        base_url="https://sap.example.org/api/",
        find_customer_endpoint="/customers/{companyCode}/{countryCode}/{distributorNumber}",
        transport=transport,
        timeout_seconds=3.0,
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_find_account_builds_url_and_parses_descriptor() -> None:
    transport = _QueuedTransport(responses=[SapHttpResponse(200, _payload())])

    descriptor = await _directory(transport, username="svc", password="pw").find_account(
        company_code="KE01",
        country_code="KE",
        account_number="100 200",
    )

    assert descriptor is not None
    assert descriptor.account_number == "100200"
    assert descriptor.account_type == "Cash Customer"
    assert descriptor.status_code == "active"
    assert descriptor.is_active
    assert descriptor.is_complete
    call = transport.calls[0]
    assert call["url"] == "https://sap.example.org/api/customers/KE01/KE/100%20200"
    assert call["method"] == "GET"
    assert call["timeout_seconds"] == 3.0
    headers = call["headers"]
    assert isinstance(headers, dict)
    assert headers["Authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_not_found_and_unsuccessful_envelope_return_none() -> None:
    transport = _QueuedTransport(
        responses=[
            SapHttpResponse(404, b""),
            SapHttpResponse(200, _payload(status="Failed")),
            SapHttpResponse(400, b'{"message":"bad request"}'),
        ]
    )
    directory = _directory(transport)

    for _ in range(3):
        assert (
            await directory.find_account(
                company_code="KE01",
                country_code="KE",
                account_number="100200",
            )
            is None
        )
    assert "Authorization" not in transport.calls[0]["headers"]  # type: ignore[operator]


@pytest.mark.asyncio
async def test_server_errors_and_transport_failures_raise_unavailable() -> None:
    server_error = _directory(_QueuedTransport(responses=[SapHttpResponse(503, b"")]))
    broken = _directory(_QueuedTransport(responses=[], error=OSError("reset")))
    garbled = _directory(_QueuedTransport(responses=[SapHttpResponse(200, b"<html>")]))

    for directory in (server_error, broken, garbled):
        with pytest.raises(AccountDirectoryUnavailableError):
            await directory.find_account(
                company_code="KE01",
                country_code="KE",
                account_number="100200",
            )


def test_parse_customer_payload_rejects_missing_account_id() -> None:
    assert parse_customer_payload({"sapAccount": {"distributorName": "x"}}) is None
    assert parse_customer_payload(None) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 403])
async def test_rejected_credentials_raise_unavailable_instead_of_not_found(
    status_code: int,
) -> None:
    directory = _directory(
        _QueuedTransport(responses=[SapHttpResponse(status_code, b'{"message":"denied"}')]),
        username="svc",
        password="wrong",
    )

    with pytest.raises(AccountDirectoryUnavailableError):
        await directory.find_account(
            company_code="KE01",
            country_code="KE",
            account_number="100200",
        )
