"""SAP customer lookup adapter implementing the account directory port."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from account_service.application.ports.account_directory_port import (
    AccountDescriptor,
    AccountDirectoryPort,
    AccountDirectoryUnavailableError,
)

logger = logging.getLogger(__name__)

_SUCCESS_STATUSES = frozenset({"success", "successfull", "successful"})
_AUTH_FAILURE_STATUSES = frozenset({401, 403})


@dataclass(frozen=True)
class SapHttpResponse:
    """Normalized HTTP response data returned by transport implementations."""

    status_code: int
    body_bytes: bytes


class SapHttpTransportPort(Protocol):
    """Transport protocol used by the SAP adapter."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        timeout_seconds: float,
    ) -> SapHttpResponse:
        """Execute one HTTP request and return normalized response data."""


class UrllibSapHttpTransport:
    """urllib-based async transport implementation for SAP calls."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        timeout_seconds: float,
    ) -> SapHttpResponse:
        """Execute HTTP request in a worker thread and normalize HTTP errors."""

        return await asyncio.to_thread(
            self._request_sync,
            method=method,
            url=url,
            headers=headers,
            timeout_seconds=timeout_seconds,
        )

    def _request_sync(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        timeout_seconds: float,
    ) -> SapHttpResponse:
        request = Request(url=url, headers=headers, method=method)
        try:
            with urlopen(request, timeout=timeout_seconds) as response:
                return SapHttpResponse(
                    status_code=int(response.getcode()),
                    body_bytes=response.read(),
                )
        except HTTPError as error:
            return SapHttpResponse(status_code=int(error.code), body_bytes=error.read())
        except (URLError, TimeoutError) as error:
            raise AccountDirectoryUnavailableError(
                f"transport connection failure: {error}"
            ) from error


class SapAccountDirectory(AccountDirectoryPort):
    """Find distributor accounts through the SAP customer endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        find_customer_endpoint: str,
        username: str | None = None,
        password: str | None = None,
        transport: SapHttpTransportPort | None = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._find_customer_endpoint = find_customer_endpoint.lstrip("/")
        self._username = username
        self._password = password
        self._transport = transport or UrllibSapHttpTransport()
        self._timeout_seconds = timeout_seconds

    def customer_url(self, *, company_code: str, country_code: str, account_number: str) -> str:
        endpoint = (
            self._find_customer_endpoint.replace("{companyCode}", quote(company_code, safe=""))
            .replace("{countryCode}", quote(country_code, safe=""))
            .replace("{distributorNumber}", quote(account_number, safe=""))
        )
        return f"{self._base_url}/{endpoint}"

    async def find_account(
        self,
        *,
        company_code: str,
        country_code: str,
        account_number: str,
    ) -> AccountDescriptor | None:
        """Return the account, None when SAP reports it unknown, or raise when unreachable."""

        url = self.customer_url(
            company_code=company_code,
            country_code=country_code,
            account_number=account_number,
        )
        try:
            response = await self._transport.request(
                method="GET",
                url=url,
                headers=self._headers(),
                timeout_seconds=self._timeout_seconds,
            )
        except AccountDirectoryUnavailableError:
            raise
        except Exception as error:  # noqa: BLE001
            raise AccountDirectoryUnavailableError("find_customer transport failure") from error

        if response.status_code == 404:
            return None
        if response.status_code in _AUTH_FAILURE_STATUSES:
            logger.error("sap_credentials_rejected status=%s", response.status_code)
            raise AccountDirectoryUnavailableError(
                f"find_customer credentials rejected with status {response.status_code}"
            )
        if response.status_code >= 500:
            raise AccountDirectoryUnavailableError(
                f"find_customer failed with status {response.status_code}"
            )
        if response.status_code < 200 or response.status_code >= 300:
            logger.error(
                "sap_find_customer_rejected status=%s body=%s",
                response.status_code,
                _decode_error_payload(response.body_bytes),
            )
            return None

        envelope = _decode_json(response.body_bytes)
        status = str(envelope.get("status", "")).strip().lower()
        if status not in _SUCCESS_STATUSES:
            logger.error(
                "sap_find_customer_unsuccessful status=%s message=%s",
                status or "missing",
                envelope.get("message"),
            )
            return None
        return parse_customer_payload(envelope.get("data"))

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._username:
            raw = f"{self._username}:{self._password or ''}".encode()
            headers["Authorization"] = f"Basic {base64.b64encode(raw).decode('ascii')}"
        return headers


def parse_customer_payload(data: object) -> AccountDescriptor | None:
    """Map SAP `data.sapAccount` onto an account descriptor."""

    if not isinstance(data, dict):
        return None
    account = data.get("sapAccount", data)
    if not isinstance(account, dict):
        return None
    account_number = account.get("id")
    if not account_number:
        return None

    status = account.get("status")
    status_name = ""
    status_code = None
    if isinstance(status, dict):
        status_name = str(status.get("name") or "")
        status_code = _optional_str(status.get("code"))

    return AccountDescriptor(
        account_number=str(account_number),
        distributor_name=str(account.get("distributorName") or ""),
        email=_optional_str(account.get("emailAddress")),
        phone=_optional_str(account.get("phoneNumber")),
        account_type=_optional_str(account.get("accountType")),
        status_name=status_name,
        status_code=status_code,
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _decode_json(payload: bytes) -> dict[str, Any]:
    try:
        decoded = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise AccountDirectoryUnavailableError("find_customer returned invalid JSON") from error
    if not isinstance(decoded, dict):
        raise AccountDirectoryUnavailableError("find_customer returned non-object JSON")
    return decoded


def _decode_error_payload(payload: bytes) -> str:
    if not payload:
        return "empty response body"
    try:
        decoded = payload.decode("utf-8")
    except UnicodeDecodeError:
        return "<binary>"
    return decoded[:200]
