from __future__ import annotations

import pytest
from fastapi import HTTPException

from account_service.application.results import ErrorCode, ErrorKind, ServiceError
from account_service.infrastructure.http.errors import raise_for_error


@pytest.mark.parametrize(
    ("kind", "status_code"),
    [
        (ErrorKind.NOT_AUTHORIZED, 401),
        (ErrorKind.CONFLICT, 409),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.VALIDATION, 422),
        (ErrorKind.INTEGRATION_FAILURE, 503),
        (ErrorKind.SERVER_CONFIGURATION, 500),
    ],
)
def test_error_kinds_map_to_status_codes(kind: ErrorKind, status_code: int) -> None:
    error = ServiceError(kind=kind, code=ErrorCode.INVALID_CREDENTIALS, message="m")

    with pytest.raises(HTTPException) as raised:
        raise_for_error(error)

    assert raised.value.status_code == status_code
    assert raised.value.detail == {"code": "invalid_credentials", "message": "m"}


def test_integration_failures_carry_retry_after() -> None:
    error = ServiceError(
        kind=ErrorKind.INTEGRATION_FAILURE,
        code=ErrorCode.SAP_UNAVAILABLE,
        message="down",
    )

    with pytest.raises(HTTPException) as raised:
        raise_for_error(error)

    assert raised.value.headers == {"Retry-After": "30"}
