"""Translate service errors into HTTP exceptions."""

from __future__ import annotations

import logging
from typing import Final, NoReturn

from fastapi import HTTPException

from account_service.application.results import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: Final[dict[ErrorKind, int]] = {
    ErrorKind.NOT_AUTHORIZED: 401,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INTEGRATION_FAILURE: 503,
    ErrorKind.SERVER_CONFIGURATION: 500,
}

RETRY_AFTER_SECONDS = "30"


def raise_for_error(error: ServiceError) -> NoReturn:
    """Raise the HTTP exception matching one service error."""

    status_code = STATUS_BY_KIND[error.kind]
    if error.kind is ErrorKind.SERVER_CONFIGURATION:
        logger.error("server_configuration_error code=%s", error.code.value)
    headers = {"Retry-After": RETRY_AFTER_SECONDS} if error.retryable else None
    raise HTTPException(
        status_code=status_code,
        detail={"code": error.code.value, "message": error.message},
        headers=headers,
    )
