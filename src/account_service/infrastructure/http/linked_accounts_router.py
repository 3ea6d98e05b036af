"""FastAPI router for managing already linked distributor accounts."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Header, Query

from account_service.application.dto.http_models import (
    DeletionRequestModel,
    DeletionRequestResponse,
    DeletionRequestViewResponse,
    LinkedAccountListResponse,
    LinkedAccountResponse,
    OkResponse,
    RenameLinkedAccountRequestModel,
)
from account_service.application.ports.linked_account_repository_port import (
    LinkedAccountSearch,
    LinkedAccountSort,
)
from account_service.application.services.linked_account_management_service import (
    LinkedAccountManagementService,
)
from account_service.infrastructure.http.auth_guard import SessionAuthGuard, require_identity
from account_service.infrastructure.http.errors import raise_for_error
from account_service.infrastructure.http.responses import (
    to_deletion_request_response,
    to_deletion_request_view_response,
    to_linked_account_list_response,
    to_linked_account_response,
)


def build_linked_accounts_router(
    *,
    management_service: LinkedAccountManagementService,
    auth_guard: SessionAuthGuard,
) -> APIRouter:
    """Build router exposing listing, rename, unlink and deletion request endpoints."""

    router = APIRouter(tags=["accounts"])

    @router.get("/accounts", response_model=LinkedAccountListResponse)
    async def list_accounts(
        authorization: Annotated[str | None, Header()] = None,
        company_code: Annotated[str | None, Query()] = None,
        country_code: Annotated[str | None, Query()] = None,
        keyword: Annotated[str | None, Query()] = None,
        sort: Annotated[LinkedAccountSort, Query()] = LinkedAccountSort.DATE_DESCENDING,
        page_index: Annotated[int, Query(ge=1)] = 1,
        page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    ) -> LinkedAccountListResponse:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        listing = await management_service.list_accounts(
            LinkedAccountSearch(
                user_id=identity.user_id,
                company_code=company_code,
                country_code=country_code,
                keyword=keyword,
                sort=sort,
                page_index=page_index,
                page_size=page_size,
            )
        )
        return to_linked_account_list_response(listing)

    @router.get("/accounts/users/{user_id}", response_model=list[LinkedAccountResponse])
    async def list_user_accounts(
        user_id: UUID,
        authorization: Annotated[str | None, Header()] = None,
    ) -> list[LinkedAccountResponse]:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await management_service.list_user_accounts(identity, user_id=user_id)
        if result.error is not None:
            raise_for_error(result.error)
        return [to_linked_account_response(record) for record in result.unwrap()]

    @router.get(
        "/accounts/deletion-requests",
        response_model=list[DeletionRequestViewResponse],
    )
    async def list_deletion_requests(
        authorization: Annotated[str | None, Header()] = None,
    ) -> list[DeletionRequestViewResponse]:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await management_service.list_deletion_requests(identity)
        if result.error is not None:
            raise_for_error(result.error)
        return [to_deletion_request_view_response(view) for view in result.unwrap()]

    @router.post(
        "/accounts/deletion-requests",
        response_model=DeletionRequestResponse,
        status_code=201,
    )
    async def request_account_deletion(
        payload: DeletionRequestModel,
        authorization: Annotated[str | None, Header()] = None,
    ) -> DeletionRequestResponse:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await management_service.request_account_deletion(
            identity,
            reason=payload.reason,
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_deletion_request_response(result.unwrap())

    @router.patch("/accounts/{account_id}", response_model=LinkedAccountResponse)
    async def rename_friendly_name(
        account_id: int,
        payload: RenameLinkedAccountRequestModel,
        authorization: Annotated[str | None, Header()] = None,
    ) -> LinkedAccountResponse:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await management_service.rename_friendly_name(
            identity,
            account_id=account_id,
            friendly_name=payload.friendly_name,
        )
        if result.error is not None:
            raise_for_error(result.error)
        return to_linked_account_response(result.unwrap())

    @router.delete("/accounts/{account_id}", response_model=OkResponse)
    async def unlink_account(
        account_id: int,
        authorization: Annotated[str | None, Header()] = None,
    ) -> OkResponse:
        identity = require_identity(auth_guard=auth_guard, authorization_header=authorization)
        result = await management_service.unlink_account(identity, account_id=account_id)
        if result.error is not None:
            raise_for_error(result.error)
        return OkResponse()

    return router
