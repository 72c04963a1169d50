"""계정 API 라우터.

회원 본인 조회(current-member)와 회원 확인(validate-member)을 제외하면
모두 관리자 전용이다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...auth import get_current_identity, require_admin, require_member
from ...models.account import AccountCreateInput, AccountUpdateInput, Role
from ...models.identity import Identity
from ...services.accounts_service import AccountsService, get_accounts_service
from ..schemas.accounts import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    MemberValidationResponse,
    RenewRequest,
)
from ..schemas.common import ApiResponse


router = APIRouter()


@router.post("", summary="계정 생성")
def create_account(
    body: AccountCreateRequest,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    account = service.create(AccountCreateInput(**body.model_dump()))
    return ApiResponse(
        data=AccountResponse.from_domain(account),
        message="account created",
    )


@router.get("", summary="활성 계정 목록")
def list_accounts(
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
    role: Role | None = None,
) -> ApiResponse[list[AccountResponse]]:
    accounts = service.list_accounts(role.value if role else None)
    return ApiResponse(data=[AccountResponse.from_domain(a) for a in accounts])


# 고정 경로는 "/{account_id}" 보다 먼저 등록해야 한다.
@router.get("/current-member", summary="로그인한 회원 프로필")
def get_current_member(
    identity: Annotated[Identity, Depends(require_member)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    account = service.current_member(identity)
    return ApiResponse(data=AccountResponse.from_domain(account))


@router.get("/validate-member", summary="이름/연락처로 회원 확인")
def validate_member(
    _: Annotated[Identity, Depends(get_current_identity)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
    name: str = "",
    contact: str = "",
) -> ApiResponse[MemberValidationResponse]:
    account = service.validate_member(name, contact)
    return ApiResponse(
        data=MemberValidationResponse.from_domain(account),
        message="member validated",
    )


@router.get("/{account_id}", summary="계정 조회")
def get_account(
    account_id: str,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    return ApiResponse(data=AccountResponse.from_domain(service.get(account_id)))


@router.put("/{account_id}", summary="계정 수정")
def update_account(
    account_id: str,
    body: AccountUpdateRequest,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    account = service.update(account_id, AccountUpdateInput(**body.model_dump()))
    return ApiResponse(
        data=AccountResponse.from_domain(account),
        message="account updated",
    )


@router.delete("/{account_id}", summary="계정 비활성화")
def deactivate_account(
    account_id: str,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    account = service.deactivate(account_id)
    return ApiResponse(
        data=AccountResponse.from_domain(account),
        message="account deactivated",
    )


@router.post("/{account_id}/renew", summary="회원 quota 갱신(top-up)")
def renew_account(
    account_id: str,
    body: RenewRequest,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    account = service.renew(account_id, body.amount)
    return ApiResponse(
        data=AccountResponse.from_domain(account),
        message=f"renewed {body.amount} tickets",
    )


@router.post("/{account_id}/reconcile-quota", summary="ticket 카운터로 quota 재계산")
def reconcile_quota(
    account_id: str,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AccountsService, Depends(get_accounts_service)],
) -> ApiResponse[AccountResponse]:
    account = service.reconcile_quota(account_id)
    return ApiResponse(
        data=AccountResponse.from_domain(account),
        message="quota reconciled",
    )
