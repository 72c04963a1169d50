from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...auth import require_member
from ...models.identity import Identity
from ...services.transactions_service import (
    TransactionsService,
    get_transactions_service,
)
from ..schemas.common import ApiResponse
from ..schemas.transactions import TransactionResponse


router = APIRouter()


@router.get("", summary="내 quota 사용 이력")
def list_my_transactions(
    identity: Annotated[Identity, Depends(require_member)],
    service: Annotated[TransactionsService, Depends(get_transactions_service)],
) -> ApiResponse[list[TransactionResponse]]:
    items = service.list_for_member(identity)
    return ApiResponse(data=[TransactionResponse.from_domain(tx) for tx in items])
