from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from common.types.objectid import ObjectIdStr

from .qrcode import ScanDisplay


class Transaction(BaseModel):
    """quota 차감 1건의 ledger 레코드 (append-only).

    QR 코드는 FK 가 아니라 번호/상품/지역을 복사해 둔다. 코드가 나중에
    비활성화돼도 이력 표시는 그대로 유지된다.
    """

    id: ObjectIdStr | None = None
    member_id: str
    member_name: str
    qr_code_number: str
    product_description: str
    region: str
    quota_used: int = Field(ge=0)
    previous_quota: int
    new_quota: int
    transaction_date: datetime
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _validate_balance(self) -> "Transaction":
        if self.new_quota != self.previous_quota - self.quota_used:
            raise ValueError("new_quota must equal previous_quota - quota_used")
        return self


class Redemption(BaseModel):
    """redeem 성공 결과."""

    qr_code: ScanDisplay
    transaction: Transaction
