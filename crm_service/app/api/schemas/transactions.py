from __future__ import annotations

from common.types.datetime import UtcDateTime

from ...models.transaction import Transaction
from .common import CamelModel


class TransactionResponse(CamelModel):
    id: str | None
    member_id: str
    member_name: str
    qr_code_number: str
    product_description: str
    region: str
    quota_used: int
    previous_quota: int
    new_quota: int
    transaction_date: UtcDateTime

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,
            member_id=tx.member_id,
            member_name=tx.member_name,
            qr_code_number=tx.qr_code_number,
            product_description=tx.product_description,
            region=tx.region,
            quota_used=tx.quota_used,
            previous_quota=tx.previous_quota,
            new_quota=tx.new_quota,
            transaction_date=tx.transaction_date,
        )
