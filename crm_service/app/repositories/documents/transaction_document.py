from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    PyObjectId,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.transaction import Transaction


class TransactionDocument(BaseDocument):
    """MongoDB transactions 컬렉션 도큐먼트 모델."""

    member_id: PyObjectId
    member_name: str
    qr_code_number: str
    product_description: str
    region: str
    quota_used: int
    previous_quota: int
    new_quota: int
    transaction_date: MongoDateTime

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionDocument":
        return cls.model_validate(build_document_data_from_domain(tx))

    def to_domain(self) -> Transaction:
        return Transaction(
            id=from_object_id(self.id),
            member_id=from_object_id(self.member_id),
            member_name=self.member_name,
            qr_code_number=self.qr_code_number,
            product_description=self.product_description,
            region=self.region,
            quota_used=self.quota_used,
            previous_quota=self.previous_quota,
            new_quota=self.new_quota,
            transaction_date=self.transaction_date,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
