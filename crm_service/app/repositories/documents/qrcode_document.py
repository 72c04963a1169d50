from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.qrcode import QrCode


class QrCodeDocument(BaseDocument):
    """MongoDB qrcodes 컬렉션 도큐먼트 모델."""

    qr_code_number: str
    region_code: str
    product_description: str
    price: float
    qr_code_data: str
    created_by: str
    is_active: bool = True

    @classmethod
    def from_domain(cls, qr_code: QrCode) -> "QrCodeDocument":
        return cls.model_validate(build_document_data_from_domain(qr_code))

    def to_domain(self) -> QrCode:
        return QrCode(
            id=from_object_id(self.id),
            qr_code_number=self.qr_code_number,
            region_code=self.region_code,
            product_description=self.product_description,
            price=self.price,
            qr_code_data=self.qr_code_data,
            created_by=self.created_by,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
