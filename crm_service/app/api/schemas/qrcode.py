from __future__ import annotations

from typing import Any

from common.types.datetime import UtcDateTime

from ...models.qrcode import QrCode, ScanDisplay
from ...models.transaction import Redemption, Transaction
from .common import CamelModel


class QrCodeCreateRequest(CamelModel):
    region_code: str
    product_description: str
    # 숫자 검증은 서비스에서 한다 (bool/문자열도 400 으로 돌려준다).
    price: Any = None


class ScanRequest(CamelModel):
    qr_code_data: str


class CurrentNumberResponse(CamelModel):
    current_number: str
    sequence: int


class QrCodeResponse(CamelModel):
    id: str | None
    qr_code_number: str
    region_code: str
    product_description: str
    price: float
    qr_code_data: str
    created_by: str
    is_active: bool
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_domain(cls, qr_code: QrCode) -> "QrCodeResponse":
        return cls(
            id=qr_code.id,
            qr_code_number=qr_code.qr_code_number,
            region_code=qr_code.region_code,
            product_description=qr_code.product_description,
            price=qr_code.price,
            qr_code_data=qr_code.qr_code_data,
            created_by=qr_code.created_by,
            is_active=qr_code.is_active,
            created_at=qr_code.created_at,
            updated_at=qr_code.updated_at,
        )


class FormattedDisplayResponse(CamelModel):
    line1: str
    line2: str


class ScanDisplayResponse(CamelModel):
    number: str
    region_code: str
    region_name: str
    product_description: str
    price: float
    formatted_display: FormattedDisplayResponse
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, display: ScanDisplay) -> "ScanDisplayResponse":
        return cls(
            number=display.number,
            region_code=display.region_code,
            region_name=display.region_name,
            product_description=display.product_description,
            price=display.price,
            formatted_display=FormattedDisplayResponse(
                line1=display.formatted_display.line1,
                line2=display.formatted_display.line2,
            ),
            created_at=display.created_at,
        )


class RedemptionQrCode(CamelModel):
    number: str
    region_name: str
    product_description: str
    price: float


class RedemptionTransaction(CamelModel):
    id: str | None
    previous_quota: int
    quota_used: int
    new_quota: int
    member_name: str
    transaction_date: UtcDateTime

    @classmethod
    def from_domain(cls, tx: Transaction) -> "RedemptionTransaction":
        return cls(
            id=tx.id,
            previous_quota=tx.previous_quota,
            quota_used=tx.quota_used,
            new_quota=tx.new_quota,
            member_name=tx.member_name,
            transaction_date=tx.transaction_date,
        )


class RedemptionResponse(CamelModel):
    qr_code: RedemptionQrCode
    transaction: RedemptionTransaction

    @classmethod
    def from_domain(cls, result: Redemption) -> "RedemptionResponse":
        display = result.qr_code
        return cls(
            qr_code=RedemptionQrCode(
                number=display.number,
                region_name=display.region_name,
                product_description=display.product_description,
                price=display.price,
            ),
            transaction=RedemptionTransaction.from_domain(result.transaction),
        )


class RegionOption(CamelModel):
    code: str
    name: str


class QrCodeOptionsResponse(CamelModel):
    regions: list[RegionOption]
    products: list[str]
