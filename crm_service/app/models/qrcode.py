from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from common.types.objectid import ObjectIdStr


class QrCode(BaseModel):
    """QR 코드 레지스트리 항목.

    qr_code_number 는 0001~9999 의 4자리 문자열이고, qr_code_data 는
    QR 이미지에 인쇄된 JSON 페이로드 원문이다.
    """

    id: ObjectIdStr | None = None
    qr_code_number: str
    region_code: str
    product_description: str
    price: float
    qr_code_data: str
    created_by: str
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class FormattedDisplay(BaseModel):
    line1: str
    line2: str


class ScanDisplay(BaseModel):
    """스캔 결과 화면에 보여줄 데이터. quota 와 ledger 에는 영향이 없다."""

    number: str
    region_code: str
    region_name: str
    product_description: str
    price: float
    formatted_display: FormattedDisplay
    created_at: datetime
