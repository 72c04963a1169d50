"""QR 코드 API 라우터.

- scan: 인증 없이 코드 정보만 보여준다 (읽기 전용)
- deduct: 로그인한 회원의 quota 를 차감하고 ledger 에 남긴다
- 생성/비활성화/번호 미리보기/선택지 목록은 관리자 전용
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...auth import get_current_identity, require_admin
from ...config import AppConfig, get_app_config
from ...models.identity import Identity
from ...services.qrcode_service import QrCodeService, get_qrcode_service
from ...services.redemption_service import RedemptionService, get_redemption_service
from ..schemas.common import ApiResponse
from ..schemas.qrcode import (
    CurrentNumberResponse,
    QrCodeCreateRequest,
    QrCodeOptionsResponse,
    QrCodeResponse,
    RedemptionResponse,
    RegionOption,
    ScanDisplayResponse,
    ScanRequest,
)


router = APIRouter(prefix="/qrcode", tags=["qrcode"])


@router.get("/current-number", summary="다음 발급 번호 미리보기")
def get_current_number(
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[QrCodeService, Depends(get_qrcode_service)],
) -> ApiResponse[CurrentNumberResponse]:
    number, sequence = service.current_number()
    return ApiResponse(
        data=CurrentNumberResponse(current_number=number, sequence=sequence)
    )


@router.get("/options", summary="QR 코드 생성 화면용 지역/상품 목록")
def get_qr_code_options(
    _: Annotated[Identity, Depends(require_admin)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> ApiResponse[QrCodeOptionsResponse]:
    return ApiResponse(
        data=QrCodeOptionsResponse(
            regions=[
                RegionOption(code=code, name=name)
                for code, name in config.regions.items()
            ],
            products=list(config.products),
        )
    )


@router.post("/scan", summary="QR 코드 스캔 (읽기 전용)")
def scan_qr_code(
    body: ScanRequest,
    service: Annotated[QrCodeService, Depends(get_qrcode_service)],
) -> ApiResponse[ScanDisplayResponse]:
    display = service.resolve_scan(body.qr_code_data)
    return ApiResponse(data=ScanDisplayResponse.from_domain(display))


@router.post("/deduct", summary="QR 코드로 quota 차감")
def deduct_quota(
    body: ScanRequest,
    identity: Annotated[Identity, Depends(get_current_identity)],
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> ApiResponse[RedemptionResponse]:
    result = service.redeem(identity, body.qr_code_data)
    return ApiResponse(
        data=RedemptionResponse.from_domain(result),
        message="quota deducted",
    )


@router.post("", summary="QR 코드 생성")
def create_qr_code(
    body: QrCodeCreateRequest,
    identity: Annotated[Identity, Depends(require_admin)],
    service: Annotated[QrCodeService, Depends(get_qrcode_service)],
) -> ApiResponse[QrCodeResponse]:
    qr_code = service.create(
        region_code=body.region_code,
        product_description=body.product_description,
        price=body.price,
        created_by=identity.username,
    )
    return ApiResponse(
        data=QrCodeResponse.from_domain(qr_code),
        message="QR code created",
    )


@router.get("", summary="활성 QR 코드 목록")
def list_qr_codes(
    _: Annotated[Identity, Depends(get_current_identity)],
    service: Annotated[QrCodeService, Depends(get_qrcode_service)],
) -> ApiResponse[list[QrCodeResponse]]:
    return ApiResponse(
        data=[QrCodeResponse.from_domain(q) for q in service.list_active()]
    )


@router.get("/{number}", summary="QR 코드 조회")
def get_qr_code(
    number: str,
    _: Annotated[Identity, Depends(get_current_identity)],
    service: Annotated[QrCodeService, Depends(get_qrcode_service)],
) -> ApiResponse[QrCodeResponse]:
    return ApiResponse(data=QrCodeResponse.from_domain(service.get(number)))


@router.delete("/{number}", summary="QR 코드 비활성화")
def deactivate_qr_code(
    number: str,
    _: Annotated[Identity, Depends(require_admin)],
    service: Annotated[QrCodeService, Depends(get_qrcode_service)],
) -> ApiResponse[QrCodeResponse]:
    qr_code = service.deactivate(number)
    return ApiResponse(
        data=QrCodeResponse.from_domain(qr_code),
        message="QR code deactivated",
    )
