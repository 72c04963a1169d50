"""QR 코드 서비스.

번호 발급(카운터), 코드 생성/조회/비활성화, 스캔 페이로드 해석을 담당한다.
스캔 해석은 읽기 전용이라 quota 와 ledger 는 건드리지 않는다.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.types.datetime import utcnow

from ..cache import TtlCache, get_cache
from ..config import AppConfig, get_app_config
from ..exceptions import MalformedPayload, MissingField, NotFoundError, ValidationError
from ..models.qrcode import FormattedDisplay, QrCode, ScanDisplay
from ..repositories.counter_repository import MAX_SEQUENCE, CounterRepository
from ..repositories.interfaces import (
    CounterRepositoryInterface,
    QrCodeRepositoryInterface,
)
from ..repositories.qrcode_repository import QrCodeRepository


logger = logging.getLogger(__name__)


QR_CODE_SEQUENCE = "qrcode_number"
QR_CODE_LIST_CACHE_KEY = "qrcodes_all"
MAX_PRODUCT_DESCRIPTION_LENGTH = 100


def format_qr_code_number(sequence: int) -> str:
    return f"{sequence:04d}"


def format_price(price: float) -> str:
    """50.0 -> "50", 12.5 -> "12.5"."""
    if float(price).is_integer():
        return str(int(price))
    return str(float(price))


def parse_scan_payload(raw_payload: str) -> str:
    """QR 페이로드(JSON 문자열)에서 코드 번호를 꺼낸다."""
    try:
        parsed: Any = json.loads(raw_payload)
    except (TypeError, ValueError) as exc:
        raise MalformedPayload() from exc
    if not isinstance(parsed, dict):
        raise MalformedPayload()

    number = parsed.get("number")
    # 정수로 인쇄된 예전 코드도 4자리 번호로 맞춘다.
    if isinstance(number, int) and not isinstance(number, bool):
        return format_qr_code_number(number)
    if not isinstance(number, str) or not number.strip():
        raise MissingField("QR code data has no number")
    return number.strip()


class QrCodeService:
    def __init__(
        self,
        qrcode_repo: QrCodeRepositoryInterface,
        counter_repo: CounterRepositoryInterface,
        cache: TtlCache,
        config: AppConfig,
    ) -> None:
        self._qrcode_repo = qrcode_repo
        self._counter_repo = counter_repo
        self._cache = cache
        self._config = config

    def current_number(self) -> tuple[str, int]:
        """다음에 발급될 번호를 미리 보여준다. 카운터는 바꾸지 않는다."""
        current = self._counter_repo.current_sequence(QR_CODE_SEQUENCE)
        upcoming = current + 1
        if upcoming > MAX_SEQUENCE:
            upcoming = 1
        return format_qr_code_number(upcoming), upcoming

    def create(
        self,
        region_code: str,
        product_description: str,
        price: Any,
        created_by: str,
    ) -> QrCode:
        region_code = (region_code or "").strip()
        product_description = (product_description or "").strip()
        created_by = (created_by or "").strip()

        if not region_code or not product_description or price is None or not created_by:
            raise ValidationError(
                "regionCode, productDescription, price and createdBy are required"
            )
        if region_code not in self._config.regions:
            raise ValidationError(f"invalid region code: {region_code}")
        if len(product_description) > MAX_PRODUCT_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"productDescription must be at most {MAX_PRODUCT_DESCRIPTION_LENGTH} characters"
            )
        if (
            isinstance(price, bool)
            or not isinstance(price, (int, float))
            or not math.isfinite(price)
            or price < 0
        ):
            raise ValidationError("price must be a non-negative number")

        sequence = self._counter_repo.next_sequence(QR_CODE_SEQUENCE)
        number = format_qr_code_number(sequence)
        now = utcnow()

        qr_code_data = json.dumps(
            {
                "number": number,
                "regionCode": region_code,
                "regionName": self._config.region_name(region_code),
                "productDescription": product_description,
                "price": price,
                "timestamp": now.isoformat(),
            },
            ensure_ascii=False,
        )

        created = self._qrcode_repo.insert(
            QrCode(
                qr_code_number=number,
                region_code=region_code,
                product_description=product_description,
                price=float(price),
                qr_code_data=qr_code_data,
                created_by=created_by,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
        )
        self._cache.delete(QR_CODE_LIST_CACHE_KEY)
        logger.info(
            "qr code created by %s",
            created_by,
            extra={"qr_code_number": number},
        )
        return created

    def list_active(self) -> list[QrCode]:
        cached = self._cache.get(QR_CODE_LIST_CACHE_KEY)
        if cached is not None:
            return list(cached)
        items = self._qrcode_repo.list_active()
        self._cache.set(QR_CODE_LIST_CACHE_KEY, list(items))
        return items

    def get(self, number: str) -> QrCode:
        qr_code = self._qrcode_repo.find_by_number(number)
        if qr_code is None:
            raise NotFoundError(f"QR code {number} not found")
        return qr_code

    def deactivate(self, number: str) -> QrCode:
        qr_code = self._qrcode_repo.deactivate(number)
        if qr_code is None:
            raise NotFoundError(f"QR code {number} not found")
        self._cache.delete(QR_CODE_LIST_CACHE_KEY)
        logger.info("qr code deactivated", extra={"qr_code_number": number})
        return qr_code

    def resolve_scan(self, raw_payload: str) -> ScanDisplay:
        number = parse_scan_payload(raw_payload)
        qr_code = self._qrcode_repo.find_by_number(number, active_only=True)
        if qr_code is None:
            raise NotFoundError("no active QR code found for this number")
        return self.to_display(qr_code)

    def to_display(self, qr_code: QrCode) -> ScanDisplay:
        region_name = self._config.region_name(qr_code.region_code)
        return ScanDisplay(
            number=qr_code.qr_code_number,
            region_code=qr_code.region_code,
            region_name=region_name,
            product_description=qr_code.product_description,
            price=qr_code.price,
            formatted_display=FormattedDisplay(
                line1=f"地區：{region_name}",
                line2=f"{qr_code.product_description}：${format_price(qr_code.price)}",
            ),
            created_at=qr_code.created_at,
        )


def get_qrcode_repository(
    db: Database = Depends(get_database),
) -> QrCodeRepositoryInterface:
    return QrCodeRepository(db)


def get_counter_repository(
    db: Database = Depends(get_database),
) -> CounterRepositoryInterface:
    return CounterRepository(db)


def get_qrcode_service(
    qrcode_repo: QrCodeRepositoryInterface = Depends(get_qrcode_repository),
    counter_repo: CounterRepositoryInterface = Depends(get_counter_repository),
    cache: TtlCache = Depends(get_cache),
    config: AppConfig = Depends(get_app_config),
) -> QrCodeService:
    """FastAPI DI용 QrCodeService 팩토리."""
    return QrCodeService(
        qrcode_repo=qrcode_repo,
        counter_repo=counter_repo,
        cache=cache,
        config=config,
    )
