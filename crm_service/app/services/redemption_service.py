"""quota 차감(redeem) 서비스.

흐름: 스캔 페이로드 해석 -> 조건부 원자 차감 -> ledger 기록.
차감과 기록은 함께 반영되거나 둘 다 반영되지 않아야 한다. ledger insert 가
실패하면 보상 업데이트로 차감을 되돌린 뒤 InternalError 를 던진다.
"""

from __future__ import annotations

import logging
import math
from typing import NoReturn

from fastapi import Depends

from common.types.datetime import utcnow

from ..config import DEBIT_POLICY_PRICE, AppConfig, get_app_config
from ..exceptions import (
    ForbiddenError,
    InsufficientQuota,
    InternalError,
    MemberNotFound,
)
from ..models.account import Account
from ..models.identity import Identity
from ..models.qrcode import ScanDisplay
from ..models.transaction import Redemption, Transaction
from ..repositories.interfaces import (
    AccountRepositoryInterface,
    TransactionRepositoryInterface,
)
from .accounts_service import get_account_repository
from .qrcode_service import QrCodeService, get_qrcode_service
from .transactions_service import get_transaction_repository


logger = logging.getLogger(__name__)


class RedemptionService:
    def __init__(
        self,
        account_repo: AccountRepositoryInterface,
        transaction_repo: TransactionRepositoryInterface,
        qrcode_service: QrCodeService,
        config: AppConfig,
    ) -> None:
        self._account_repo = account_repo
        self._transaction_repo = transaction_repo
        self._qrcode_service = qrcode_service
        self._config = config

    def debit_amount(self, display: ScanDisplay) -> int:
        """redeem 1회의 차감량."""
        if self._config.quota.debit_policy == DEBIT_POLICY_PRICE:
            return int(math.ceil(display.price))
        return 1

    def redeem(self, identity: Identity, raw_payload: str) -> Redemption:
        if not identity.is_member:
            raise ForbiddenError("only members can use this feature")

        display = self._qrcode_service.resolve_scan(raw_payload)
        quota_used = self.debit_amount(display)

        updated = self._account_repo.debit_quota(identity.user_id, quota_used)
        if updated is None:
            updated = self._retry_rejected(identity, display, quota_used)

        new_quota = updated.quota
        previous_quota = new_quota + quota_used
        now = utcnow()

        try:
            tx = self._transaction_repo.create(
                Transaction(
                    member_id=identity.user_id,
                    member_name=updated.display_name,
                    qr_code_number=display.number,
                    product_description=display.product_description,
                    region=display.region_name,
                    quota_used=quota_used,
                    previous_quota=previous_quota,
                    new_quota=new_quota,
                    transaction_date=now,
                    created_at=now,
                    updated_at=now,
                )
            )
        except Exception as exc:
            self._compensate(identity.user_id, quota_used)
            raise InternalError("failed to record transaction") from exc

        logger.info(
            "quota redeemed",
            extra={
                "member_id": identity.user_id,
                "qr_code_number": display.number,
                "quota_used": quota_used,
                "previous_quota": previous_quota,
                "new_quota": new_quota,
            },
        )
        return Redemption(qr_code=display, transaction=tx)

    def _retry_rejected(
        self, identity: Identity, display: ScanDisplay, quota_used: int
    ) -> Account:
        """조건부 차감이 매칭되지 않았을 때 이유를 가린다.

        다시 읽은 잔액이 충분하면 그 사이에 갱신이 들어온 것이므로 한 번만
        다시 차감해 본다. 그래도 안 되면 예외로 바꾼다.
        """
        account = self._account_repo.find_by_id(identity.user_id)
        if account is None or not account.is_active or not account.is_member:
            raise MemberNotFound()

        if account.quota >= quota_used:
            updated = self._account_repo.debit_quota(identity.user_id, quota_used)
            if updated is not None:
                return updated
            account = self._account_repo.find_by_id(identity.user_id) or account
        self._raise_insufficient(identity, display, account, quota_used)

    def _raise_insufficient(
        self,
        identity: Identity,
        display: ScanDisplay,
        account: Account,
        quota_used: int,
    ) -> NoReturn:
        logger.warning(
            "redemption rejected: insufficient quota",
            extra={
                "member_id": identity.user_id,
                "qr_code_number": display.number,
                "quota_used": quota_used,
                "previous_quota": account.quota,
            },
        )
        raise InsufficientQuota(current_quota=account.quota, required_amount=quota_used)

    def _compensate(self, member_id: str, quota_used: int) -> None:
        try:
            restored = self._account_repo.credit_quota(member_id, quota_used)
        except Exception:  # noqa: BLE001
            logger.exception(
                "failed to restore quota after ledger write failure",
                extra={"member_id": member_id, "quota_used": quota_used},
            )
            return
        logger.exception(
            "ledger write failed, quota restored",
            extra={
                "member_id": member_id,
                "quota_used": quota_used,
                "new_quota": restored.quota if restored else None,
            },
        )


def get_redemption_service(
    account_repo: AccountRepositoryInterface = Depends(get_account_repository),
    transaction_repo: TransactionRepositoryInterface = Depends(
        get_transaction_repository
    ),
    qrcode_service: QrCodeService = Depends(get_qrcode_service),
    config: AppConfig = Depends(get_app_config),
) -> RedemptionService:
    """FastAPI DI용 RedemptionService 팩토리."""
    return RedemptionService(
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        qrcode_service=qrcode_service,
        config=config,
    )
