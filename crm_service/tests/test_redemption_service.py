from __future__ import annotations

import threading

import pytest
from pymongo.errors import PyMongoError

from crm_service.app.config import DEBIT_POLICY_PRICE
from crm_service.app.exceptions import (
    ForbiddenError,
    InsufficientQuota,
    InternalError,
    MalformedPayload,
    MemberNotFound,
    NotFoundError,
)
from crm_service.app.models.account import Role
from crm_service.app.models.identity import Identity
from crm_service.app.services.redemption_service import RedemptionService


def _identity_for(account) -> Identity:
    return Identity(user_id=account.id, username=account.username, role=account.role)


def test_redeem_debits_one_unit_and_records_transaction(
    redemption_service, account_repo, transaction_repo, make_account, make_qr_code
) -> None:
    member = make_account(quota=3)
    qr_code = make_qr_code(price=50)

    result = redemption_service.redeem(_identity_for(member), qr_code.qr_code_data)

    tx = result.transaction
    assert tx.id is not None
    assert (tx.previous_quota, tx.quota_used, tx.new_quota) == (3, 1, 2)
    assert tx.member_name == "陳大文"
    assert tx.region == "灣仔"
    assert tx.qr_code_number == qr_code.qr_code_number
    assert result.qr_code.formatted_display.line2 == "奶昔：$50"

    stored = account_repo.find_by_id(member.id)
    assert stored.quota == 2
    assert stored.used_tickets == 1
    assert stored.quota == stored.expected_quota
    assert transaction_repo.created == [tx]


def test_redeem_with_price_policy_debits_rounded_up_price(
    account_repo,
    transaction_repo,
    qrcode_service,
    config_factory,
    make_account,
    make_qr_code,
) -> None:
    service = RedemptionService(
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        qrcode_service=qrcode_service,
        config=config_factory(debit_policy=DEBIT_POLICY_PRICE),
    )
    member = make_account(quota=100)
    qr_code = make_qr_code(price=12.5)

    result = service.redeem(_identity_for(member), qr_code.qr_code_data)

    assert result.transaction.quota_used == 13
    assert result.transaction.new_quota == 87


def test_redeem_insufficient_quota_writes_nothing(
    redemption_service, account_repo, transaction_repo, make_account, make_qr_code
) -> None:
    member = make_account(quota=0)
    qr_code = make_qr_code()

    with pytest.raises(InsufficientQuota) as exc_info:
        redemption_service.redeem(_identity_for(member), qr_code.qr_code_data)

    assert exc_info.value.status_code == 409
    assert exc_info.value.data == {
        "currentQuota": 0,
        "requiredAmount": 1,
        "shortage": 1,
    }
    assert account_repo.find_by_id(member.id).quota == 0
    assert transaction_repo.created == []


def test_redeem_retries_once_when_renewal_lands_after_rejection(
    redemption_service,
    account_repo,
    transaction_repo,
    make_account,
    make_qr_code,
    monkeypatch,
) -> None:
    member = make_account(quota=0)
    qr_code = make_qr_code()
    debit = account_repo.debit_quota
    calls: list[int] = []

    def debit_then_renew(member_id: str, amount: int):
        calls.append(amount)
        if len(calls) == 1:
            result = debit(member_id, amount)
            account_repo.renew(member_id, 2)
            return result
        return debit(member_id, amount)

    monkeypatch.setattr(account_repo, "debit_quota", debit_then_renew)

    result = redemption_service.redeem(_identity_for(member), qr_code.qr_code_data)

    assert calls == [1, 1]
    tx = result.transaction
    assert (tx.previous_quota, tx.quota_used, tx.new_quota) == (2, 1, 1)
    assert account_repo.find_by_id(member.id).quota == 1
    assert len(transaction_repo.created) == 1


def test_redeem_rejection_never_reports_negative_shortage(
    redemption_service,
    account_repo,
    transaction_repo,
    make_account,
    make_qr_code,
    monkeypatch,
) -> None:
    member = make_account(quota=5)
    qr_code = make_qr_code()
    calls: list[int] = []

    def always_rejected(member_id: str, amount: int):
        calls.append(amount)
        return None

    monkeypatch.setattr(account_repo, "debit_quota", always_rejected)

    with pytest.raises(InsufficientQuota) as exc_info:
        redemption_service.redeem(_identity_for(member), qr_code.qr_code_data)

    assert len(calls) == 2
    assert exc_info.value.data["shortage"] == 0
    assert transaction_repo.created == []


def test_redeem_rejects_non_member_identity(
    redemption_service, make_account, make_qr_code
) -> None:
    admin = make_account(username="admin01", role=Role.ADMIN)
    qr_code = make_qr_code()

    with pytest.raises(ForbiddenError):
        redemption_service.redeem(_identity_for(admin), qr_code.qr_code_data)


@pytest.mark.parametrize("is_active, exists", [(False, True), (True, False)])
def test_redeem_inactive_or_missing_member(
    redemption_service, transaction_repo, make_account, make_qr_code, is_active, exists
) -> None:
    member = make_account(is_active=is_active)
    qr_code = make_qr_code()
    identity = _identity_for(member)
    if not exists:
        identity = identity.model_copy(update={"user_id": "65f000000000000000000000"})

    with pytest.raises(MemberNotFound):
        redemption_service.redeem(identity, qr_code.qr_code_data)
    assert transaction_repo.created == []


def test_redeem_propagates_scan_errors_without_debit(
    redemption_service, account_repo, make_account
) -> None:
    member = make_account(quota=5)

    with pytest.raises(MalformedPayload):
        redemption_service.redeem(_identity_for(member), "{broken")
    with pytest.raises(NotFoundError):
        redemption_service.redeem(_identity_for(member), '{"number": "0777"}')

    assert account_repo.find_by_id(member.id).quota == 5


def test_redeem_restores_quota_when_ledger_write_fails(
    redemption_service, account_repo, transaction_repo, make_account, make_qr_code
) -> None:
    member = make_account(quota=2)
    qr_code = make_qr_code()
    transaction_repo.fail_with = PyMongoError("write failed")

    with pytest.raises(InternalError):
        redemption_service.redeem(_identity_for(member), qr_code.qr_code_data)

    stored = account_repo.find_by_id(member.id)
    assert stored.quota == 2
    assert stored.used_tickets == 0
    assert account_repo.credit_calls == [(member.id, 1)]
    assert transaction_repo.created == []


def test_concurrent_redemptions_on_last_unit_only_one_succeeds(
    redemption_service, account_repo, transaction_repo, make_account, make_qr_code
) -> None:
    member = make_account(quota=1)
    qr_code = make_qr_code()
    identity = _identity_for(member)

    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def _redeem() -> None:
        barrier.wait()
        try:
            redemption_service.redeem(identity, qr_code.qr_code_data)
            outcome = "ok"
        except InsufficientQuota:
            outcome = "insufficient"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=_redeem) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["insufficient", "ok"]
    assert account_repo.find_by_id(member.id).quota == 0
    assert len(transaction_repo.created) == 1


def test_ledger_stays_consistent_across_renewal_and_redemptions(
    redemption_service,
    accounts_service,
    account_repo,
    transaction_repo,
    make_account,
    make_qr_code,
) -> None:
    member = make_account(quota=1)
    qr_code = make_qr_code()
    identity = _identity_for(member)

    redemption_service.redeem(identity, qr_code.qr_code_data)
    accounts_service.renew(member.id, 2)
    redemption_service.redeem(identity, qr_code.qr_code_data)

    stored = account_repo.find_by_id(member.id)
    assert stored.quota == 1
    assert stored.quota == stored.expected_quota

    txs = transaction_repo.created
    assert [tx.previous_quota for tx in txs] == [1, 2]
    assert [tx.new_quota for tx in txs] == [0, 1]
