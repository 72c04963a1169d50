from __future__ import annotations

import threading
from typing import Callable

import pytest
from bson import ObjectId

from common.types.datetime import utcnow
from crm_service.app.cache import TtlCache
from crm_service.app.config import AppConfig, AuthConfig, QuotaConfig
from crm_service.app.models.account import MEMBER_ROLES, Account, Role
from crm_service.app.models.qrcode import QrCode
from crm_service.app.models.transaction import Transaction
from crm_service.app.repositories.counter_repository import MAX_SEQUENCE
from crm_service.app.services import accounts_service as accounts_service_module
from crm_service.app.services.accounts_service import AccountsService
from crm_service.app.services.qrcode_service import QrCodeService
from crm_service.app.services.redemption_service import RedemptionService
from crm_service.app.services.transactions_service import TransactionsService


TEST_JWT_SECRET = "test-secret"


class FakeAccountRepository:
    """조건부 업데이트 계약을 지키는 in-memory 구현. Mongo 처럼 도큐먼트 단위로 직렬화한다."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.accounts: dict[str, Account] = {}
        self.credit_calls: list[tuple[str, int]] = []

    def _copy(self, account: Account | None) -> Account | None:
        return account.model_copy() if account is not None else None

    def insert(self, account: Account) -> Account:
        with self._lock:
            created = account.model_copy(update={"id": str(ObjectId())})
            self.accounts[created.id] = created
            return created.model_copy()

    def find_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._copy(self.accounts.get(account_id))

    def find_by_username(self, username: str) -> Account | None:
        with self._lock:
            for account in self.accounts.values():
                if account.username == username:
                    return account.model_copy()
            return None

    def find_member_by_contact(self, member_name: str, phone: str) -> Account | None:
        with self._lock:
            for account in self.accounts.values():
                if (
                    account.role in MEMBER_ROLES
                    and account.member_name == member_name
                    and account.phone == phone
                ):
                    return account.model_copy()
            return None

    def list_active(self, role: str | None = None) -> list[Account]:
        with self._lock:
            items = [
                a.model_copy()
                for a in self.accounts.values()
                if a.is_active and (role is None or a.role == role)
            ]
        return sorted(items, key=lambda a: a.created_at, reverse=True)

    def deactivate(self, account_id: str) -> Account | None:
        return self._update(account_id, lambda a: True, {"is_active": False})

    def update_profile(
        self,
        account_id: str,
        username: str,
        password_hash: str,
        locations: list[str] | None = None,
    ) -> Account | None:
        values: dict = {"username": username, "password_hash": password_hash}
        if locations is not None:
            values["locations"] = list(locations)
        return self._update(account_id, lambda a: True, values)

    def debit_quota(self, member_id: str, amount: int) -> Account | None:
        def matches(a: Account) -> bool:
            return a.is_active and a.role in MEMBER_ROLES and a.quota >= amount

        return self._update(
            member_id,
            matches,
            lambda a: {"quota": a.quota - amount, "used_tickets": a.used_tickets + amount},
        )

    def credit_quota(self, member_id: str, amount: int) -> Account | None:
        self.credit_calls.append((member_id, amount))
        return self._update(
            member_id,
            lambda a: True,
            lambda a: {"quota": a.quota + amount, "used_tickets": a.used_tickets - amount},
        )

    def renew(self, member_id: str, amount: int) -> Account | None:
        return self._update(
            member_id,
            lambda a: a.role in MEMBER_ROLES,
            lambda a: {
                "added_tickets": a.added_tickets + amount,
                "quota": a.quota + amount,
                "renewal_count": a.renewal_count + 1,
            },
        )

    def reconcile_quota(self, member_id: str) -> Account | None:
        return self._update(
            member_id,
            lambda a: a.role in MEMBER_ROLES,
            lambda a: {"quota": max(0, a.expected_quota)},
        )

    def _update(self, account_id, predicate, changes) -> Account | None:
        with self._lock:
            account = self.accounts.get(account_id)
            if account is None or not predicate(account):
                return None
            values = changes(account) if callable(changes) else changes
            updated = account.model_copy(update={**values, "updated_at": utcnow()})
            self.accounts[account_id] = updated
            return updated.model_copy()


class FakeQrCodeRepository:
    def __init__(self) -> None:
        self.items: dict[str, QrCode] = {}
        self.list_calls = 0

    def insert(self, qr_code: QrCode) -> QrCode:
        created = qr_code.model_copy(update={"id": str(ObjectId())})
        self.items[created.qr_code_number] = created
        return created

    def find_by_number(self, number: str, *, active_only: bool = False) -> QrCode | None:
        qr_code = self.items.get(number)
        if qr_code is None or (active_only and not qr_code.is_active):
            return None
        return qr_code

    def list_active(self) -> list[QrCode]:
        self.list_calls += 1
        items = [q for q in self.items.values() if q.is_active]
        return sorted(items, key=lambda q: q.created_at, reverse=True)

    def deactivate(self, number: str) -> QrCode | None:
        qr_code = self.items.get(number)
        if qr_code is None:
            return None
        updated = qr_code.model_copy(update={"is_active": False, "updated_at": utcnow()})
        self.items[number] = updated
        return updated


class FakeCounterRepository:
    def __init__(self, max_sequence: int = MAX_SEQUENCE) -> None:
        self._lock = threading.Lock()
        self._max = max_sequence
        self.values: dict[str, int] = {}

    def next_sequence(self, name: str) -> int:
        with self._lock:
            seq = self.values.get(name, 0) + 1
            if seq > self._max:
                seq = 1
            self.values[name] = seq
            return seq

    def current_sequence(self, name: str) -> int:
        return self.values.get(name, 0)


class FakeTransactionRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.created: list[Transaction] = []
        self.fail_with: Exception | None = None

    def create(self, tx: Transaction) -> Transaction:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            created = tx.model_copy(update={"id": str(ObjectId())})
            self.created.append(created)
            return created

    def list_by_member(self, member_id: str) -> list[Transaction]:
        items = [tx for tx in self.created if tx.member_id == member_id]
        return sorted(items, key=lambda tx: tx.transaction_date, reverse=True)


def build_config(debit_policy: str = "unit", env: str = "test") -> AppConfig:
    return AppConfig(
        env=env,
        auth=AuthConfig(jwt_secret=TEST_JWT_SECRET),
        quota=QuotaConfig(debit_policy=debit_policy),
    )


@pytest.fixture
def app_config() -> AppConfig:
    return build_config()


@pytest.fixture
def account_repo() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def qrcode_repo() -> FakeQrCodeRepository:
    return FakeQrCodeRepository()


@pytest.fixture
def counter_repo() -> FakeCounterRepository:
    return FakeCounterRepository()


@pytest.fixture
def transaction_repo() -> FakeTransactionRepository:
    return FakeTransactionRepository()


@pytest.fixture
def cache() -> TtlCache:
    return TtlCache(max_size=10, default_ttl=60.0)


@pytest.fixture
def qrcode_service(qrcode_repo, counter_repo, cache, app_config) -> QrCodeService:
    return QrCodeService(
        qrcode_repo=qrcode_repo,
        counter_repo=counter_repo,
        cache=cache,
        config=app_config,
    )


@pytest.fixture
def redemption_service(
    account_repo, transaction_repo, qrcode_service, app_config
) -> RedemptionService:
    return RedemptionService(
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        qrcode_service=qrcode_service,
        config=app_config,
    )


@pytest.fixture
def accounts_service(account_repo, app_config, monkeypatch) -> AccountsService:
    # 테스트 속도를 위해 bcrypt cost 를 최소로 낮춘다.
    monkeypatch.setattr(accounts_service_module, "BCRYPT_ROUNDS", 4)
    return AccountsService(account_repo=account_repo, config=app_config)


@pytest.fixture
def transactions_service(transaction_repo) -> TransactionsService:
    return TransactionsService(transaction_repo)


@pytest.fixture
def make_account(account_repo) -> Callable[..., Account]:
    def _make(
        *,
        username: str = "member01",
        role: str = Role.MEMBER,
        quota: int = 10,
        is_active: bool = True,
        member_name: str | None = "陳大文",
    ) -> Account:
        now = utcnow()
        return account_repo.insert(
            Account(
                username=username,
                password_hash="x",
                role=role,
                is_active=is_active,
                member_name=member_name,
                phone="91234567",
                initial_tickets=quota,
                quota=quota,
                created_at=now,
                updated_at=now,
            )
        )

    return _make


@pytest.fixture
def make_qr_code(qrcode_service) -> Callable[..., QrCode]:
    def _make(
        *,
        region_code: str = "WC",
        product_description: str = "奶昔",
        price: float = 50,
    ) -> QrCode:
        return qrcode_service.create(
            region_code=region_code,
            product_description=product_description,
            price=price,
            created_by="admin",
        )

    return _make


@pytest.fixture
def config_factory() -> Callable[..., AppConfig]:
    return build_config
