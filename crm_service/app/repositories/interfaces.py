from __future__ import annotations

from typing import Protocol

from ..models.account import Account
from ..models.qrcode import QrCode
from ..models.transaction import Transaction


class AccountRepositoryInterface(Protocol):
    """AccountRepository 가 따라야 할 계약.

    quota 를 바꾸는 메서드(debit/credit/renew)는 모두 단일 도큐먼트에 대한
    원자적 조건부 업데이트여야 한다. 조건이 맞지 않으면 None 을 돌려주고
    아무것도 바꾸지 않는다.
    """

    def insert(self, account: Account) -> Account:  # pragma: no cover - Protocol
        ...

    def find_by_id(self, account_id: str) -> Account | None:  # pragma: no cover - Protocol
        ...

    def find_by_username(
        self, username: str
    ) -> Account | None:  # pragma: no cover - Protocol
        ...

    def list_active(
        self, role: str | None = None
    ) -> list[Account]:  # pragma: no cover - Protocol
        ...

    def find_member_by_contact(
        self, member_name: str, phone: str
    ) -> Account | None:  # pragma: no cover - Protocol
        ...

    def deactivate(self, account_id: str) -> Account | None:  # pragma: no cover - Protocol
        ...

    def update_profile(
        self,
        account_id: str,
        username: str,
        password_hash: str,
        locations: list[str] | None = None,
    ) -> Account | None:  # pragma: no cover - Protocol
        """로그인 정보와 지역 권한만 바꾼다. quota 관련 필드는 건드리지 않는다."""
        ...

    def debit_quota(
        self, member_id: str, amount: int
    ) -> Account | None:  # pragma: no cover - Protocol
        """활성 회원이고 quota >= amount 일 때만 quota 를 amount 만큼 줄이고
        used_tickets 를 늘린다. 변경 후 계정을 반환한다."""
        ...

    def credit_quota(
        self, member_id: str, amount: int
    ) -> Account | None:  # pragma: no cover - Protocol
        """debit_quota 의 보상 연산."""
        ...

    def renew(
        self, member_id: str, amount: int
    ) -> Account | None:  # pragma: no cover - Protocol
        ...

    def reconcile_quota(
        self, member_id: str
    ) -> Account | None:  # pragma: no cover - Protocol
        ...


class QrCodeRepositoryInterface(Protocol):
    def insert(self, qr_code: QrCode) -> QrCode:  # pragma: no cover - Protocol
        ...

    def find_by_number(
        self, number: str, *, active_only: bool = False
    ) -> QrCode | None:  # pragma: no cover - Protocol
        ...

    def list_active(self) -> list[QrCode]:  # pragma: no cover - Protocol
        ...

    def deactivate(self, number: str) -> QrCode | None:  # pragma: no cover - Protocol
        ...


class CounterRepositoryInterface(Protocol):
    """이름별 시퀀스. next_sequence 는 동시 호출자에게 같은 값을 주면 안 된다."""

    def next_sequence(self, name: str) -> int:  # pragma: no cover - Protocol
        ...

    def current_sequence(self, name: str) -> int:  # pragma: no cover - Protocol
        ...


class TransactionRepositoryInterface(Protocol):
    def create(self, tx: Transaction) -> Transaction:  # pragma: no cover - Protocol
        ...

    def list_by_member(
        self, member_id: str
    ) -> list[Transaction]:  # pragma: no cover - Protocol
        ...
