from __future__ import annotations

from pydantic import Field

from common.types.datetime import UtcDateTime

from ...models.account import Account, Role
from .common import CamelModel


class AccountCreateRequest(CamelModel):
    username: str
    password: str
    role: Role
    member_name: str | None = None
    phone: str | None = None
    initial_tickets: int = 0
    locations: list[str] = Field(default_factory=list)


class AccountUpdateRequest(CamelModel):
    username: str
    password: str
    locations: list[str] | None = None


class RenewRequest(CamelModel):
    amount: int


class AccountResponse(CamelModel):
    """계정 응답. password_hash 는 절대 내보내지 않는다."""

    id: str | None
    username: str
    role: str
    is_active: bool
    locations: list[str]
    member_name: str | None = None
    phone: str | None = None
    initial_tickets: int
    added_tickets: int
    used_tickets: int
    quota: int
    renewal_count: int
    last_login: UtcDateTime | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            username=account.username,
            role=account.role,
            is_active=account.is_active,
            locations=list(account.locations),
            member_name=account.member_name,
            phone=account.phone,
            initial_tickets=account.initial_tickets,
            added_tickets=account.added_tickets,
            used_tickets=account.used_tickets,
            quota=account.quota,
            renewal_count=account.renewal_count,
            last_login=account.last_login,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class MemberValidationResponse(CamelModel):
    id: str | None
    username: str
    member_name: str | None = None
    phone: str | None = None
    quota: int
    is_active: bool

    @classmethod
    def from_domain(cls, account: Account) -> "MemberValidationResponse":
        return cls(
            id=account.id,
            username=account.username,
            member_name=account.member_name,
            phone=account.phone,
            quota=account.quota,
            is_active=account.is_active,
        )
