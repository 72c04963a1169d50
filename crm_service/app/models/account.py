"""계정 도메인 모델.

회원 계정은 ticket 카운터 세 개(initial/added/used)와 잔여 quota 를 함께 가진다.
quota 는 저장된 값이 기준이며, 카운터와 같은 단일 도큐먼트 업데이트 안에서만 바뀐다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from common.types.objectid import ObjectIdStr


class Role(StrEnum):
    ADMIN = "admin"
    TRAINER = "trainer"
    MEMBER = "member"
    REGULAR_MEMBER = "regular-member"
    PREMIUM_MEMBER = "premium-member"


MEMBER_ROLES: frozenset[str] = frozenset(
    {Role.MEMBER, Role.REGULAR_MEMBER, Role.PREMIUM_MEMBER}
)


def is_member_role(role: str) -> bool:
    return role in MEMBER_ROLES


class Account(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: ObjectIdStr | None = None
    username: str
    password_hash: str = Field(repr=False)
    role: Role
    is_active: bool = True
    locations: list[str] = Field(default_factory=list)
    last_login: datetime | None = None

    # 회원 전용
    member_name: str | None = None
    phone: str | None = None
    initial_tickets: int = 0
    added_tickets: int = 0
    used_tickets: int = 0
    quota: int = 0
    renewal_count: int = 0

    created_at: datetime
    updated_at: datetime

    @property
    def is_member(self) -> bool:
        return is_member_role(self.role)

    @property
    def expected_quota(self) -> int:
        """ticket 카운터로부터 계산한 잔여량."""
        return self.initial_tickets + self.added_tickets - self.used_tickets

    @property
    def display_name(self) -> str:
        return self.member_name or self.username


class AccountCreateInput(BaseModel):
    username: str
    password: str
    role: Role
    member_name: str | None = None
    phone: str | None = None
    initial_tickets: int = 0
    locations: list[str] = Field(default_factory=list)


class AccountUpdateInput(BaseModel):
    """관리자 계정 수정. ticket 카운터와 quota 는 여기서 바꾸지 않는다."""

    username: str
    password: str
    # None 이면 기존 지역 권한을 그대로 둔다.
    locations: list[str] | None = None
