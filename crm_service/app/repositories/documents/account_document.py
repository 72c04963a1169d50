from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.account import Account


class AccountDocument(BaseDocument):
    """MongoDB accounts 컬렉션 도큐먼트 모델."""

    username: str
    password_hash: str
    role: str
    is_active: bool = True
    locations: list[str] = []
    last_login: MongoDateTime | None = None

    member_name: str | None = None
    phone: str | None = None
    # 예전 데이터에는 ticket 필드가 없을 수 있으므로 0 으로 채운다.
    initial_tickets: int = 0
    added_tickets: int = 0
    used_tickets: int = 0
    quota: int = 0
    renewal_count: int = 0

    @classmethod
    def from_domain(cls, account: Account) -> "AccountDocument":
        data = build_document_data_from_domain(account)
        return cls.model_validate(data)

    def to_domain(self) -> Account:
        return Account(
            id=from_object_id(self.id),
            username=self.username,
            password_hash=self.password_hash,
            role=self.role,
            is_active=self.is_active,
            locations=list(self.locations),
            last_login=self.last_login,
            member_name=self.member_name,
            phone=self.phone,
            initial_tickets=self.initial_tickets,
            added_tickets=self.added_tickets,
            used_tickets=self.used_tickets,
            quota=self.quota,
            renewal_count=self.renewal_count,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
