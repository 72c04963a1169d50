"""계정 레포지토리 구현체.

quota 변경은 전부 find_one_and_update 한 번으로 끝난다. 필터에 선행 조건
(회원 역할, 활성 상태, 잔액)을 넣어 두면 Mongo 가 단일 도큐먼트 업데이트를
직렬화해 주므로, 동시에 들어온 차감 요청이 같은 잔액을 두 번 쓰는 일이 없다.
"""

from __future__ import annotations

from pymongo import ReturnDocument
from pymongo.database import Database

from common.mongo.types import parse_object_id
from common.types.datetime import utcnow

from ..models.account import MEMBER_ROLES, Account
from .documents.account_document import AccountDocument
from .interfaces import AccountRepositoryInterface


_MEMBER_ROLE_VALUES: list[str] = sorted(str(role) for role in MEMBER_ROLES)


class AccountRepository(AccountRepositoryInterface):
    """accounts 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["accounts"]

    @staticmethod
    def _from_document(doc: dict | None) -> Account | None:
        if not doc:
            return None
        return AccountDocument.model_validate(doc).to_domain()

    def insert(self, account: Account) -> Account:
        now = utcnow()
        account.created_at = now
        account.updated_at = now

        payload = AccountDocument.from_domain(account).to_mongo_record()
        result = self._col.insert_one(payload)
        payload["_id"] = result.inserted_id
        created = self._from_document(payload)
        assert created is not None
        return created

    def find_by_id(self, account_id: str) -> Account | None:
        oid = parse_object_id(account_id)
        if oid is None:
            return None
        return self._from_document(self._col.find_one({"_id": oid}))

    def find_by_username(self, username: str) -> Account | None:
        return self._from_document(self._col.find_one({"username": username}))

    def find_member_by_contact(self, member_name: str, phone: str) -> Account | None:
        return self._from_document(
            self._col.find_one(
                {
                    "role": {"$in": _MEMBER_ROLE_VALUES},
                    "member_name": member_name,
                    "phone": phone,
                }
            )
        )

    def list_active(self, role: str | None = None) -> list[Account]:
        query: dict = {"is_active": True}
        if role:
            query["role"] = role
        cursor = self._col.find(query, sort=[("created_at", -1), ("_id", -1)])
        return [AccountDocument.model_validate(doc).to_domain() for doc in cursor]

    def deactivate(self, account_id: str) -> Account | None:
        oid = parse_object_id(account_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {"_id": oid},
            {"$set": {"is_active": False, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)

    def update_profile(
        self,
        account_id: str,
        username: str,
        password_hash: str,
        locations: list[str] | None = None,
    ) -> Account | None:
        oid = parse_object_id(account_id)
        if oid is None:
            return None
        fields: dict = {
            "username": username,
            "password_hash": password_hash,
            "updated_at": utcnow(),
        }
        if locations is not None:
            fields["locations"] = list(locations)
        doc = self._col.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)

    def debit_quota(self, member_id: str, amount: int) -> Account | None:
        """조건부 원자 차감. 조건 불만족(잔액 부족 포함) 시 None."""
        oid = parse_object_id(member_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {
                "_id": oid,
                "is_active": True,
                "role": {"$in": _MEMBER_ROLE_VALUES},
                "quota": {"$gte": amount},
            },
            {
                "$inc": {"quota": -amount, "used_tickets": amount},
                "$set": {"updated_at": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)

    def credit_quota(self, member_id: str, amount: int) -> Account | None:
        oid = parse_object_id(member_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {"_id": oid},
            {
                "$inc": {"quota": amount, "used_tickets": -amount},
                "$set": {"updated_at": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)

    def renew(self, member_id: str, amount: int) -> Account | None:
        oid = parse_object_id(member_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {"_id": oid, "role": {"$in": _MEMBER_ROLE_VALUES}},
            {
                "$inc": {
                    "added_tickets": amount,
                    "quota": amount,
                    "renewal_count": 1,
                },
                "$set": {"updated_at": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)

    def reconcile_quota(self, member_id: str) -> Account | None:
        """quota 를 initial + added - used 로 다시 쓴다 (예전 데이터 보정용).

        누락된 카운터는 0 으로 본다. 업데이트 파이프라인 한 번으로 처리한다.
        """
        oid = parse_object_id(member_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {"_id": oid, "role": {"$in": _MEMBER_ROLE_VALUES}},
            [
                {
                    "$set": {
                        "initial_tickets": {"$ifNull": ["$initial_tickets", 0]},
                        "added_tickets": {"$ifNull": ["$added_tickets", 0]},
                        "used_tickets": {"$ifNull": ["$used_tickets", 0]},
                    }
                },
                {
                    "$set": {
                        "quota": {
                            "$max": [
                                0,
                                {
                                    "$subtract": [
                                        {"$add": ["$initial_tickets", "$added_tickets"]},
                                        "$used_tickets",
                                    ]
                                },
                            ]
                        },
                        "updated_at": "$$NOW",
                    }
                },
            ],
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)
