from __future__ import annotations

from pymongo.database import Database

from common.mongo.types import parse_object_id

from ..models.transaction import Transaction
from .documents.transaction_document import TransactionDocument
from .interfaces import TransactionRepositoryInterface


class TransactionRepository(TransactionRepositoryInterface):
    """transactions 컬렉션 (append-only ledger).

    insert 와 조회만 한다.
    """

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["transactions"]

    def create(self, tx: Transaction) -> Transaction:
        payload = TransactionDocument.from_domain(tx).to_mongo_record()
        result = self._col.insert_one(payload)
        return tx.model_copy(update={"id": str(result.inserted_id)})

    def list_by_member(self, member_id: str) -> list[Transaction]:
        oid = parse_object_id(member_id)
        if oid is None:
            return []
        # member_id 는 ObjectId 로 저장한다. 문자열로 남은 예전 행도 함께 찾는다.
        cursor = self._col.find(
            {"member_id": {"$in": [oid, member_id]}},
            sort=[("transaction_date", -1), ("_id", -1)],
        )
        return [TransactionDocument.model_validate(raw).to_domain() for raw in cursor]
