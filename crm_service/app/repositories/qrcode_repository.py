from __future__ import annotations

from pymongo import ReturnDocument
from pymongo.database import Database

from common.types.datetime import utcnow

from ..models.qrcode import QrCode
from .documents.qrcode_document import QrCodeDocument
from .interfaces import QrCodeRepositoryInterface


class QrCodeRepository(QrCodeRepositoryInterface):
    """qrcodes 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["qrcodes"]

    def insert(self, qr_code: QrCode) -> QrCode:
        payload = QrCodeDocument.from_domain(qr_code).to_mongo_record()
        result = self._col.insert_one(payload)
        payload["_id"] = result.inserted_id
        return QrCodeDocument.model_validate(payload).to_domain()

    def find_by_number(self, number: str, *, active_only: bool = False) -> QrCode | None:
        query: dict = {"qr_code_number": number}
        if active_only:
            query["is_active"] = True
        doc = self._col.find_one(query)
        if not doc:
            return None
        return QrCodeDocument.model_validate(doc).to_domain()

    def list_active(self) -> list[QrCode]:
        cursor = self._col.find(
            {"is_active": True},
            sort=[("created_at", -1), ("_id", -1)],
        )
        return [QrCodeDocument.model_validate(doc).to_domain() for doc in cursor]

    def deactivate(self, number: str) -> QrCode | None:
        doc = self._col.find_one_and_update(
            {"qr_code_number": number},
            {"$set": {"is_active": False, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        return QrCodeDocument.model_validate(doc).to_domain()
