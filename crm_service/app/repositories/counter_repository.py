from __future__ import annotations

import logging

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.types.datetime import utcnow

from .interfaces import CounterRepositoryInterface


logger = logging.getLogger(__name__)


# 시퀀스는 1 ~ MAX_SEQUENCE 를 돈다 (QR 코드 번호가 4자리).
MAX_SEQUENCE = 9999


class CounterRepository(CounterRepositoryInterface):
    """counters 컬렉션 (도큐먼트 _id = 시퀀스 이름)."""

    def __init__(self, database: Database, max_sequence: int = MAX_SEQUENCE) -> None:
        self._db = database
        self._col = database["counters"]
        self._max = max_sequence

    def next_sequence(self, name: str) -> int:
        """증가 후 값을 반환한다. 최대값을 넘으면 1 로 되돌린다.

        - 증가는 upsert 를 포함한 find_one_and_update 한 번이다.
        - 최대값을 넘긴 호출자들은 "seq > max 일 때만 1 로" 라는 조건부 업데이트로
          경쟁한다. 이긴 쪽만 1 을 받고, 진 쪽은 다시 증가시켜 다음 값을 받는다.
        - 카운터가 처음 만들어지는 순간의 동시 upsert 는 DuplicateKeyError 가
          날 수 있어 같은 루프에서 다시 시도한다.
        """
        while True:
            now = utcnow()
            try:
                doc = self._col.find_one_and_update(
                    {"_id": name},
                    {
                        "$inc": {"seq": 1},
                        "$set": {"updated_at": now},
                        "$setOnInsert": {"created_at": now},
                    },
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                continue

            seq = int(doc["seq"])
            if seq <= self._max:
                return seq

            reset = self._col.find_one_and_update(
                {"_id": name, "seq": {"$gt": self._max}},
                {"$set": {"seq": 1, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if reset is not None:
                logger.info("sequence %s wrapped around to 1", name)
                return 1

    def current_sequence(self, name: str) -> int:
        doc = self._col.find_one({"_id": name}, projection={"seq": 1})
        if not doc:
            return 0
        return int(doc.get("seq", 0))
