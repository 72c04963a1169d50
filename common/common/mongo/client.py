from __future__ import annotations

import logging
import threading
from typing import Optional

from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.database import Database

from .config import (
    get_mongo_db_name,
    get_mongo_uri,
    get_server_selection_timeout_ms,
)


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """프로세스 전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 로 접속하고 ping 으로 연결을 검증한다.
    - MONGO_DB_NAME 이 없으면 URI 의 기본 DB 를 사용하고, 둘 다 없으면 실패한다.
    - 최초 접속 시 한 번만 인덱스를 보장한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        client: MongoClient = MongoClient(
            get_mongo_uri(),
            serverSelectionTimeoutMS=get_server_selection_timeout_ms(),
            tz_aware=True,
        )

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db_name = get_mongo_db_name()
        try:
            db = client[db_name] if db_name else client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        try:
            ensure_indexes(db)
        except Exception as exc:  # noqa: BLE001
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            client.close()
            raise

        _client = client
        _db = db
        logger.info("MongoDB connected and indexes ensured (db=%s)", db.name)
        return _client


def get_database() -> Database:
    """FastAPI 의존성으로도 쓰이는 전역 Database 접근자."""

    if _db is None:
        get_client()
    assert _db is not None
    return _db


def close_client() -> None:
    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None


def ensure_indexes(db: Database) -> None:
    """CRM 컬렉션 인덱스를 생성한다. 여러 번 호출해도 안전하다."""

    db["accounts"].create_indexes(
        [
            IndexModel([("username", ASCENDING)], name="uniq_username", unique=True),
            IndexModel([("role", ASCENDING)], name="idx_role"),
            IndexModel([("is_active", ASCENDING)], name="idx_is_active"),
            IndexModel([("member_name", ASCENDING)], name="idx_member_name"),
        ]
    )

    db["qrcodes"].create_indexes(
        [
            IndexModel(
                [("qr_code_number", ASCENDING)],
                name="uniq_qr_code_number",
                unique=True,
            ),
            IndexModel([("region_code", ASCENDING)], name="idx_region_code"),
            IndexModel(
                [("is_active", ASCENDING), ("created_at", DESCENDING)],
                name="idx_active_created_at",
            ),
        ]
    )

    # member 별 최신순 조회가 ledger 의 주 사용 패턴이다.
    db["transactions"].create_indexes(
        [
            IndexModel(
                [("member_id", ASCENDING), ("transaction_date", DESCENDING)],
                name="idx_member_transaction_date",
            ),
            IndexModel([("qr_code_number", ASCENDING)], name="idx_qr_code_number"),
            IndexModel([("region", ASCENDING)], name="idx_region"),
        ]
    )
