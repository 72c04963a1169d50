from __future__ import annotations

import os


MONGO_URI_ENV = "MONGO_URI"
MONGO_DB_NAME_ENV = "MONGO_DB_NAME"
MONGO_SERVER_SELECTION_TIMEOUT_MS_ENV = "MONGO_SERVER_SELECTION_TIMEOUT_MS"

DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000


def get_mongo_uri() -> str:
    """MongoDB 연결 URI 를 환경 변수에서 읽는다.

    설정되지 않았으면 서비스가 기동 단계에서 바로 실패하도록 RuntimeError 를 던진다.
    """

    value = os.getenv(MONGO_URI_ENV)
    if not value:
        raise RuntimeError(
            f"{MONGO_URI_ENV} environment variable is required for MongoDB",
        )
    return value


def get_mongo_db_name() -> str | None:
    """사용할 데이터베이스 이름. 없으면 None (URI 의 기본 DB 사용)."""

    value = os.getenv(MONGO_DB_NAME_ENV, "").strip()
    return value or None


def get_server_selection_timeout_ms() -> int:
    raw = os.getenv(MONGO_SERVER_SELECTION_TIMEOUT_MS_ENV)
    if not raw:
        return DEFAULT_SERVER_SELECTION_TIMEOUT_MS
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{MONGO_SERVER_SELECTION_TIMEOUT_MS_ENV} must be an integer if set, got: {raw!r}"
        ) from exc
