"""프로세스 내 TTL 캐시.

자주 읽는 목록(예: 활성 QR 코드 목록)을 잠깐 들고 있는 용도다.
저장소는 cachetools.TTLCache 이고, 여러 요청 스레드가 같은 인스턴스를
쓰므로 모든 접근을 락으로 감싼다. 백그라운드 타이머는 없다. 만료는 접근
시점에 확인하고, 전체 정리는 cleanup() 을 호출하는 쪽이 결정한다.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from cachetools import TTLCache
from fastapi import Request


logger = logging.getLogger(__name__)


class TtlCache:
    """크기 제한(가장 오래 안 쓴 항목부터 축출) + TTL 캐시. 스레드 안전."""

    def __init__(
        self,
        max_size: int = 100,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._entries: TTLCache = TTLCache(maxsize=max_size, ttl=default_ttl, timer=clock)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """만료된 항목을 모두 지우고 지운 개수를 반환한다."""
        with self._lock:
            expired = self._entries.expire()
        if expired:
            logger.debug("cache cleanup removed %d entries", len(expired))
        return len(expired)


def get_cache(request: Request) -> TtlCache:
    """FastAPI DI 용. create_app 에서 app.state.cache 에 올려 둔 인스턴스를 쓴다."""
    return request.app.state.cache
