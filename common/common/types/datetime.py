from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic.functional_serializers import PlainSerializer


def utcnow() -> datetime:
    """현재 시각 (UTC aware)."""
    return datetime.now(timezone.utc)


def to_utc_iso8601(value: datetime) -> str:
    """datetime 을 UTC 기준 ISO8601(+00:00) 문자열로 만든다. naive 값은 UTC 로 간주한다."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


# API 응답 스키마에서 JSON 직렬화 시에만 문자열로 바꾼다.
UtcDateTime = Annotated[
    datetime,
    PlainSerializer(to_utc_iso8601, return_type=str, when_used="json"),
]
