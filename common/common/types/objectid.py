from __future__ import annotations

from typing import Annotated, Any

from pydantic.functional_validators import BeforeValidator


def _to_object_id_str(value: Any) -> Any:
    # None / str 은 그대로, ObjectId 등은 str() 로 바꾼다.
    if value is None or isinstance(value, str):
        return value
    return str(value)


# 도메인 모델의 id 필드용. Mongo 에서 읽은 ObjectId 를 문자열 id 로 받는다.
ObjectIdStr = Annotated[str, BeforeValidator(_to_object_id_str)]
