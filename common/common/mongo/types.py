from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


def ensure_utc_datetime(value: Any) -> datetime:
    """datetime(또는 ISO8601 문자열)을 UTC aware datetime 으로 정규화한다."""

    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_object_id(value: Any) -> ObjectId:
    """str / ObjectId 를 ObjectId 로 변환한다. 형식이 틀리면 InvalidId 가 그대로 전파된다."""

    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise TypeError("ObjectId cannot be None")
    return ObjectId(str(value))


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """외부 입력(경로 파라미터, 토큰 등)의 id 를 변환한다. 잘못된 형식이면 None."""

    try:
        return to_object_id(value)
    except (InvalidId, TypeError):
        return None


def from_object_id(value: Optional[ObjectId]) -> Optional[str]:
    if value is None:
        return None
    return str(value)


PyObjectId = Annotated[ObjectId, BeforeValidator(to_object_id)]
MongoDateTime = Annotated[datetime, BeforeValidator(ensure_utc_datetime)]


class BaseDocument(BaseModel):
    """MongoDB 도큐먼트 공통 베이스.

    - ``_id`` 는 ``id`` 필드로 매핑된다.
    - created_at / updated_at 은 모든 컬렉션이 공통으로 가진다.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: MongoDateTime
    updated_at: MongoDateTime

    def to_mongo_record(self) -> dict[str, Any]:
        """insert 용 dict. ``_id`` 가 None 이면 제외해서 Mongo 가 ObjectId 를 생성하게 한다."""

        return self.model_dump(by_alias=True, exclude_none=True)


def build_document_data_from_domain(
    domain_model: BaseModel, *, exclude: set[str] | None = None
) -> dict[str, Any]:
    """도메인 모델을 도큐먼트 검증용 dict 로 변환한다.

    도메인 모델의 ``id``(str) 는 ``_id`` 로 옮겨 담는다. 아직 저장 전이라
    id 가 None 이면 키를 빼서 Mongo 가 ObjectId 를 만들게 한다.
    """

    data = domain_model.model_dump(exclude=exclude)
    if "id" in data:
        object_id = data.pop("id")
        if object_id is not None:
            data["_id"] = object_id
    return data
