"""공통 스키마 정의."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class CamelModel(BaseModel):
    """API 입출력은 camelCase, 파이썬 쪽 필드는 snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    """성공 응답 envelope."""

    success: bool = True
    data: T | None = None
    message: str = "ok"


class ErrorResponse(CamelModel):
    """실패 응답 envelope. error 는 production 이 아닐 때만 채운다."""

    success: bool = False
    message: str
    error: str | None = None
    data: Any = None
