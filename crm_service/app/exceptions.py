from __future__ import annotations

from typing import Any


class CrmServiceError(Exception):
    """crm-service 도메인 예외의 베이스.

    API 경계에서 status_code 와 message 로 공통 응답 envelope 을 만든다.
    """

    status_code: int = 500
    error_code: str = "internal_error"
    default_message: str = "internal server error"

    def __init__(self, message: str | None = None, *, data: Any = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class ValidationError(CrmServiceError):
    """필수 필드 누락/형식 오류."""

    status_code = 400
    error_code = "validation_error"
    default_message = "invalid request"


class MalformedPayload(ValidationError):
    """QR 코드 페이로드가 JSON 객체가 아님."""

    error_code = "malformed_payload"
    default_message = "QR code data is not valid JSON"


class MissingField(ValidationError):
    error_code = "missing_field"
    default_message = "required field is missing"


class AuthError(CrmServiceError):
    status_code = 401
    error_code = "unauthenticated"
    default_message = "authentication required"


class ForbiddenError(CrmServiceError):
    status_code = 403
    error_code = "forbidden"
    default_message = "permission denied"


class NotFoundError(CrmServiceError):
    status_code = 404
    error_code = "not_found"
    default_message = "resource not found"


class MemberNotFound(NotFoundError):
    """계정이 없거나, 비활성이거나, 회원 역할이 아님."""

    error_code = "member_not_found"
    default_message = "member account not found or inactive"


class InsufficientQuota(CrmServiceError):
    """잔여 quota 가 차감량보다 적음. 아무것도 기록되지 않은 상태에서 던진다."""

    status_code = 409
    error_code = "insufficient_quota"
    default_message = "insufficient quota"

    def __init__(self, current_quota: int, required_amount: int) -> None:
        self.current_quota = current_quota
        self.required_amount = required_amount
        super().__init__(
            data={
                "currentQuota": current_quota,
                "requiredAmount": required_amount,
                "shortage": max(required_amount - current_quota, 0),
            }
        )


class InternalError(CrmServiceError):
    """저장소/직렬화 실패 등 예상하지 못한 오류."""
