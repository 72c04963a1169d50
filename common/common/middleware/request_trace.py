import json
import logging
import time
import uuid
from urllib.parse import parse_qs

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"
SPAN_ID_HEADER = "X-Span-Id"

IGNORED_LOG_PATHS: set[str] = {"/health"}

# 요청 바디를 로그에 남기기 전에 가려야 하는 키
REDACTED_BODY_KEYS: frozenset[str] = frozenset({"password", "token", "jwt"})
MAX_LOGGED_BODY_LENGTH = 1024


def redact_body(text: str) -> str:
    """JSON 바디라면 민감한 키의 값을 ``***`` 로 바꾼다. JSON 이 아니면 그대로 둔다."""

    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if not isinstance(parsed, dict):
        return text

    redacted = {
        key: ("***" if key.lower() in REDACTED_BODY_KEYS else value)
        for key, value in parsed.items()
    }
    return json.dumps(redacted, ensure_ascii=False)


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """Request/Span ID 전파와 요청 단위 access 로그.

    - X-Request-Id 가 없으면 새로 만들고, X-Span-Id 는 없으면 "0" 을 쓴다.
    - request.state 와 응답 헤더에 같은 값을 싣는다.
    - 쓰기 요청은 (민감 필드를 가린) 바디 앞부분을 함께 남긴다.
    """

    def __init__(self, app, logger: logging.Logger | None = None) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        span_id = request.headers.get(SPAN_ID_HEADER) or "0"
        request.state.request_id = request_id
        request.state.span_id = span_id
        request.state.request_body = await self._read_body_snippet(request)

        should_log = request.url.path not in IGNORED_LOG_PATHS
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            if should_log:
                self._logger.exception(
                    "request failed",
                    extra=self._build_log_extra(
                        request, request_id, span_id, duration=time.monotonic() - start
                    ),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers.setdefault(SPAN_ID_HEADER, span_id)

        if should_log:
            self._logger.info(
                "completed request",
                extra=self._build_log_extra(
                    request,
                    request_id,
                    span_id,
                    status=response.status_code,
                    duration=time.monotonic() - start,
                ),
            )

        return response

    async def _read_body_snippet(self, request: Request) -> str | None:
        if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
            return None
        try:
            body_bytes = await request.body()
        except Exception:  # noqa: BLE001
            return None
        if not body_bytes:
            return None
        text = redact_body(body_bytes.decode("utf-8", errors="replace"))
        return text[:MAX_LOGGED_BODY_LENGTH]

    def _build_log_extra(
        self,
        request: Request,
        request_id: str,
        span_id: str,
        status: int | None = None,
        duration: float | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "span_id": span_id,
            "method": request.method,
            "path": request.url.path,
        }

        if request.url.query:
            parsed = parse_qs(request.url.query, keep_blank_values=True)
            extra["query_params"] = {
                key: values[0] if len(values) == 1 else values
                for key, values in parsed.items()
            }

        body = getattr(request.state, "request_body", None)
        if body:
            extra["body"] = body
        if status is not None:
            extra["status"] = status
        if duration is not None:
            extra["duration"] = f"{duration * 1000:.3f}ms"

        return extra
