import json
import logging
import os
import sys


DEFAULT_SERVICE_NAME = "crm-service"

# extra 로 넘어오면 JSON 로그에 그대로 싣는 필드들.
# 앞쪽은 RequestTraceMiddleware 가, 뒤쪽은 ledger 관련 서비스 로그가 채운다.
EXTRA_LOG_KEYS: tuple[str, ...] = (
    "request_id",
    "span_id",
    "method",
    "path",
    "query_params",
    "status",
    "body",
    "duration",
    "member_id",
    "qr_code_number",
    "quota_used",
    "previous_quota",
    "new_quota",
    "amount",
)


def setup_logger(
    name: str = DEFAULT_SERVICE_NAME, level: str | None = None
) -> logging.Logger:
    """서비스 로거(와 비어 있다면 루트 로거)에 JSON 콘솔 핸들러를 붙인다.

    Args:
        name: SERVICE_NAME 환경변수가 없을 때 사용할 로거 이름
        level: 로그 레벨. None 이면 LOG_LEVEL 환경변수, 그것도 없으면 INFO

    Returns:
        설정된 서비스 로거
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(os.getenv("SERVICE_NAME", name))
    logger.setLevel(log_level)
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    # 모듈 로거(getLogger(__name__))와 라이브러리 로그도 같은 포맷으로 흘려보낸다.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return logger


class JsonFormatter(logging.Formatter):
    """한 줄 JSON 포맷터.

    datetime, level, logger, message 는 항상 포함하고, EXTRA_LOG_KEYS 중
    레코드에 있는 값과 service_name, 예외 정보(exc_info)를 덧붙인다.
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_LOG_KEYS:
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        service_name = getattr(record, "service_name", None) or os.getenv(
            "SERVICE_NAME", DEFAULT_SERVICE_NAME
        )
        log_record["service_name"] = service_name

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
