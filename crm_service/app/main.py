from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware
from common.mongo.client import close_client

from .api.health import router as health_router
from .api.schemas.common import ErrorResponse
from .api.v1 import api_router
from .cache import TtlCache
from .config import (
    AppConfig,
    get_app_env,
    get_service_port,
    load_cache_config,
    read_config_file,
)
from .exceptions import CrmServiceError


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    yield
    close_client()


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    error: str | None = None,
    data: object = None,
) -> JSONResponse:
    # production 에서는 내부 예외 문자열을 내보내지 않는다.
    if request.app.state.app_env == "production":
        error = None
    body = ErrorResponse(message=message, error=error, data=data)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


async def handle_service_error(request: Request, exc: CrmServiceError) -> JSONResponse:
    return _error_response(
        request,
        exc.status_code,
        exc.message,
        error=exc.error_code,
        data=exc.data,
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(
        request,
        400,
        "invalid request",
        error=str(exc.errors()),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error_response(request, 500, "internal server error", error=str(exc))


def create_app(config: AppConfig | None = None) -> FastAPI:
    setup_logger()
    app = FastAPI(
        title="CRM Quota Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # JWT_SECRET 없이도 앱 객체는 만들 수 있어야 한다 (인증은 요청 시점에 로드).
    if config is not None:
        cache_config = config.cache
        app.state.app_env = config.env
    else:
        cache_config = load_cache_config(read_config_file())
        app.state.app_env = get_app_env()
    app.state.cache = TtlCache(
        max_size=cache_config.max_size,
        default_ttl=cache_config.default_ttl_seconds,
    )

    # 공통 Request/Span ID 로그 미들웨어
    app.add_middleware(RequestTraceMiddleware)

    app.add_exception_handler(CrmServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "crm_service.app.main:app",
        host="0.0.0.0",
        port=get_service_port(),
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
