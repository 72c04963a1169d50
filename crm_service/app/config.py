from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

APP_ENV = "APP_ENV"
JWT_SECRET = "JWT_SECRET"
CRM_SERVICE_PORT = "CRM_SERVICE_PORT"

DEBIT_POLICY_UNIT = "unit"
DEBIT_POLICY_PRICE = "price"
DEBIT_POLICIES = (DEBIT_POLICY_UNIT, DEBIT_POLICY_PRICE)

DEFAULT_REGIONS: dict[str, str] = {
    "WC": "灣仔",
    "WTS": "黃大仙",
    "SM": "石門",
}

DEFAULT_PRODUCTS: list[str] = ["奶昔", "跳舞"]


@dataclass(slots=True)
class QuotaConfig:
    """redeem 1회당 차감량 정책.

    - unit: 항상 1 장
    - price: QR 코드 가격만큼 (소수점은 올림)
    """

    debit_policy: str = DEBIT_POLICY_UNIT


@dataclass(slots=True)
class CacheConfig:
    max_size: int = 100
    default_ttl_seconds: float = 300.0


@dataclass(slots=True)
class AuthConfig:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    cookie_name: str = "auth_token"


@dataclass(slots=True)
class AppConfig:
    """crm-service 설정 루트."""

    env: str
    auth: AuthConfig
    regions: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_REGIONS))
    products: list[str] = field(default_factory=lambda: list(DEFAULT_PRODUCTS))
    quota: QuotaConfig = field(default_factory=QuotaConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    def region_name(self, region_code: str) -> str:
        """지역 코드의 표시 이름. 표에 없는 코드는 코드 그대로 돌려준다."""
        return self.regions.get(region_code, region_code)


def _find_config_path() -> Path | None:
    """작업 디렉토리부터 상위로 올라가며 config.yaml 을 찾는다."""

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def read_config_file() -> dict[str, Any]:
    path = _find_config_path()
    if path is None:
        logger.info("%s not found, using built-in defaults", DEFAULT_CONFIG_FILE_NAME)
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise RuntimeError(f"invalid {DEFAULT_CONFIG_FILE_NAME} at {path}: expected a mapping")
    return data


def load_regions(data: dict[str, Any]) -> dict[str, str]:
    raw = data.get("regions")
    if not raw:
        return dict(DEFAULT_REGIONS)
    if not isinstance(raw, dict):
        raise RuntimeError(f"invalid regions: expected a mapping, got {raw!r}")
    return {str(code).strip(): str(name).strip() for code, name in raw.items()}


def load_products(data: dict[str, Any]) -> list[str]:
    raw = data.get("products")
    if not raw:
        return list(DEFAULT_PRODUCTS)
    return [str(item).strip() for item in raw if str(item).strip()]


def load_quota_config(data: dict[str, Any]) -> QuotaConfig:
    section = data.get("quota") or {}
    policy = str(section.get("debit_policy") or DEBIT_POLICY_UNIT).strip().lower()
    if policy not in DEBIT_POLICIES:
        raise RuntimeError(
            f"invalid quota.debit_policy: {policy!r} (expected one of {DEBIT_POLICIES})"
        )
    return QuotaConfig(debit_policy=policy)


def load_cache_config(data: dict[str, Any]) -> CacheConfig:
    section = data.get("cache") or {}
    raw_size = section.get("max_size", 100)
    raw_ttl = section.get("default_ttl_seconds", 300)
    try:
        max_size = int(raw_size)
        ttl = float(raw_ttl)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(
            f"invalid cache config: max_size={raw_size!r} default_ttl_seconds={raw_ttl!r}"
        ) from exc
    if max_size <= 0:
        raise RuntimeError(f"cache.max_size must be positive, got {max_size}")
    return CacheConfig(max_size=max_size, default_ttl_seconds=ttl)


def load_auth_config() -> AuthConfig:
    secret = os.getenv(JWT_SECRET)
    if not secret:
        raise RuntimeError(f"{JWT_SECRET} environment variable is required for crm-service")
    return AuthConfig(jwt_secret=secret)


def get_app_env() -> str:
    return os.getenv(APP_ENV, "development").strip().lower()


def load_config() -> AppConfig:
    """환경 변수와 config.yaml 을 합쳐 AppConfig 를 만든다."""

    data = read_config_file()
    return AppConfig(
        env=get_app_env(),
        auth=load_auth_config(),
        regions=load_regions(data),
        products=load_products(data),
        quota=load_quota_config(data),
        cache=load_cache_config(data),
    )


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """FastAPI DI 용 설정 접근자 (프로세스당 한 번 로드)."""
    return load_config()


def get_service_port() -> int:
    return int(os.getenv(CRM_SERVICE_PORT, "8003"))
