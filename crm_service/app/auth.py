"""인증 게이트.

토큰 발급(로그인)은 외부 흐름이 담당하고, 여기서는 같은 비밀키로 서명된
JWT 를 검증해 요청 주체(Identity)만 만든다.

토큰 위치: ``Authorization: Bearer <jwt>`` 우선, 없으면 ``auth_token`` 쿠키.
페이로드: ``{"userId": ..., "username": ..., "role": ...}``
"""

from __future__ import annotations

import logging

import jwt
from fastapi import Depends, Request

from .config import AppConfig, AuthConfig, get_app_config
from .exceptions import AuthError, ForbiddenError
from .models.identity import Identity


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_token(request: Request, cookie_name: str) -> str | None:
    header = request.headers.get("authorization")
    if header and header.startswith(BEARER_PREFIX):
        token = header[len(BEARER_PREFIX):].strip()
        if token:
            return token
    return request.cookies.get(cookie_name) or None


def decode_token(token: str, config: AuthConfig) -> Identity:
    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("session expired, please log in again") from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("rejected token: %s", exc)
        raise AuthError("invalid session token") from exc

    user_id = payload.get("userId")
    username = payload.get("username")
    role = payload.get("role")
    if not user_id or not username or not role:
        raise AuthError("invalid session token")
    return Identity(user_id=str(user_id), username=str(username), role=str(role))


def get_current_identity(
    request: Request,
    config: AppConfig = Depends(get_app_config),
) -> Identity:
    token = extract_token(request, config.auth.cookie_name)
    if token is None:
        raise AuthError("not logged in")
    return decode_token(token, config.auth)


def require_member(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_member:
        raise ForbiddenError("only members can use this feature")
    return identity


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise ForbiddenError("admin permission required")
    return identity
