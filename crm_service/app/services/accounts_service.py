"""계정 서비스.

관리자용 계정 생성/조회/수정/비활성화, 회원 본인 프로필 조회, 갱신(top-up)과
quota 보정을 처리한다. quota 변경은 레포지토리의 원자적 업데이트에 맡긴다.
"""

from __future__ import annotations

import logging

import bcrypt
from fastapi import Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import get_database
from common.types.datetime import utcnow

from ..config import AppConfig, get_app_config
from ..exceptions import MemberNotFound, NotFoundError, ValidationError
from ..models.account import (
    Account,
    AccountCreateInput,
    AccountUpdateInput,
    is_member_role,
)
from ..models.identity import Identity
from ..repositories.account_repository import AccountRepository
from ..repositories.interfaces import AccountRepositoryInterface


logger = logging.getLogger(__name__)


MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 50
MIN_PASSWORD_LENGTH = 6
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


class AccountsService:
    def __init__(self, account_repo: AccountRepositoryInterface, config: AppConfig) -> None:
        self._account_repo = account_repo
        self._config = config

    def _check_credentials(self, username: str, password: str) -> None:
        if not MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH:
            raise ValidationError(
                f"username must be {MIN_USERNAME_LENGTH}-{MAX_USERNAME_LENGTH} characters"
            )
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

    def _check_locations(self, locations: list[str]) -> None:
        valid_locations = set(self._config.regions.values())
        invalid = [loc for loc in locations if loc not in valid_locations]
        if invalid:
            raise ValidationError(f"invalid locations: {', '.join(invalid)}")

    def create(self, input_model: AccountCreateInput) -> Account:
        username = normalize_username(input_model.username)
        self._check_credentials(username, input_model.password)
        self._check_locations(input_model.locations)

        member = is_member_role(input_model.role)
        if member:
            if not (input_model.member_name or "").strip() or not (input_model.phone or "").strip():
                raise ValidationError("memberName and phone are required for member accounts")
            if input_model.initial_tickets < 0:
                raise ValidationError("initialTickets must not be negative")

        if self._account_repo.find_by_username(username) is not None:
            raise ValidationError("username already exists")

        initial_tickets = input_model.initial_tickets if member else 0
        now = utcnow()
        account = Account(
            username=username,
            password_hash=hash_password(input_model.password),
            role=input_model.role,
            is_active=True,
            locations=list(input_model.locations),
            member_name=(input_model.member_name or "").strip() or None,
            phone=(input_model.phone or "").strip() or None,
            initial_tickets=initial_tickets,
            quota=initial_tickets,
            created_at=now,
            updated_at=now,
        )

        try:
            created = self._account_repo.insert(account)
        except DuplicateKeyError as exc:
            raise ValidationError("username already exists") from exc

        logger.info("account created: %s (%s)", created.username, created.role)
        return created

    def update(self, account_id: str, input_model: AccountUpdateInput) -> Account:
        """아이디, 비밀번호, 지역 권한을 바꾼다. quota 와 ticket 카운터는 그대로 둔다."""
        username = normalize_username(input_model.username)
        self._check_credentials(username, input_model.password)
        if input_model.locations is not None:
            self._check_locations(input_model.locations)

        if self._account_repo.find_by_id(account_id) is None:
            raise NotFoundError("account not found")
        existing = self._account_repo.find_by_username(username)
        if existing is not None and existing.id != account_id:
            raise ValidationError("username already exists")

        try:
            account = self._account_repo.update_profile(
                account_id,
                username=username,
                password_hash=hash_password(input_model.password),
                locations=input_model.locations,
            )
        except DuplicateKeyError as exc:
            raise ValidationError("username already exists") from exc
        if account is None:
            raise NotFoundError("account not found")

        logger.info("account updated: %s", account.username)
        return account

    def list_accounts(self, role: str | None = None) -> list[Account]:
        return self._account_repo.list_active(role)

    def get(self, account_id: str) -> Account:
        account = self._account_repo.find_by_id(account_id)
        if account is None:
            raise NotFoundError("account not found")
        return account

    def deactivate(self, account_id: str) -> Account:
        account = self._account_repo.deactivate(account_id)
        if account is None:
            raise NotFoundError("account not found")
        logger.info("account deactivated: %s", account.username)
        return account

    def current_member(self, identity: Identity) -> Account:
        account = self._account_repo.find_by_id(identity.user_id)
        if account is None or not account.is_member:
            raise MemberNotFound()
        return account

    def validate_member(self, member_name: str, phone: str) -> Account:
        """이름과 전화번호로 회원을 확인한다 (출석 등록 화면용)."""
        member_name = (member_name or "").strip()
        phone = (phone or "").strip()
        if not member_name or not phone:
            raise ValidationError("name and contact are required")

        account = self._account_repo.find_member_by_contact(member_name, phone)
        if account is None:
            raise MemberNotFound()
        return account

    def renew(self, member_id: str, amount: int) -> Account:
        """quota top-up. added_tickets, quota, renewal_count 를 한 번에 올린다."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("amount must be a positive integer")

        account = self._account_repo.renew(member_id, amount)
        if account is None:
            raise MemberNotFound()

        logger.info(
            "member renewed",
            extra={"member_id": member_id, "amount": amount, "new_quota": account.quota},
        )
        return account

    def reconcile_quota(self, member_id: str) -> Account:
        account = self._account_repo.reconcile_quota(member_id)
        if account is None:
            raise MemberNotFound()
        logger.info(
            "member quota reconciled",
            extra={"member_id": member_id, "new_quota": account.quota},
        )
        return account


def get_account_repository(
    db: Database = Depends(get_database),
) -> AccountRepositoryInterface:
    """FastAPI DI용 AccountRepository 팩토리."""
    return AccountRepository(db)


def get_accounts_service(
    account_repo: AccountRepositoryInterface = Depends(get_account_repository),
    config: AppConfig = Depends(get_app_config),
) -> AccountsService:
    return AccountsService(account_repo=account_repo, config=config)
