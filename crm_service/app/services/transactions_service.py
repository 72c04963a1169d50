from __future__ import annotations

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database

from ..models.identity import Identity
from ..models.transaction import Transaction
from ..repositories.interfaces import TransactionRepositoryInterface
from ..repositories.transaction_repository import TransactionRepository


class TransactionsService:
    """회원 본인의 quota ledger 조회."""

    def __init__(self, transaction_repo: TransactionRepositoryInterface) -> None:
        self._transaction_repo = transaction_repo

    def list_for_member(self, identity: Identity) -> list[Transaction]:
        """최신 거래가 먼저 오도록 정렬된 목록."""
        return self._transaction_repo.list_by_member(identity.user_id)


def get_transaction_repository(
    db: Database = Depends(get_database),
) -> TransactionRepositoryInterface:
    return TransactionRepository(db)


def get_transactions_service(
    transaction_repo: TransactionRepositoryInterface = Depends(
        get_transaction_repository
    ),
) -> TransactionsService:
    return TransactionsService(transaction_repo)
