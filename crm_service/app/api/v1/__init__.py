from fastapi import APIRouter

from .accounts import router as accounts_router
from .qrcode import router as qrcode_router
from .transactions import router as transactions_router

api_router = APIRouter()
api_router.include_router(accounts_router, prefix="/accounts", tags=["accounts"])
api_router.include_router(
    qrcode_router
)  # prefix는 router 파일 내부에서 정의되어 있음 (/qrcode)
api_router.include_router(
    transactions_router, prefix="/transactions", tags=["transactions"]
)
