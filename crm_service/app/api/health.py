from __future__ import annotations

from fastapi import APIRouter


router = APIRouter()


@router.get("/health", summary="헬스 체크")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "crm-service"}
