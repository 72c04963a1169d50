from __future__ import annotations

from pydantic import BaseModel

from .account import is_member_role


class Identity(BaseModel):
    """인증 게이트가 넘겨주는 요청 주체. 자격 증명은 다시 검증하지 않는다."""

    user_id: str
    username: str
    role: str

    @property
    def is_member(self) -> bool:
        return is_member_role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
