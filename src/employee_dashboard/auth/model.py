from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    email: str
    name: str
    role: Role

    def to_session(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
        }

    @classmethod
    def from_session(cls, data) -> Optional["SessionUser"]:
        """Rebuild from a Flask session mapping; None when the session holds no user."""
        user_id = data.get("user_id")
        role = data.get("role")
        if not user_id or role not in {r.value for r in Role}:
            return None
        return cls(
            user_id=int(user_id),
            email=str(data.get("email") or ""),
            name=str(data.get("name") or ""),
            role=Role(role),
        )


@dataclass(frozen=True)
class UserAccount:
    """Thực thể miền (domain): tài khoản đăng nhập."""

    user_id: int
    email: str
    name: str
    password_hash: str
    role: Role
    is_active: bool = True
