from __future__ import annotations

from typing import Optional, Protocol

from .model import UserAccount


class UserRepository(Protocol):
    """Giao diện repository cho User.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, user_id: int) -> Optional[UserAccount]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        raise NotImplementedError
