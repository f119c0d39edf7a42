from __future__ import annotations

from werkzeug.security import check_password_hash

from ..common.logger import get_logger
from ..core.exceptions import AuthenticationError
from .model import SessionUser
from .repository import UserRepository

logger = get_logger(__name__)


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email(email or "")
        if not user or not user.is_active:
            logger.info("login rejected email=%s", email)
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            logger.info("login rejected email=%s", email)
            raise AuthenticationError("Invalid email or password")

        logger.info("login ok user_id=%s role=%s", user.user_id, user.role.value)
        return SessionUser(user_id=user.user_id, email=user.email, name=user.name, role=user.role)
