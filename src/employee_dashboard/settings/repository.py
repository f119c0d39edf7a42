from __future__ import annotations

from typing import List, Optional, Protocol

from ..database.models import CompanySettings, User


class SettingsRepository(Protocol):
    def get_active(self) -> Optional[CompanySettings]:
        raise NotImplementedError

    def get_or_create_active(self) -> CompanySettings:
        raise NotImplementedError

    def list_managers(self) -> List[User]:
        raise NotImplementedError
