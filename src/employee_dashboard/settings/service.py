from __future__ import annotations

from typing import Callable, ContextManager, Optional

from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.datetime_utils import parse_hhmm
from ..common.logger import get_logger
from ..core.constants import CACHE_TTL_VERY_LONG
from ..core.exceptions import ValidationError
from ..database.models import CompanySettings
from ..database.session import transaction
from .model import WorkingHours
from .repository import SettingsRepository
from .schemas import UpdateCompanySettingsRequest

logger = get_logger(__name__)


def _settings_dict(row: CompanySettings) -> dict:
    return {
        "id": row.id,
        "companyName": row.company_name,
        "companyEmail": row.company_email,
        "companyPhone": row.company_phone,
        "companyAddress": row.company_address,
        "workingHoursStart": row.working_hours_start,
        "workingHoursEnd": row.working_hours_end,
        "lateArrivalGraceMinutes": row.late_arrival_grace_minutes,
        "earlyDepartureGraceMinutes": row.early_departure_grace_minutes,
        "overtimeThresholdHours": row.overtime_threshold_hours,
        "workingDaysPerWeek": row.working_days_per_week,
        "timezone": row.timezone,
        "currency": row.currency,
    }


class SettingsService:
    """Use case: company settings and the working hours derived from them."""

    def __init__(
        self,
        settings: SettingsRepository,
        *,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._settings = settings
        self._cache = cache
        self._tx = transaction_factory

    def working_hours(self) -> WorkingHours:
        row = self._settings.get_active()
        if row is None:
            return WorkingHours()
        return WorkingHours(
            start=parse_hhmm(row.working_hours_start),
            end=parse_hhmm(row.working_hours_end),
            late_grace_minutes=row.late_arrival_grace_minutes,
            early_grace_minutes=row.early_departure_grace_minutes,
            overtime_threshold_hours=row.overtime_threshold_hours,
        )

    def get_company(self) -> dict:
        def load() -> dict:
            with self._tx():
                return _settings_dict(self._settings.get_or_create_active())

        if self._cache is None:
            return load()
        return self._cache.get_or_set("settings:company", load, ttl=CACHE_TTL_VERY_LONG, tags=[CacheTag.SETTINGS])

    def update_company(self, body: UpdateCompanySettingsRequest) -> dict:
        changes = body.model_dump(exclude_unset=True)
        start = changes.get("working_hours_start")
        end = changes.get("working_hours_end")
        with self._tx():
            row = self._settings.get_or_create_active()
            start = parse_hhmm(start or row.working_hours_start)
            end = parse_hhmm(end or row.working_hours_end)
            if start >= end:
                raise ValidationError(
                    "Working hours start must be before end",
                    details=[{"field": "workingHoursEnd", "message": "Must be after workingHoursStart"}],
                )
            for key, value in changes.items():
                setattr(row, key, value)
            result = _settings_dict(row)

        if self._cache is not None:
            self._cache.invalidate(CacheTag.SETTINGS, CacheTag.ATTENDANCE, CacheTag.DASHBOARD)
        logger.info("company settings updated fields=%s", sorted(changes))
        return result

    def list_managers(self) -> list:
        return [
            {"id": u.id, "name": u.name, "email": u.email, "role": u.role}
            for u in self._settings.list_managers()
        ]
