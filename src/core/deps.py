"""Shared FastAPI dependencies: staff identity and the clinic clock."""

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from fastapi import Header

from src.core.config import settings


class Clock:
    """Timezone-aware source of "now" for the clinic."""

    def __init__(self, tz: tzinfo | None = None, fixed: datetime | None = None):
        self.tz = tz or ZoneInfo(settings.default_timezone)
        self._fixed = fixed

    def now(self) -> datetime:
        if self._fixed is not None:
            return self._fixed.astimezone(self.tz) if self._fixed.tzinfo else self._fixed.replace(tzinfo=self.tz)
        return datetime.now(tz=self.tz)


def get_clock() -> Clock:
    return Clock()


async def get_actor(x_staff_name: str | None = Header(default=None)) -> str:
    """Identity of the staff member issuing a request.

    The value is taken at face value; there is no authentication layer.
    """
    if x_staff_name and x_staff_name.strip():
        return x_staff_name.strip()
    return settings.default_staff_name
