from __future__ import annotations

import os
import re
from datetime import datetime, timedelta
from typing import Callable, Optional

import pytz

UTC = pytz.UTC

# IST, UTC+5:30
DEFAULT_UTC_OFFSET_MINUTES = 330

# Retroactive logs may go back at most this many hours (and never past midnight).
MAX_RETROACTIVE_HOURS = 12

_HOURS_AGO_RE = re.compile(r"(?<!\d)(\d{1,3})\s*(?:hours?|hrs?)\s*ago")
_MINUTES_AGO_RE = re.compile(r"(?<!\d)(\d{1,4})\s*(?:minutes?|mins?)\s*ago")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Clock:
    """
    Civil-time clock pinned to one fixed UTC offset.

    Every day-boundary calculation in the bot goes through here so the
    deterministic parser and the GPT fallback agree on what "today" means.
    """

    def __init__(
        self,
        offset_minutes: int = DEFAULT_UTC_OFFSET_MINUTES,
        utc_now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.offset_minutes = offset_minutes
        self.tz = pytz.FixedOffset(offset_minutes)
        self._utc_now = utc_now or _utc_now

    @classmethod
    def from_env(cls) -> "Clock":
        raw = os.getenv("HYDRABOT_UTC_OFFSET_MINUTES")
        if not raw:
            return cls()
        return cls(offset_minutes=int(raw))

    # ------------------------------------------------------------------ #
    # Instants
    # ------------------------------------------------------------------ #
    def now(self) -> datetime:
        return self._utc_now().astimezone(self.tz)

    def start_of_today(self) -> datetime:
        return self.now().replace(hour=0, minute=0, second=0, microsecond=0)

    def start_of_yesterday(self) -> datetime:
        return self.start_of_today() - timedelta(days=1)

    # ------------------------------------------------------------------ #
    # ISO strings (YYYY-MM-DDTHH:MM:SS+05:30)
    # ------------------------------------------------------------------ #
    def format_timestamp(self, moment: datetime) -> str:
        return moment.astimezone(self.tz).isoformat(timespec="seconds")

    def now_string(self) -> str:
        return self.format_timestamp(self.now())

    def start_of_today_string(self) -> str:
        return self.format_timestamp(self.start_of_today())

    def start_of_yesterday_string(self) -> str:
        return self.format_timestamp(self.start_of_yesterday())

    # ------------------------------------------------------------------ #
    # Retroactive window
    # ------------------------------------------------------------------ #
    def validate_retroactive_offset(self, hours: float) -> Optional[str]:
        """
        Turn "N hours ago" into a log timestamp.

        Returns None when the offset is negative, above 12 hours, or would
        land before midnight of the current civil day.
        """
        if hours < 0 or hours > MAX_RETROACTIVE_HOURS:
            return None

        now = self.now()
        target = now - timedelta(hours=hours)
        if target < self.start_of_today():
            return None

        return self.format_timestamp(target)

    @staticmethod
    def parse_relative_phrase(phrase: Optional[str]) -> Optional[float]:
        """
        Extract an hour offset from "N hours ago" / "N minutes ago".

        Vague phrases ("earlier", "before", "some time ago") give None so the
        caller asks the user instead of guessing.
        """
        if not phrase:
            return None

        lower = phrase.strip().lower()

        hours = _HOURS_AGO_RE.search(lower)
        if hours:
            return float(int(hours.group(1)))

        minutes = _MINUTES_AGO_RE.search(lower)
        if minutes:
            return int(minutes.group(1)) / 60

        return None

