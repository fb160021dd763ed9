"""Calendar arithmetic in the business timezone.

Daily rules compare calendar dates, not instants: a deal's dates are reduced
to a ``date`` in the business timezone (America/Los_Angeles by default) and
differences are whole days.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from dealflow.shared.utils.datetime import ensure_utc, parse_datetime, utc_now

DateLike = date | datetime | str


class DateService:
    """Business-calendar helpers bound to one timezone."""

    def __init__(self, timezone: str = "America/Los_Angeles") -> None:
        self.tz = ZoneInfo(timezone)

    def today(self, now: datetime | None = None) -> date:
        """Calendar date in the business timezone at ``now`` (default: current instant)."""
        return ensure_utc(now or utc_now()).astimezone(self.tz).date()

    def to_date(self, value: DateLike | None) -> date | None:
        """Reduce a date, datetime or ISO string to a business-calendar date.

        Plain dates and YYYY-MM-DD strings are taken as-is; instants are
        converted to the business timezone first.
        """
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return ensure_utc(value).astimezone(self.tz).date()
        if isinstance(value, date):
            return value
        if len(value) == 10:
            return date.fromisoformat(value)
        parsed = parse_datetime(value)
        return parsed.astimezone(self.tz).date() if parsed else None

    def days_until(self, target: DateLike | None, reference: DateLike) -> int | None:
        """Days from reference to target; negative when target is in the past."""
        t = self.to_date(target)
        r = self.to_date(reference)
        if t is None or r is None:
            return None
        return (t - r).days

    def days_since(self, past: DateLike | None, reference: DateLike) -> int | None:
        """Days from past to reference, floored at 0."""
        p = self.to_date(past)
        r = self.to_date(reference)
        if p is None or r is None:
            return None
        return max(0, (r - p).days)

    def is_same_day(self, a: DateLike | None, b: DateLike | None) -> bool:
        da, db = self.to_date(a), self.to_date(b)
        return da is not None and da == db

    def is_past(self, value: DateLike | None, reference: DateLike) -> bool:
        days = self.days_until(value, reference)
        return days is not None and days < 0

    def is_future(self, value: DateLike | None, reference: DateLike) -> bool:
        days = self.days_until(value, reference)
        return days is not None and days > 0

    def add_days(self, value: DateLike, days: int) -> date:
        d = self.to_date(value)
        if d is None:
            raise ValueError("add_days requires a date")
        return d + timedelta(days=days)
