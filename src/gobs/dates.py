"""Calendar-day boundaries.

Two different "days" exist in the product:

* the São Paulo trading day (fixed UTC-3, no DST) used for today's P/L,
  00:00 local = 03:00 UTC through 02:59:59.999 UTC the next day;
* the UTC calendar day used for portfolio snapshots.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

SAO_PAULO_TZ = timezone(timedelta(hours=-3), "America/Sao_Paulo")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def sao_paulo_day_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """(start, end) in UTC of the São Paulo calendar day containing ``now``."""
    if now is None:
        now = utcnow()
    local_day = as_utc(now).astimezone(SAO_PAULO_TZ).date()
    start = datetime.combine(local_day, time.min, tzinfo=SAO_PAULO_TZ).astimezone(timezone.utc)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end


def utc_today(now: datetime | None = None) -> date:
    if now is None:
        now = utcnow()
    return as_utc(now).date()


def utc_day_bounds(day: date) -> tuple[datetime, datetime]:
    """(00:00:00, 23:59:59.999999) UTC for ``day``."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    return start, end
