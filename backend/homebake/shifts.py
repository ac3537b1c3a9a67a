# Overview: Shift resolution in the bakery's local timezone.

"""
Shift helpers.

A bakery day has two shifts. With the default settings the morning shift
runs 10:00-22:00 local time and the night shift 22:00-10:00.

Records carry the shift they were entered under, so queries bucket by the
shift column and a generous time window:

- morning of business date D: local D 00:00 to D+1 00:00
- night of business date D:   local D-1 15:00 to D 15:00

The 15:00 cutoff is clamped between the morning and night start hours so
a night shift always falls inside its own window.

The business date of a night shift is the local date on which it ends.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context

from .time_utils import utcnow


MORNING = "morning"
NIGHT = "night"
SHIFTS = (MORNING, NIGHT)

NIGHT_WINDOW_CUTOFF_HOUR = 15


@dataclass(frozen=True)
class ShiftSettings:
    timezone: str = "Africa/Lagos"
    morning_start_hour: int = 10
    night_start_hour: int = 22

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def night_window_cutoff_hour(self) -> int:
        """15:00, moved inside [morning start, night start] when the hours require it."""
        return min(max(NIGHT_WINDOW_CUTOFF_HOUR, self.morning_start_hour), self.night_start_hour)


@dataclass(frozen=True)
class ShiftBounds:
    shift: str
    business_date: date
    start: datetime  # UTC-naive
    end: datetime    # UTC-naive

    def to_dict(self) -> dict:
        from .time_utils import to_utc_z
        return {
            "shift": self.shift,
            "business_date": self.business_date.isoformat(),
            "start": to_utc_z(self.start),
            "end": to_utc_z(self.end),
        }


def get_settings() -> ShiftSettings:
    if not has_app_context():
        return ShiftSettings()
    cfg = current_app.config
    return ShiftSettings(
        timezone=cfg.get("BAKERY_TIMEZONE", "Africa/Lagos"),
        morning_start_hour=cfg.get("MORNING_SHIFT_START_HOUR", 10),
        night_start_hour=cfg.get("NIGHT_SHIFT_START_HOUR", 22),
    )


def parse_shift(value: str | None) -> str:
    """Validate a shift name. Raises ValueError."""
    shift = (value or "").strip().lower()
    if shift not in SHIFTS:
        raise ValueError("Valid shift (morning or night) is required")
    return shift


def _to_local(now_utc: datetime, settings: ShiftSettings) -> datetime:
    return now_utc.replace(tzinfo=timezone.utc).astimezone(settings.tz)


def _to_utc_naive(local: datetime) -> datetime:
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def current_shift(now: datetime | None = None, settings: ShiftSettings | None = None) -> str:
    settings = settings or get_settings()
    local = _to_local(now or utcnow(), settings)
    if settings.morning_start_hour <= local.hour < settings.night_start_hour:
        return MORNING
    return NIGHT


def business_date(now: datetime | None = None, settings: ShiftSettings | None = None) -> date:
    """Local date of the shift containing `now` (night shifts belong to the day they end)."""
    settings = settings or get_settings()
    local = _to_local(now or utcnow(), settings)
    if local.hour >= settings.night_start_hour:
        return local.date() + timedelta(days=1)
    return local.date()


def shift_bounds(now: datetime | None = None, settings: ShiftSettings | None = None) -> ShiftBounds:
    """Actual start/end of the shift containing `now`."""
    settings = settings or get_settings()
    now = now or utcnow()
    shift = current_shift(now, settings)
    day = business_date(now, settings)
    tz = settings.tz

    if shift == MORNING:
        start = datetime.combine(day, time(settings.morning_start_hour), tzinfo=tz)
        end = datetime.combine(day, time(settings.night_start_hour), tzinfo=tz)
    else:
        start = datetime.combine(day - timedelta(days=1), time(settings.night_start_hour), tzinfo=tz)
        end = datetime.combine(day, time(settings.morning_start_hour), tzinfo=tz)

    return ShiftBounds(shift=shift, business_date=day, start=_to_utc_naive(start), end=_to_utc_naive(end))


def shift_query_window(
    shift: str,
    on_date: date | None = None,
    settings: ShiftSettings | None = None,
) -> tuple[datetime, datetime]:
    """UTC-naive [start, end) window used to select records of `shift` on business date `on_date`."""
    settings = settings or get_settings()
    shift = parse_shift(shift)
    on_date = on_date or business_date(settings=settings)
    tz = settings.tz

    if shift == MORNING:
        start = datetime.combine(on_date, time(0), tzinfo=tz)
        end = datetime.combine(on_date + timedelta(days=1), time(0), tzinfo=tz)
    else:
        cutoff = settings.night_window_cutoff_hour
        start = datetime.combine(on_date - timedelta(days=1), time(cutoff), tzinfo=tz)
        end = datetime.combine(on_date, time(cutoff), tzinfo=tz)

    return _to_utc_naive(start), _to_utc_naive(end)


def record_business_date(created_at: datetime, shift: str, settings: ShiftSettings | None = None) -> date:
    """Business date whose query window for `shift` contains `created_at` (UTC-naive)."""
    settings = settings or get_settings()
    local = _to_local(created_at, settings)
    if shift == NIGHT and local.hour >= settings.night_window_cutoff_hour:
        return local.date() + timedelta(days=1)
    return local.date()


def local_day_window(on_date: date, settings: ShiftSettings | None = None) -> tuple[datetime, datetime]:
    """UTC-naive [start, end) for a local calendar day."""
    settings = settings or get_settings()
    start = datetime.combine(on_date, time(0), tzinfo=settings.tz)
    return _to_utc_naive(start), _to_utc_naive(start + timedelta(days=1))
