from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

from .config import JD_OF_UNIX_EPOCH, MS_PER_DAY

UTC = timezone.utc
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def ms_to_jd(ms: int) -> float:
    """Milliseconds since the Unix epoch -> Julian Date (UTC)."""
    return ms / MS_PER_DAY + JD_OF_UNIX_EPOCH


def jd_to_ms(jd: float) -> int:
    """Julian Date (UTC) -> milliseconds since the Unix epoch, rounded to the nearest ms."""
    return int(round((jd - JD_OF_UNIX_EPOCH) * MS_PER_DAY))


def epoch_day_of_ms(ms: int) -> int:
    """Whole UTC days since 1970-01-01 (floored, so negative instants wrap correctly)."""
    return int(ms) // MS_PER_DAY


def epoch_day_to_ms(day: int) -> int:
    return int(day) * MS_PER_DAY


def epoch_day_of_jd(jd: float) -> int:
    """floor(JD - JD_OF_UNIX_EPOCH): the UTC civil day containing jd."""
    return int(math.floor(jd - JD_OF_UNIX_EPOCH))


def epoch_day_to_jd(day: int) -> float:
    """JD of 0h UTC of the given epoch day."""
    return day + JD_OF_UNIX_EPOCH


def datetime_to_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    delta = dt.astimezone(UTC) - _UNIX_EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def ms_to_datetime(ms: int) -> datetime:
    return _UNIX_EPOCH + timedelta(milliseconds=int(ms))


def jd_to_datetime(jd: float) -> datetime:
    """Julian Date (UTC) -> aware UTC datetime, to the ms. Only valid inside datetime's year 1..9999 range."""
    return ms_to_datetime(jd_to_ms(jd))


def decimal_year_of_jd(jd: float) -> float:
    return 2000.0 + (jd - 2451545.0) / 365.25


def delta_t_seconds(year: float) -> float:
    """
    Approximate TT - UT in seconds for a decimal year.

    Polynomial fits for 1961..2150, the long-term parabola elsewhere.
    The parabola grows without bound; far from the present it is only an
    order-of-magnitude figure.
    """
    if 1961.0 <= year < 1986.0:
        t = year - 1975.0
        return 45.45 + 1.067 * t - t * t / 260.0 - t ** 3 / 718.0
    if 1986.0 <= year < 2005.0:
        t = year - 2000.0
        return (
            63.86 + 0.3345 * t - 0.060374 * t * t + 0.0017275 * t ** 3
            + 0.000651814 * t ** 4 + 0.00002373599 * t ** 5
        )
    if 2005.0 <= year < 2050.0:
        t = year - 2000.0
        return 62.92 + 0.32217 * t + 0.005589 * t * t
    u = (year - 1820.0) / 100.0
    if 2050.0 <= year < 2150.0:
        return -20.0 + 32.0 * u * u - 0.5628 * (2150.0 - year)
    return -20.0 + 32.0 * u * u


def delta_t_days(jd: float) -> float:
    return delta_t_seconds(decimal_year_of_jd(jd)) / 86_400.0
