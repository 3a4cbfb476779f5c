# src/selene/core/week.py
from __future__ import annotations

import math
from datetime import timedelta

from .config import JD_OF_UNIX_EPOCH, MS_PER_DAY, PLANET_WEEK_DAYS, WEEK_EPOCH


def weekday_index_of_jd(jd: float, *, week_epoch: float = WEEK_EPOCH) -> int:
    """
    Position in the 8-day cycle.

    Floored on both steps: the day before week_epoch is index 7, not -1.
    """
    day_offset = math.floor(jd - week_epoch)
    return int(day_offset % len(PLANET_WEEK_DAYS))


def weekday_of_jd(jd: float, *, week_epoch: float = WEEK_EPOCH) -> str:
    return PLANET_WEEK_DAYS[weekday_index_of_jd(jd, week_epoch=week_epoch)]


def weekday_index_of(
    instant_ms: int,
    *,
    utc_offset: timedelta = timedelta(0),
    week_epoch: float = WEEK_EPOCH,
) -> int:
    # integer ms: exact at day boundaries
    epoch_ms = int(round((week_epoch - JD_OF_UNIX_EPOCH) * MS_PER_DAY))
    offset_ms = utc_offset // timedelta(milliseconds=1)
    day_offset = (int(instant_ms) + offset_ms - epoch_ms) // MS_PER_DAY
    return int(day_offset % len(PLANET_WEEK_DAYS))


def weekday_of(
    instant_ms: int,
    *,
    utc_offset: timedelta = timedelta(0),
    week_epoch: float = WEEK_EPOCH,
) -> str:
    """
    Planetary weekday name of an instant.

    utc_offset shifts the day boundary away from 0h UTC (e.g. +9h to count
    days on local wall-clock time).
    """
    return PLANET_WEEK_DAYS[weekday_index_of(instant_ms, utc_offset=utc_offset, week_epoch=week_epoch)]
