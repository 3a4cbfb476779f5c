# src/selene/core/lunation.py
from __future__ import annotations

import logging
import math
import os
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

from .astronomy import DEFAULT_MODEL, AstroModel
from .config import CalendarConfig, LUNATION_INFO
from .errors import CalendarOverflowError
from .newmoon import MoonPhase, estimate_lunation_ordinal
from .timeutil import epoch_day_of_jd, epoch_day_to_jd, ms_to_datetime, ms_to_jd

log = logging.getLogger(__name__)

DEFAULT_CONFIG = CalendarConfig()

# integer ratios for first-order estimates, so huge inputs never hit float conversion
_SYNODIC_MICRODAYS = 29_530_588      # mean synodic month * 1e6
_TROPICAL_DECIDAYS_PER_KYR = 3_652_422  # tropical year * 1e4


def _debug_enabled() -> bool:
    v = os.environ.get("SELENE_DEBUG", "")
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def lunation_name(index: int) -> str:
    return LUNATION_INFO[int(index) % len(LUNATION_INFO)][0]


def lunation_description(index: int) -> str:
    return LUNATION_INFO[int(index) % len(LUNATION_INFO)][1]


@dataclass(frozen=True)
class Lunation:
    """
    One lunation of a Selene year.

    Day 1 is the UTC civil day containing the new moon, so start/end are whole
    days and consecutive lunations share their boundary.

    ordinal:
      global lunation number k (k=0 is the new moon of 2000-01-06)
    start_day:
      UTC days since 1970-01-01 of day 1
    *_jd:
      phase instants (UTC Julian Dates); all fall inside the lunation
    """
    year: int
    index: int
    ordinal: int
    new_moon_jd: float
    start_day: int
    length: int
    first_quarter_jd: float
    full_moon_jd: float
    last_quarter_jd: float

    @property
    def end_day(self) -> int:
        return self.start_day + self.length

    @property
    def deipnon_day(self) -> int:
        """Last day of the lunation, the eve of the next new moon."""
        return self.end_day - 1

    @property
    def start_jd(self) -> float:
        return epoch_day_to_jd(self.start_day)

    @property
    def end_jd(self) -> float:
        return epoch_day_to_jd(self.end_day)

    @property
    def name(self) -> str:
        return lunation_name(self.index)

    @property
    def description(self) -> str:
        return lunation_description(self.index)

    def contains_jd(self, jd: float) -> bool:
        """Half-open [start_jd, end_jd)."""
        return self.start_jd <= jd < self.end_jd


# ============================================================
# Lunation boundaries
# ============================================================

def lunation_start_day(k: int, *, model: AstroModel = DEFAULT_MODEL) -> int:
    return epoch_day_of_jd(model.new_moon_jd(k))


def lunation_start_jd(k: int, *, model: AstroModel = DEFAULT_MODEL) -> float:
    return epoch_day_to_jd(lunation_start_day(k, model=model))


def lunation_length(k: int, *, model: AstroModel = DEFAULT_MODEL) -> int:
    """29 or 30: whole days between this lunation's start and the next one's."""
    return lunation_start_day(k + 1, model=model) - lunation_start_day(k, model=model)


def first_lunation_index_after(
    solstice_jd: float,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    """
    Smallest lunation ordinal k whose start_jd >= solstice_jd.

    Mean-month estimate from the reference new moon, then a local walk to the
    true boundary (normally zero or one step).
    """
    k = math.ceil(estimate_lunation_ordinal(solstice_jd))
    debug = _debug_enabled()
    for _ in range(config.max_refine_steps):
        if lunation_start_jd(k - 1, model=model) >= solstice_jd:
            k -= 1
        elif lunation_start_jd(k, model=model) < solstice_jd:
            k += 1
        else:
            if debug:
                log.debug("first lunation after JD %.6f: k=%d", solstice_jd, k)
            return k
    raise CalendarOverflowError(
        f"lunation boundary search did not converge near JD {solstice_jd!r} "
        f"(max_refine_steps={config.max_refine_steps})"
    )


# ============================================================
# Year <-> lunation ordinals
# ============================================================

def anchor_year_of(year: int, *, config: CalendarConfig = DEFAULT_CONFIG) -> int:
    """Gregorian year whose December solstice opens the given Selene year."""
    return int(year) - config.epoch_year_offset


def year_of_anchor(gregorian_year: int, *, config: CalendarConfig = DEFAULT_CONFIG) -> int:
    return int(gregorian_year) + config.epoch_year_offset


def check_year(year: int, *, config: CalendarConfig = DEFAULT_CONFIG) -> int:
    """Return year, or raise CalendarOverflowError outside config.min_year..config.max_year."""
    year = int(year)
    if not (config.min_year <= year <= config.max_year):
        raise CalendarOverflowError(
            f"year {year} outside supported range {config.min_year}..{config.max_year}"
        )
    return year


@lru_cache(maxsize=4096)
def _first_lunation_of_year(year: int, model: AstroModel, config: CalendarConfig) -> int:
    # unchecked within the search margin, so neighbours of the edge years resolve
    g = anchor_year_of(year, config=config)
    margin = config.search_margin_years
    if not (config.min_anchor_year - margin <= g <= config.max_anchor_year + margin):
        raise CalendarOverflowError(
            f"year {year} outside supported range {config.min_year}..{config.max_year}"
        )
    return first_lunation_index_after(model.december_solstice_jd(g), model=model, config=config)


def _year_start_day(year: int, model: AstroModel, config: CalendarConfig) -> int:
    return lunation_start_day(_first_lunation_of_year(year, model, config), model=model)


def first_lunation_of_year(
    year: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    """Ordinal of lunation index 0 of the Selene year."""
    return _first_lunation_of_year(check_year(year, config=config), model, config)


def lunation_count(
    year: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    """Number of lunations (12 or 13) between this year's solstice anchor and the next."""
    year = check_year(year, config=config)
    return _first_lunation_of_year(year + 1, model, config) - _first_lunation_of_year(year, model, config)


def year_start_day(
    year: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    return _year_start_day(check_year(year, config=config), model, config)


def year_of_ordinal(
    k: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    """Selene year containing lunation ordinal k."""
    k = int(k)
    g_est = 2000 + (k * _SYNODIC_MICRODAYS) // (_TROPICAL_DECIDAYS_PER_KYR * 100)
    y = year_of_anchor(g_est, config=config)
    for _ in range(config.max_refine_steps):
        if _first_lunation_of_year(y, model, config) > k:
            y -= 1
        elif _first_lunation_of_year(y + 1, model, config) <= k:
            y += 1
        else:
            return check_year(y, config=config)
    raise CalendarOverflowError(f"year search did not converge for lunation ordinal {k}")


def year_of_day(
    day: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    """Selene year containing the UTC epoch day."""
    day = int(day)
    g_est = 1970 + (day * 10_000) // _TROPICAL_DECIDAYS_PER_KYR
    y = year_of_anchor(g_est, config=config)
    for _ in range(config.max_refine_steps):
        if _year_start_day(y, model, config) > day:
            y -= 1
        elif _year_start_day(y + 1, model, config) <= day:
            y += 1
        else:
            return check_year(y, config=config)
    raise CalendarOverflowError(f"year search did not converge for epoch day {day}")


def locate_ordinal(
    day: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> Tuple[int, int]:
    """
    (year, k) such that lunation k of that year contains the UTC epoch day:
      start_day(k) <= day < start_day(k + 1)
    """
    day = int(day)
    y = year_of_day(day, model=model, config=config)
    k0 = first_lunation_of_year(y, model=model, config=config)
    k = k0 + ((day - lunation_start_day(k0, model=model)) * 1_000_000) // _SYNODIC_MICRODAYS
    debug = _debug_enabled()
    for _ in range(config.max_refine_steps):
        if lunation_start_day(k, model=model) > day:
            k -= 1
        elif lunation_start_day(k + 1, model=model) <= day:
            k += 1
        else:
            if debug:
                log.debug("epoch day %d -> year=%d k=%d (index %d)", day, y, k, k - k0)
            return y, k
    raise CalendarOverflowError(f"lunation search did not converge for epoch day {day}")


# ============================================================
# Lunation records
# ============================================================

def lunation_for_ordinal(
    k: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> Lunation:
    k = int(k)
    y = year_of_ordinal(k, model=model, config=config)
    start = lunation_start_day(k, model=model)
    return Lunation(
        year=y,
        index=k - first_lunation_of_year(y, model=model, config=config),
        ordinal=k,
        new_moon_jd=model.new_moon_jd(k),
        start_day=start,
        length=lunation_start_day(k + 1, model=model) - start,
        first_quarter_jd=model.moon_phase_jd(k, MoonPhase.FIRST_QUARTER),
        full_moon_jd=model.moon_phase_jd(k, MoonPhase.FULL_MOON),
        last_quarter_jd=model.moon_phase_jd(k, MoonPhase.LAST_QUARTER),
    )


def lunation_at(
    year: int,
    index: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> Lunation:
    """
    Lunation `index` of Selene `year`.
    Out-of-range indexes carry into neighbouring years (the record holds the normalized pair).
    """
    k = first_lunation_of_year(year, model=model, config=config) + int(index)
    return lunation_for_ordinal(k, model=model, config=config)


def locate_lunation(
    jd: float,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> Lunation:
    """Lunation whose [start_jd, end_jd) contains jd."""
    _, k = locate_ordinal(epoch_day_of_jd(jd), model=model, config=config)
    return lunation_for_ordinal(k, model=model, config=config)


def lunations_of_year(
    year: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> List[Lunation]:
    n = lunation_count(year, model=model, config=config)
    return [lunation_at(year, i, model=model, config=config) for i in range(n)]


# ============================================================
# "Current year" convenience
# ============================================================

def current_year_from_solstice(
    now_ms: Optional[int] = None,
    *,
    clock: Callable[[], float] = time.time,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = DEFAULT_CONFIG,
) -> int:
    """
    Selene year for `now` decided by the December solstice alone.

    G = Gregorian (UTC) year of now:
      JD(now) <  solstice(G) -> G + offset - era_changeover
      JD(now) >= solstice(G) -> G + offset

    The year here flips at the solstice itself; field conversion flips at the
    first lunation after it, so the two can disagree for the few days between.
    """
    if now_ms is None:
        now_ms = int(clock() * 1000)
    g = ms_to_datetime(now_ms).year
    solstice_jd = model.december_solstice_jd(g)
    if ms_to_jd(now_ms) < solstice_jd:
        return g + config.epoch_year_offset - config.era_changeover
    return g + config.epoch_year_offset
