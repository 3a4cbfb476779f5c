# src/selene/core/calendar.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Protocol, Tuple, Union, runtime_checkable

from .astronomy import DEFAULT_MODEL, AstroModel
from .config import (
    CalendarConfig,
    MAX_LUNATION_DAYS,
    MAX_LUNATIONS_PER_YEAR,
    MIN_LUNATION_DAYS,
)
from .errors import CalendarStateError, InvalidFieldError
from .lunation import (
    Lunation,
    first_lunation_of_year,
    locate_ordinal,
    lunation_count,
    lunation_for_ordinal,
    lunation_length,
    lunation_start_day,
    year_of_ordinal,
)
from .timeutil import epoch_day_of_ms, epoch_day_to_ms, ms_to_jd
from .week import weekday_of

log = logging.getLogger(__name__)


class CalendarField(Enum):
    YEAR = "YEAR"
    MONTH = "MONTH"    # 0-based lunation index
    DATE = "DATE"      # 1-based day of lunation


FieldLike = Union[CalendarField, str]

_ATTR_BY_FIELD = {
    CalendarField.YEAR: "year",
    CalendarField.MONTH: "lunation_index",
    CalendarField.DATE: "day_of_lunation",
}


def coerce_field(field: FieldLike) -> CalendarField:
    """Accept a CalendarField or its name ("YEAR", "month", ...)."""
    if isinstance(field, CalendarField):
        return field
    if isinstance(field, str):
        try:
            return CalendarField[field.strip().upper()]
        except KeyError as e:
            raise InvalidFieldError(f"unknown calendar field: {field!r}") from e
    raise InvalidFieldError(f"unknown calendar field: {field!r}")


class Freshness(Enum):
    """Which side of a CalendarState is authoritative."""
    CLEARED = "cleared"
    FIELDS_AUTHORITATIVE = "fields"
    TIME_AUTHORITATIVE = "time"
    CONSISTENT = "consistent"


@dataclass
class CalendarState:
    """
    Plain mutable record behind a SeleneCalendar. Not synchronized.

    freshness:
      FIELDS_AUTHORITATIVE -> cached_instant is stale
      TIME_AUTHORITATIVE   -> year/lunation_index/day_of_lunation are stale
    """
    year: int = 0
    lunation_index: int = 0
    day_of_lunation: int = 1
    cached_instant: Optional[int] = None
    freshness: Freshness = Freshness.CLEARED

    def fields(self) -> Tuple[int, int, int]:
        return self.year, self.lunation_index, self.day_of_lunation


@runtime_checkable
class FieldCalendar(Protocol):
    """Generic get/set/add/roll contract over YEAR, MONTH, DATE."""

    def get(self, field: FieldLike) -> int: ...
    def set(self, field: FieldLike, value: int) -> None: ...
    def add(self, field: FieldLike, amount: int) -> None: ...
    def roll(self, field: FieldLike, up: bool) -> None: ...
    def clear(self) -> None: ...
    def compute_time(self) -> None: ...
    def compute_fields(self) -> None: ...
    def get_actual_maximum(self, field: FieldLike) -> int: ...
    def set_time_in_millis(self, ms: int) -> None: ...

    @property
    def time_in_millis(self) -> int: ...


# ============================================================
# Pure converters (fields <-> UTC epoch days)
# ============================================================

def epoch_day_from_fields(
    year: int,
    lunation_index: int,
    day_of_lunation: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = CalendarConfig(),
) -> int:
    """
    UTC epoch day named by the fields. Lenient: any index/day overflow simply
    lands in a later (or earlier) lunation.
    """
    k = first_lunation_of_year(year, model=model, config=config) + int(lunation_index)
    return lunation_start_day(k, model=model) + int(day_of_lunation) - 1


def fields_from_epoch_day(
    day: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = CalendarConfig(),
) -> Tuple[int, int, int]:
    """(year, lunation_index, day_of_lunation) of the UTC epoch day."""
    year, k = locate_ordinal(day, model=model, config=config)
    index = k - first_lunation_of_year(year, model=model, config=config)
    return year, index, int(day) - lunation_start_day(k, model=model) + 1


def instant_from_fields(
    year: int,
    lunation_index: int,
    day_of_lunation: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = CalendarConfig(),
) -> int:
    """Milliseconds of 0h UTC on the given Selene day."""
    return epoch_day_to_ms(
        epoch_day_from_fields(year, lunation_index, day_of_lunation, model=model, config=config)
    )


def fields_from_instant(
    ms: int,
    *,
    model: AstroModel = DEFAULT_MODEL,
    config: CalendarConfig = CalendarConfig(),
) -> Tuple[int, int, int]:
    return fields_from_epoch_day(epoch_day_of_ms(ms), model=model, config=config)


# ============================================================
# SeleneCalendar
# ============================================================

class SeleneCalendar:
    """
    Lenient field calendar over the Selene year / lunation / day.

    Fields and time are kept as a tagged pair: `set`, `add` and `roll` make the
    fields authoritative, `set_time_in_millis` makes the time authoritative,
    and `compute_time` / `compute_fields` reconcile the stale side.

    Out-of-range values given to `set` are stored as-is and normalized by the
    next `compute_time` (or by the carry step of `add` / `roll`).
    """

    def __init__(
        self,
        time_in_millis: Optional[int] = None,
        *,
        model: Optional[AstroModel] = None,
        config: Optional[CalendarConfig] = None,
    ) -> None:
        self._model: AstroModel = model if model is not None else DEFAULT_MODEL
        self._config: CalendarConfig = config if config is not None else CalendarConfig()
        self._state = CalendarState()
        if time_in_millis is not None:
            self.set_time_in_millis(time_in_millis)

    @classmethod
    def now(
        cls,
        *,
        clock: Callable[[], float] = time.time,
        model: Optional[AstroModel] = None,
        config: Optional[CalendarConfig] = None,
    ) -> "SeleneCalendar":
        """Calendar positioned at the host clock (seconds since the Unix epoch)."""
        return cls(int(clock() * 1000), model=model, config=config)

    @classmethod
    def of(
        cls,
        year: int,
        lunation_index: int = 0,
        day_of_lunation: int = 1,
        *,
        model: Optional[AstroModel] = None,
        config: Optional[CalendarConfig] = None,
    ) -> "SeleneCalendar":
        cal = cls(model=model, config=config)
        cal.set(CalendarField.YEAR, year)
        cal.set(CalendarField.MONTH, lunation_index)
        cal.set(CalendarField.DATE, day_of_lunation)
        return cal

    # ---- introspection ----
    @property
    def state(self) -> CalendarState:
        """A copy of the current state record."""
        return replace(self._state)

    @property
    def freshness(self) -> Freshness:
        return self._state.freshness

    @property
    def model(self) -> AstroModel:
        return self._model

    @property
    def config(self) -> CalendarConfig:
        return self._config

    def __repr__(self) -> str:
        s = self._state
        return (
            f"SeleneCalendar(year={s.year}, month={s.lunation_index}, date={s.day_of_lunation}, "
            f"time={s.cached_instant}, freshness={s.freshness.value})"
        )

    # ---- helpers ----
    def _require_defined(self) -> None:
        if self._state.freshness is Freshness.CLEARED:
            raise CalendarStateError("calendar is cleared; set a field or the time first")

    def _ensure_fields(self) -> None:
        self._require_defined()
        if self._state.freshness is Freshness.TIME_AUTHORITATIVE:
            self.compute_fields()

    def _current_fields(self) -> Tuple[int, int, int]:
        """Field view without mutating state (derived from time when time is authoritative)."""
        self._require_defined()
        s = self._state
        if s.freshness is Freshness.TIME_AUTHORITATIVE:
            return fields_from_instant(s.cached_instant, model=self._model, config=self._config)
        return s.fields()

    def _first(self, year: int) -> int:
        return first_lunation_of_year(year, model=self._model, config=self._config)

    def _ordinal(self, year: int, lunation_index: int) -> int:
        return self._first(year) + int(lunation_index)

    def _store_fields(self, year: int, lunation_index: int, day_of_lunation: int) -> None:
        s = self._state
        s.year = int(year)
        s.lunation_index = int(lunation_index)
        s.day_of_lunation = int(day_of_lunation)
        s.freshness = Freshness.FIELDS_AUTHORITATIVE

    def _normalized_fields(self) -> Tuple[int, int, int, int]:
        """
        (year, index, day, epoch_day) with every field back in range.
        Idempotent: normalized fields map to themselves.
        """
        y, i, d = self._state.fields()
        day = epoch_day_from_fields(y, i, d, model=self._model, config=self._config)
        y2, i2, d2 = fields_from_epoch_day(day, model=self._model, config=self._config)
        return y2, i2, d2, day

    def _normalize(self) -> None:
        y, i, d, _ = self._normalized_fields()
        self._store_fields(y, i, d)

    # ---- get / set ----
    def get(self, field: FieldLike) -> int:
        f = coerce_field(field)
        self._ensure_fields()
        return int(getattr(self._state, _ATTR_BY_FIELD[f]))

    def set(self, field: FieldLike, value: int) -> None:
        f = coerce_field(field)
        if self._state.freshness is Freshness.TIME_AUTHORITATIVE:
            # bring the other fields up to date before overwriting one of them
            self.compute_fields()
        setattr(self._state, _ATTR_BY_FIELD[f], int(value))
        self._state.freshness = Freshness.FIELDS_AUTHORITATIVE

    def clear(self) -> None:
        self._state = CalendarState()

    # ---- time ----
    @property
    def time_in_millis(self) -> int:
        self._require_defined()
        if self._state.freshness is Freshness.FIELDS_AUTHORITATIVE:
            self.compute_time()
        return int(self._state.cached_instant)

    @time_in_millis.setter
    def time_in_millis(self, ms: int) -> None:
        self.set_time_in_millis(ms)

    def set_time_in_millis(self, ms: int) -> None:
        self._state.cached_instant = int(ms)
        self._state.freshness = Freshness.TIME_AUTHORITATIVE

    @property
    def julian_day(self) -> float:
        return ms_to_jd(self.time_in_millis)

    def compute_time(self) -> None:
        """Fields -> instant (0h UTC of the Selene day). Normalizes the fields."""
        self._require_defined()
        if self._state.freshness is Freshness.TIME_AUTHORITATIVE:
            # time is already the source of truth
            self.compute_fields()
            return
        y, i, d, day = self._normalized_fields()
        s = self._state
        s.year, s.lunation_index, s.day_of_lunation = y, i, d
        s.cached_instant = epoch_day_to_ms(day)
        s.freshness = Freshness.CONSISTENT
        log.debug("compute_time: %d/%d/%d -> %d ms", y, i, d, s.cached_instant)

    def compute_fields(self) -> None:
        """Instant -> fields."""
        self._require_defined()
        s = self._state
        if s.freshness is Freshness.FIELDS_AUTHORITATIVE:
            self.compute_time()
            return
        if s.cached_instant is None:
            raise CalendarStateError("no instant to compute fields from")
        y, i, d = fields_from_instant(s.cached_instant, model=self._model, config=self._config)
        s.year, s.lunation_index, s.day_of_lunation = y, i, d
        s.freshness = Freshness.CONSISTENT
        log.debug("compute_fields: %d ms -> %d/%d/%d", s.cached_instant, y, i, d)

    # ---- arithmetic ----
    def add(self, field: FieldLike, amount: int) -> None:
        """
        YEAR:  year += amount (month/date untouched)
        MONTH: lunation index += amount, carried through each year's lunation count
        DATE:  day += amount, carried through lunation and year boundaries

        MONTH counts lunations, not index positions: add(MONTH, 13) from
        (Y, 0) gives (Y + 1, 0) only when Y has 13 lunations; from a
        12-lunation year it gives (Y + 1, 1).

        The carries are closed-form (ordinal / epoch-day arithmetic), so any
        amount finishes in bounded time; results outside the supported range
        raise CalendarOverflowError.
        """
        f = coerce_field(field)
        amount = int(amount)
        self._ensure_fields()
        y, i, d = self._state.fields()

        if f is CalendarField.YEAR:
            self._store_fields(y + amount, i, d)
        elif f is CalendarField.MONTH:
            k = self._ordinal(y, i) + amount
            y2 = year_of_ordinal(k, model=self._model, config=self._config)
            self._store_fields(y2, k - self._first(y2), d)
        else:
            day = epoch_day_from_fields(y, i, d, model=self._model, config=self._config) + amount
            self._store_fields(*fields_from_epoch_day(day, model=self._model, config=self._config))

    def roll(self, field: FieldLike, up: bool) -> None:
        """
        Step one unit up or down without carrying into the next larger field.

        DATE wraps within 1..length of the current lunation; MONTH wraps modulo
        the current year's lunation count; YEAR just moves by one.
        """
        f = coerce_field(field)
        self._ensure_fields()
        step = 1 if up else -1

        if f is CalendarField.YEAR:
            y, i, d = self._state.fields()
            self._store_fields(y + step, i, d)
            return

        self._normalize()
        y, i, d = self._state.fields()
        if f is CalendarField.MONTH:
            n = lunation_count(y, model=self._model, config=self._config)
            self._store_fields(y, (i + step) % n, d)
        else:
            n = lunation_length(self._ordinal(y, i), model=self._model)
            self._store_fields(y, i, (d - 1 + step) % n + 1)

    # ---- limits ----
    def get_minimum(self, field: FieldLike) -> int:
        f = coerce_field(field)
        if f is CalendarField.YEAR:
            return self._config.min_year
        if f is CalendarField.MONTH:
            return 0
        return 1

    def get_greatest_minimum(self, field: FieldLike) -> int:
        return self.get_minimum(field)

    def get_maximum(self, field: FieldLike) -> int:
        f = coerce_field(field)
        if f is CalendarField.YEAR:
            return self._config.max_year
        if f is CalendarField.MONTH:
            return MAX_LUNATIONS_PER_YEAR - 1
        return MAX_LUNATION_DAYS

    def get_least_maximum(self, field: FieldLike) -> int:
        f = coerce_field(field)
        if f is CalendarField.YEAR:
            return self._config.max_year
        if f is CalendarField.MONTH:
            return MAX_LUNATIONS_PER_YEAR - 2
        return MIN_LUNATION_DAYS

    def get_actual_maximum(self, field: FieldLike) -> int:
        """
        Largest valid value given the current larger fields. Read-only.

        DATE:  length of the lunation named by the current year/index
        MONTH: last lunation index of the current year (11 or 12)
        """
        f = coerce_field(field)
        y, i, _ = self._current_fields()
        if f is CalendarField.YEAR:
            return self._config.max_year
        k = self._ordinal(y, i)
        if f is CalendarField.DATE:
            return lunation_length(k, model=self._model)
        y2 = year_of_ordinal(k, model=self._model, config=self._config)
        return lunation_count(y2, model=self._model, config=self._config) - 1

    # ---- conveniences ----
    def lunation(self) -> Lunation:
        """Lunation record for the current (normalized) year/index."""
        y, i, _ = self._current_fields()
        return lunation_for_ordinal(self._ordinal(y, i), model=self._model, config=self._config)

    def weekday(self) -> str:
        return weekday_of(self.time_in_millis, week_epoch=self._config.week_epoch_jd)
