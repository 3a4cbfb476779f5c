from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from selene.core.astronomy import DEFAULT_MODEL, AstroModel
from selene.core.calendar import SeleneCalendar
from selene.core.timeutil import ms_to_jd
from selene.core.week import weekday_index_of
from selene.features.config import PlanetaryWeekday, lunation_label, planetary_weekday_from_index


@dataclass(frozen=True)
class SeleneDate:
    """
    Read-only snapshot of one instant on the Selene calendar.
    """
    year: int
    month: int
    day: int
    lunation_name: str
    lunation_length: int
    weekday: PlanetaryWeekday
    jd: float

    @property
    def label(self) -> str:
        return lunation_label(self.month, self.day)

    def __str__(self) -> str:
        return (
            f"Selene Date: Year {self.year}, Lunation {self.month} {self.lunation_name}, "
            f"Day {self.day}, Weekday {self.weekday.label}"
        )


def selene_date_for(instant_ms: int, *, model: Optional[AstroModel] = None) -> SeleneDate:
    cal = SeleneCalendar(instant_ms, model=model if model is not None else DEFAULT_MODEL)
    cal.compute_fields()
    lunation = cal.lunation()
    return SeleneDate(
        year=cal.get("YEAR"),
        month=cal.get("MONTH"),
        day=cal.get("DATE"),
        lunation_name=lunation.name,
        lunation_length=lunation.length,
        weekday=planetary_weekday_from_index(weekday_index_of(instant_ms)),
        jd=ms_to_jd(instant_ms),
    )


def format_selene_date(instant_ms: int, *, model: Optional[AstroModel] = None) -> str:
    """
    "Selene Date: Year Y, Lunation M Name, Day D, Weekday W" for an instant.
    Does not keep any calendar state.
    """
    return str(selene_date_for(instant_ms, model=model))
