from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from selene.core.astronomy import DEFAULT_MODEL, AstroModel
from selene.core.lunation import Lunation, lunations_of_year
from selene.core.timeutil import epoch_day_to_ms, jd_to_datetime, ms_to_datetime


@dataclass(frozen=True)
class FeatureLunation:
    year: int
    index: int
    name: str
    description: str
    length: int
    start_jd: float
    end_jd: float
    new_moon_utc: datetime
    first_quarter_utc: datetime
    full_moon_utc: datetime
    last_quarter_utc: datetime
    start_utc: datetime
    end_utc: datetime
    deipnon_utc: datetime

    @property
    def label(self) -> str:
        return self.name


def enrich_lunation(lunation: Lunation) -> FeatureLunation:
    return FeatureLunation(
        year=lunation.year,
        index=lunation.index,
        name=lunation.name,
        description=lunation.description,
        length=lunation.length,
        start_jd=lunation.start_jd,
        end_jd=lunation.end_jd,
        new_moon_utc=jd_to_datetime(lunation.new_moon_jd),
        first_quarter_utc=jd_to_datetime(lunation.first_quarter_jd),
        full_moon_utc=jd_to_datetime(lunation.full_moon_jd),
        last_quarter_utc=jd_to_datetime(lunation.last_quarter_jd),
        start_utc=jd_to_datetime(lunation.start_jd),
        end_utc=jd_to_datetime(lunation.end_jd),
        deipnon_utc=ms_to_datetime(epoch_day_to_ms(lunation.deipnon_day)),
    )


def named_lunations_of_year(year: int, *, model: Optional[AstroModel] = None) -> List[FeatureLunation]:
    """All lunations of a Selene year with display names and UTC bounds."""
    lunations = lunations_of_year(year, model=model if model is not None else DEFAULT_MODEL)
    return [enrich_lunation(x) for x in lunations]
