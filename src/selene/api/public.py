from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta, timezone, time as dt_time
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from selene.core.astronomy import DEFAULT_MODEL, AstroModel
from selene.core.config import SeleneConfig
from selene.core.errors import SeleneError
from selene.core.ephemeris import ephemeris_model
from selene.core.lunation import current_year_from_solstice
from selene.core.timeutil import datetime_to_ms
from selene.features.lunations import named_lunations_of_year
from selene.features.selene_date import SeleneDate, selene_date_for

UTC = timezone.utc

router = APIRouter(prefix="/api/v1", tags=["selene"])

log = logging.getLogger("selene.api.public")

MODEL_MEEUS = "meeus"
MODEL_EPHEMERIS = "ephemeris"


# ============================================================
# Response Models
# ============================================================
class WeekdayOut(BaseModel):
    index: int
    label: str
    planet: str


class SeleneDateOut(BaseModel):
    year: int
    month: int = Field(description="0-based lunation index within the year")
    day: int = Field(description="1-based day of the lunation")
    label: str
    lunation_name: str
    lunation_length: int
    weekday: WeekdayOut
    text: str


class DayResponse(BaseModel):
    date: date
    tz: str
    sampled_at: datetime
    selene: SeleneDateOut


class RangeResponse(BaseModel):
    start: date
    end: date
    tz: str
    days: List[DayResponse]


class LunationOut(BaseModel):
    index: int
    name: str
    description: str
    length: int
    new_moon_utc: datetime
    first_quarter_utc: datetime
    full_moon_utc: datetime
    last_quarter_utc: datetime
    start_utc: datetime
    end_utc: datetime
    deipnon_utc: datetime = Field(description="0h UTC of the last day of the lunation")


class YearResponse(BaseModel):
    year: int
    lunation_count: int
    days: int
    lunations: List[LunationOut]


class NowResponse(BaseModel):
    utc: datetime
    year_from_solstice: int
    selene: SeleneDateOut


# ============================================================
# Helpers: parsing, tz, model
# ============================================================
def _parse_iso_date(s: str) -> date:
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid date format: {s} (expected YYYY-MM-DD)") from e


def _parse_date_any(x: str | date) -> date:
    if isinstance(x, date):
        return x
    return _parse_iso_date(str(x))


def _get_tzinfo(tz: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Unknown timezone: {tz}") from e


@lru_cache(maxsize=4)
def _ephemeris_model_cached(ephemeris: str, ephemeris_path: str) -> AstroModel:
    ephem = ephemeris.strip() or None
    ep_path = Path(ephemeris_path).expanduser() if ephemeris_path else None
    return ephemeris_model(ephemeris=ephem, ephemeris_path=ep_path, config=SeleneConfig().ephemeris)


def _resolve_model(
    model: str,
    ephemeris: Optional[str] = None,
    ephemeris_path: Optional[str | Path] = None,
) -> AstroModel:
    name = (model or MODEL_MEEUS).strip().lower()
    if name == MODEL_MEEUS:
        return DEFAULT_MODEL
    if name != MODEL_EPHEMERIS:
        raise HTTPException(status_code=422, detail=f"model must be '{MODEL_MEEUS}' or '{MODEL_EPHEMERIS}'")
    try:
        return _ephemeris_model_cached((ephemeris or "").strip(), str(ephemeris_path or ""))
    except FileNotFoundError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def _sample_instant(d: date, tzinfo: ZoneInfo) -> datetime:
    """Local noon of `d`, as UTC."""
    return datetime.combine(d, dt_time(12, 0), tzinfo=tzinfo).astimezone(UTC)


def _selene_out(sd: SeleneDate) -> SeleneDateOut:
    return SeleneDateOut(
        year=sd.year,
        month=sd.month,
        day=sd.day,
        label=sd.label,
        lunation_name=sd.lunation_name,
        lunation_length=sd.lunation_length,
        weekday=WeekdayOut(index=sd.weekday.index, label=sd.weekday.label, planet=sd.weekday.planet),
        text=str(sd),
    )


def _selene_for(t_utc: datetime, model: AstroModel) -> SeleneDate:
    try:
        return selene_date_for(datetime_to_ms(t_utc), model=model)
    except SeleneError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def _day_response(d: date, tz: str, tzinfo: ZoneInfo, model: AstroModel) -> DayResponse:
    t_utc = _sample_instant(d, tzinfo)
    return DayResponse(date=d, tz=tz, sampled_at=t_utc, selene=_selene_out(_selene_for(t_utc, model)))


# =========================================================
# Public JSON API (function-style, HTTP-ready)
# =========================================================
def get_selene_day(
    date_: str | date,
    *,
    tz: str = "UTC",
    model: str = MODEL_MEEUS,
    ephemeris: Optional[str] = None,
    ephemeris_path: Optional[str | Path] = None,
) -> dict:
    """
    Selene date of a civil day, sampled at local noon in `tz`.
    """
    d = _parse_date_any(date_)
    tzinfo = _get_tzinfo(tz)
    m = _resolve_model(model, ephemeris, ephemeris_path)

    out = _day_response(d, tz, tzinfo, m).model_dump(mode="json")
    out["meta"] = {"tz": tz, "model": model}
    return out


def get_selene_range(
    start: str | date,
    end: str | date,
    *,
    tz: str = "UTC",
    model: str = MODEL_MEEUS,
    ephemeris: Optional[str] = None,
    ephemeris_path: Optional[str | Path] = None,
) -> dict:
    s = _parse_date_any(start)
    e = _parse_date_any(end)
    if e < s:
        raise ValueError("end must be >= start")

    tzinfo = _get_tzinfo(tz)
    m = _resolve_model(model, ephemeris, ephemeris_path)

    days: List[dict] = []
    cur = s
    while cur <= e:
        days.append(_day_response(cur, tz, tzinfo, m).model_dump(mode="json"))
        cur = cur + timedelta(days=1)

    return {
        "meta": {"tz": tz, "model": model},
        "range": {"start": s.isoformat(), "end": e.isoformat()},
        "days": days,
    }


def get_selene_year(year: int, *, model: str = MODEL_MEEUS) -> dict:
    return _year_response(int(year), _resolve_model(model)).model_dump(mode="json")


def _year_response(year: int, m: AstroModel) -> YearResponse:
    try:
        lunations = named_lunations_of_year(year, model=m)
    except (SeleneError, OverflowError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return YearResponse(
        year=year,
        lunation_count=len(lunations),
        days=sum(x.length for x in lunations),
        lunations=[
            LunationOut(
                index=x.index,
                name=x.name,
                description=x.description,
                length=x.length,
                new_moon_utc=x.new_moon_utc,
                first_quarter_utc=x.first_quarter_utc,
                full_moon_utc=x.full_moon_utc,
                last_quarter_utc=x.last_quarter_utc,
                start_utc=x.start_utc,
                end_utc=x.end_utc,
                deipnon_utc=x.deipnon_utc,
            )
            for x in lunations
        ],
    )


# ============================================================
# Endpoints
# ============================================================
@router.get("/selene/day", response_model=DayResponse)
def get_day(
    date_str: str = Query(..., alias="date", description="YYYY-MM-DD"),
    tz: str = Query("UTC"),
    model: str = Query(MODEL_MEEUS, description="meeus | ephemeris"),
    timing: bool = Query(False, description="log timing"),
) -> DayResponse:
    d = _parse_iso_date(date_str)
    tzinfo = _get_tzinfo(tz)
    m = _resolve_model(model)

    t0 = time.perf_counter()
    resp = _day_response(d, tz, tzinfo, m)
    t1 = time.perf_counter()

    if timing:
        log.warning("timing /selene/day date=%s tz=%s model=%s total=%.3fs", d, tz, model, t1 - t0)
    return resp


@router.get("/selene/range", response_model=RangeResponse)
def get_range(
    start_str: str = Query(..., alias="start", description="YYYY-MM-DD"),
    end_str: str = Query(..., alias="end", description="YYYY-MM-DD"),
    tz: str = Query("UTC"),
    model: str = Query(MODEL_MEEUS, description="meeus | ephemeris"),
    limit_days: int = Query(370, ge=1, le=2000, description="maximum number of days"),
    timing: bool = Query(False, description="log timing"),
) -> RangeResponse:
    start = _parse_iso_date(start_str)
    end = _parse_iso_date(end_str)
    if end < start:
        raise HTTPException(status_code=422, detail="end must be >= start")

    days_count = (end - start).days + 1
    if days_count > limit_days:
        raise HTTPException(status_code=422, detail=f"range too large: {days_count} days (limit_days={limit_days})")

    tzinfo = _get_tzinfo(tz)
    m = _resolve_model(model)

    t0 = time.perf_counter()
    days: List[DayResponse] = []
    cur = start
    while cur <= end:
        days.append(_day_response(cur, tz, tzinfo, m))
        cur = cur + timedelta(days=1)
    t1 = time.perf_counter()

    if timing:
        log.warning(
            "timing /selene/range start=%s end=%s tz=%s days=%d total=%.3fs",
            start, end, tz, days_count, t1 - t0,
        )

    return RangeResponse(start=start, end=end, tz=tz, days=days)


@router.get("/selene/year", response_model=YearResponse)
def get_year(
    year: int = Query(..., description="Selene year, e.g. 5785"),
    model: str = Query(MODEL_MEEUS, description="meeus | ephemeris"),
) -> YearResponse:
    return _year_response(year, _resolve_model(model))


@router.get("/selene/now", response_model=NowResponse)
def get_now(model: str = Query(MODEL_MEEUS, description="meeus | ephemeris")) -> NowResponse:
    m = _resolve_model(model)
    now_utc = datetime.now(UTC)
    now_ms = datetime_to_ms(now_utc)
    try:
        year = current_year_from_solstice(now_ms, model=m)
    except SeleneError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return NowResponse(utc=now_utc, year_from_solstice=year, selene=_selene_out(_selene_for(now_utc, m)))
