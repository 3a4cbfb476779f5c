from __future__ import annotations

from datetime import datetime, timezone

import pytest

from selene.core.astronomy import DEFAULT_MODEL
from selene.core.config import CalendarConfig
from selene.core.errors import CalendarOverflowError
from selene.core.lunation import (
    anchor_year_of,
    check_year,
    current_year_from_solstice,
    first_lunation_index_after,
    first_lunation_of_year,
    locate_lunation,
    locate_ordinal,
    lunation_at,
    lunation_count,
    lunation_length,
    lunation_start_jd,
    lunations_of_year,
    year_of_anchor,
    year_of_day,
    year_of_ordinal,
    year_start_day,
)
from selene.core.solstice import predict_december_solstice
from selene.core.timeutil import datetime_to_ms, epoch_day_of_ms, jd_to_ms, ms_to_jd

UTC = timezone.utc

# UTC epoch days (days since 1970-01-01)
DAY_2019_12_26 = 18256
DAY_2021_01_13 = 18640
DAY_2022_01_02 = 18994
DAY_2024_05_08 = 19851


def test_anchor_year_offset():
    assert anchor_year_of(5780) == 2019
    assert year_of_anchor(2019) == 5780


@pytest.mark.parametrize(
    "year, start_day, count",
    [
        (5780, DAY_2019_12_26, 13),
        (5781, DAY_2021_01_13, 12),
        (5782, DAY_2022_01_02, 12),
    ],
)
def test_year_boundaries(year, start_day, count):
    assert year_start_day(year) == start_day
    assert lunation_count(year) == count
    assert year_start_day(year + 1) == sum(x.length for x in lunations_of_year(year)) + start_day


def test_first_lunation_starts_on_or_after_solstice():
    for g in range(1990, 2040):
        sol = predict_december_solstice(g)
        k = first_lunation_index_after(sol)
        assert lunation_start_jd(k) >= sol
        assert lunation_start_jd(k - 1) < sol


def test_lunation_counts_are_12_or_13():
    counts = [lunation_count(y) for y in range(5700, 5800)]
    assert set(counts) <= {12, 13}
    # 19 solar years ~ 235 lunations
    assert sum(counts[:19]) in (234, 235, 236)


def test_lunations_are_contiguous_and_29_or_30_days():
    lunations = lunations_of_year(5784) + lunations_of_year(5785)
    for a, b in zip(lunations, lunations[1:]):
        assert a.end_day == b.start_day
        assert a.ordinal + 1 == b.ordinal
    assert all(x.length in (29, 30) for x in lunations)


def test_lunation_lengths_over_many_years():
    k0 = first_lunation_of_year(5700)
    k1 = first_lunation_of_year(5800)
    assert all(lunation_length(k) in (29, 30) for k in range(k0, k1))


def test_first_lunation_of_5780():
    lun = lunation_at(5780, 0)
    assert lun.year == 5780
    assert lun.index == 0
    assert lun.start_day == DAY_2019_12_26
    assert lun.length == 29
    assert lun.name == "Wolf Moon"


def test_lunation_at_carries_into_next_year():
    lun = lunation_at(5780, 13)
    assert (lun.year, lun.index) == (5781, 0)
    lun = lunation_at(5781, -1)
    assert (lun.year, lun.index) == (5780, 12)
    assert lun.name == "Hecate's Moon"


def test_locate_lunation_june_2024():
    jd = ms_to_jd(datetime_to_ms(datetime(2024, 6, 1, 12, tzinfo=UTC)))
    lun = locate_lunation(jd)
    assert (lun.year, lun.index) == (5784, 4)
    assert lun.start_day == DAY_2024_05_08
    assert lun.name == "Seed Moon"
    assert lun.contains_jd(jd)
    assert not lun.contains_jd(lun.end_jd)


def test_locate_jd_2450000():
    ms = jd_to_ms(2450000.0)
    assert ms == 813_240_000_000
    year, k = locate_ordinal(epoch_day_of_ms(ms))
    assert year == 5755
    assert year_of_ordinal(k) == 5755


def test_locate_ordinal_matches_bounds():
    for day in range(DAY_2019_12_26 - 40, DAY_2022_01_02 + 40, 3):
        year, k = locate_ordinal(day)
        lun = lunation_at(year, k - first_lunation_of_year(year))
        assert lun.start_day <= day < lun.end_day
        assert year_of_day(day) == year


def test_negative_epoch_days():
    # 1969-12-31: the 1969 solstice is followed by the new moon of 1970-01-07
    year, k = locate_ordinal(-1)
    assert year == 5729
    lun = lunation_at(year, k - first_lunation_of_year(year))
    assert lun.start_day <= -1 < lun.end_day


def test_out_of_range_year_overflows():
    cfg = CalendarConfig()
    with pytest.raises(CalendarOverflowError):
        first_lunation_of_year(cfg.max_year + 1)
    with pytest.raises(CalendarOverflowError):
        year_of_day(10**12)
    # still an OverflowError for generic callers
    with pytest.raises(OverflowError):
        first_lunation_of_year(cfg.min_year - 1)


def test_narrow_config_bounds():
    cfg = CalendarConfig(min_anchor_year=2000, max_anchor_year=2030)
    assert first_lunation_of_year(5780, config=cfg) == first_lunation_of_year(5780)
    with pytest.raises(CalendarOverflowError):
        first_lunation_of_year(5800, config=cfg)


# ---- current_year_from_solstice ----

def test_current_year_mid_year():
    now = datetime_to_ms(datetime(2024, 6, 1, tzinfo=UTC))
    assert current_year_from_solstice(now) == 5784


def test_current_year_flips_at_solstice():
    sol_ms = jd_to_ms(DEFAULT_MODEL.december_solstice_jd(2024))
    minute = 60_000
    assert current_year_from_solstice(sol_ms - minute) == 5784
    assert current_year_from_solstice(sol_ms + minute) == 5785


def test_current_year_uses_injected_clock():
    t = datetime(2024, 12, 31, tzinfo=UTC).timestamp()
    assert current_year_from_solstice(clock=lambda: t) == 5785


def test_current_year_honours_offset_config():
    cfg = CalendarConfig(epoch_year_offset=0, era_changeover=1)
    now = datetime_to_ms(datetime(2024, 6, 1, tzinfo=UTC))
    assert current_year_from_solstice(now, config=cfg) == 2023


# ---- supported range edges ----

def test_check_year_bounds():
    cfg = CalendarConfig()
    assert check_year(cfg.min_year) == cfg.min_year
    assert check_year(cfg.max_year) == cfg.max_year
    with pytest.raises(CalendarOverflowError):
        check_year(cfg.max_year + 1)


@pytest.mark.parametrize("edge", ["min_year", "max_year"])
def test_edge_years_are_fully_usable(edge):
    cfg = CalendarConfig()
    year = getattr(cfg, edge)
    n = lunation_count(year)
    assert n in (12, 13)
    lunations = lunations_of_year(year)
    assert [x.year for x in lunations] == [year] * n
    assert all(x.length in (29, 30) for x in lunations)
    start = year_start_day(year)
    assert year_of_day(start) == year
    assert year_of_day(lunations[-1].end_day - 1) == year
    assert locate_ordinal(start)[0] == year


def test_days_past_the_edges_overflow():
    cfg = CalendarConfig()
    with pytest.raises(CalendarOverflowError):
        year_of_day(year_start_day(cfg.min_year) - 1)
    last = lunations_of_year(cfg.max_year)[-1]
    with pytest.raises(CalendarOverflowError):
        year_of_day(last.end_day)
    with pytest.raises(CalendarOverflowError):
        year_of_ordinal(last.ordinal + 1)


# ---- phases ----

def test_lunation_phases_fall_inside_it():
    for lun in lunations_of_year(5784):
        assert lun.contains_jd(lun.new_moon_jd)
        assert lun.new_moon_jd < lun.first_quarter_jd < lun.full_moon_jd < lun.last_quarter_jd < lun.end_jd


def test_full_moon_of_may_2024_lunation():
    jd = ms_to_jd(datetime_to_ms(datetime(2024, 6, 1, 12, tzinfo=UTC)))
    lun = locate_lunation(jd)
    # 2024-05-23 13:53 UTC
    expected = ms_to_jd(datetime_to_ms(datetime(2024, 5, 23, 13, 53, tzinfo=UTC)))
    assert abs(lun.full_moon_jd - expected) < 5.0 / 1440.0


def test_deipnon_is_the_last_day():
    lun = lunation_at(5780, 0)
    assert lun.deipnon_day == lun.start_day + 28
    assert lunation_at(5780, 1).start_day == lun.deipnon_day + 1
