from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from selene.core.astronomy import DEFAULT_MODEL, MeeusModel, angdiff180, norm360
from selene.core.config import MEAN_SYNODIC_MONTH
from selene.core.newmoon import MoonPhase, estimate_lunation_ordinal, mean_new_moon_jd, moon_phase_jd, new_moon_jd
from selene.core.solstice import Season, predict_december_solstice, predict_season
from selene.core.timeutil import datetime_to_ms, delta_t_days, delta_t_seconds, ms_to_jd

UTC = timezone.utc


def _jd(*args: int) -> float:
    return ms_to_jd(datetime_to_ms(datetime(*args, tzinfo=UTC)))


def test_december_solstice_2024_close_to_published_instant():
    # 2024-12-21 09:20 UTC
    expected = _jd(2024, 12, 21, 9, 20)
    assert abs(predict_december_solstice(2024) - expected) < 0.01


@pytest.mark.parametrize(
    "year, month, day",
    [(2019, 12, 22), (2020, 12, 21), (2021, 12, 21), (2023, 12, 22)],
)
def test_december_solstice_lands_on_expected_utc_day(year, month, day):
    jd = DEFAULT_MODEL.december_solstice_jd(year)
    lo = _jd(year, month, day)
    assert lo <= jd < lo + 1.0


def test_solstice_is_monotonic_across_table_switch():
    jds = [predict_december_solstice(y) for y in range(990, 1011)]
    steps = [b - a for a, b in zip(jds, jds[1:])]
    assert all(365.0 < s < 366.0 for s in steps)


def test_solstice_defined_far_outside_tables():
    for y in (-50_000, -4000, 0, 9999, 50_000):
        assert math.isfinite(predict_december_solstice(y))


def test_seasons_are_ordered_within_a_year():
    jds = [predict_season(2024, s) for s in Season]
    assert jds == sorted(jds)


def test_new_moon_k0_is_january_2000():
    # 2000-01-06 18:14 UTC
    expected = _jd(2000, 1, 6, 18, 14)
    assert abs(new_moon_jd(0) - expected) < 0.01


def test_new_moon_may_2024():
    # 2024-05-08 03:22 UTC
    expected = _jd(2024, 5, 8, 3, 22)
    k = round(estimate_lunation_ordinal(expected))
    assert abs(new_moon_jd(k) - expected) < 0.01


# published instants of the May 2024 lunation (UTC)
MAY_2024_PHASES = [
    (MoonPhase.NEW_MOON, (2024, 5, 8, 3, 22)),
    (MoonPhase.FIRST_QUARTER, (2024, 5, 15, 11, 48)),
    (MoonPhase.FULL_MOON, (2024, 5, 23, 13, 53)),
    (MoonPhase.LAST_QUARTER, (2024, 5, 30, 17, 13)),
]


@pytest.mark.parametrize("phase, when", MAY_2024_PHASES)
def test_phases_of_may_2024(phase, when):
    k = round(estimate_lunation_ordinal(_jd(2024, 5, 8, 3, 22)))
    assert abs(moon_phase_jd(k, phase) - _jd(*when)) < 0.01


@pytest.mark.parametrize("phase, when", MAY_2024_PHASES)
def test_meeus_model_phases_are_ut(phase, when):
    k = round(estimate_lunation_ordinal(_jd(2024, 5, 8, 3, 22)))
    assert abs(DEFAULT_MODEL.moon_phase_jd(k, phase) - _jd(*when)) < 5.0 / 1440.0


def test_phases_follow_each_other_inside_the_lunation():
    for k in range(-40, 40, 9):
        jds = [moon_phase_jd(k, p) for p in MoonPhase] + [new_moon_jd(k + 1)]
        steps = [b - a for a, b in zip(jds, jds[1:])]
        assert all(5.5 < s < 9.5 for s in steps)


def test_phase_elongations():
    assert [p.elongation_deg for p in MoonPhase] == [0.0, 90.0, 180.0, 270.0]


def test_true_new_moon_stays_near_mean():
    for k in range(-50, 50, 7):
        assert abs(new_moon_jd(k) - mean_new_moon_jd(k)) < 0.75


def test_new_moon_spacing_is_a_synodic_month():
    for k in range(300, 320):
        gap = new_moon_jd(k + 1) - new_moon_jd(k)
        assert abs(gap - MEAN_SYNODIC_MONTH) < 0.6


@pytest.mark.parametrize("k", [-618_000, -400_000, 400_000, 618_000])
def test_new_moon_spacing_holds_far_from_j2000(k):
    for i in range(k, k + 13):
        gap = new_moon_jd(i + 1) - new_moon_jd(i)
        assert abs(gap - MEAN_SYNODIC_MONTH) < 0.6


def test_delta_t_near_present():
    assert abs(delta_t_seconds(2000.0) - 63.86) < 0.01
    assert 60.0 < delta_t_seconds(2024.5) < 80.0
    assert 0.0 < delta_t_days(_jd(2024, 5, 8)) < 80.0 / 86_400.0


@pytest.mark.parametrize("year", [1986.0, 2005.0, 2050.0, 2150.0])
def test_delta_t_segments_join(year):
    assert abs(delta_t_seconds(year - 1e-9) - delta_t_seconds(year)) < 1.0


def test_delta_t_grows_into_the_past():
    assert delta_t_seconds(1000.0) > delta_t_seconds(1800.0)
    assert delta_t_seconds(-1000.0) > 20_000.0


def test_meeus_model_subtracts_delta_t():
    m = MeeusModel()
    jde = predict_december_solstice(2024)
    assert m.december_solstice_jd(2024) == jde - delta_t_days(jde)
    assert m.new_moon_jd(10) == new_moon_jd(10) - delta_t_days(new_moon_jd(10))
    assert m.new_moon_jd(10) == m.moon_phase_jd(10, MoonPhase.NEW_MOON)
    assert DEFAULT_MODEL == m


def test_angle_helpers():
    assert norm360(-10.0) == 350.0
    assert norm360(720.0) == 0.0
    assert angdiff180(190.0) == -170.0
    assert angdiff180(-180.0) == 180.0
