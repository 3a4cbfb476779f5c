from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from selene.core.config import MS_PER_DAY
from selene.core.timeutil import datetime_to_ms
from selene.features.config import (
    lunation_label,
    planet_of_weekday,
    planetary_weekday_from_index,
    weekday_label,
)
from selene.features.lunations import named_lunations_of_year
from selene.features.selene_date import format_selene_date, selene_date_for

UTC = timezone.utc


def test_format_selene_date():
    ms = datetime_to_ms(datetime(2024, 6, 1, 12, tzinfo=UTC))
    assert format_selene_date(ms) == "Selene Date: Year 5784, Lunation 4 Seed Moon, Day 25, Weekday Marva"


def test_selene_date_fields():
    sd = selene_date_for(datetime_to_ms(datetime(2024, 6, 1, 12, tzinfo=UTC)))
    assert (sd.year, sd.month, sd.day) == (5784, 4, 25)
    assert sd.label == "05/25"
    assert sd.weekday.planet == "Mars"
    assert sd.lunation_length == 29


def test_first_day_of_year_label():
    sd = selene_date_for(18256 * MS_PER_DAY)
    assert str(sd) == "Selene Date: Year 5780, Lunation 0 Wolf Moon, Day 1, Weekday Merva"


def test_named_lunations_of_13_lunation_year():
    lunations = named_lunations_of_year(5780)
    assert len(lunations) == 13
    assert [x.index for x in lunations] == list(range(13))
    assert lunations[0].start_utc == datetime(2019, 12, 26, tzinfo=UTC)
    assert lunations[-1].name == "Hecate's Moon"
    assert lunations[-1].end_utc == datetime(2021, 1, 13, tzinfo=UTC)
    for x in lunations:
        assert x.start_utc <= x.new_moon_utc < x.end_utc


def test_named_lunations_of_12_lunation_year_stops_at_frost_moon():
    lunations = named_lunations_of_year(5781)
    assert len(lunations) == 12
    assert lunations[-1].label == "Frost Moon"


def test_display_helpers():
    assert weekday_label(0) == "Merva"
    assert planet_of_weekday("Earava") == "Earth"
    assert planetary_weekday_from_index(7).planet == "Neptune"
    assert str(planetary_weekday_from_index(3)) == "Marva"
    assert lunation_label(0, 1) == "01/01"


@pytest.mark.parametrize("bad", [-1, 8])
def test_weekday_label_range(bad):
    with pytest.raises(ValueError):
        weekday_label(bad)


def test_unknown_names_rejected():
    with pytest.raises(ValueError):
        planet_of_weekday("Sunday")


def test_named_lunations_carry_phase_instants():
    for x in named_lunations_of_year(5784):
        assert x.start_utc <= x.new_moon_utc < x.first_quarter_utc < x.full_moon_utc
        assert x.full_moon_utc < x.last_quarter_utc < x.end_utc
        assert x.deipnon_utc == x.end_utc - timedelta(days=1)
