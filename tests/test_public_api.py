from __future__ import annotations

from datetime import date

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from selene.api.app import app
from selene.api.public import get_selene_day, get_selene_range, get_selene_year


def test_selene_day_utc():
    res = get_selene_day("2024-06-01")
    assert res["date"] == "2024-06-01"
    assert res["meta"] == {"tz": "UTC", "model": "meeus"}
    s = res["selene"]
    assert (s["year"], s["month"], s["day"]) == (5784, 4, 25)
    assert s["lunation_name"] == "Seed Moon"
    assert s["weekday"] == {"index": 3, "label": "Marva", "planet": "Mars"}
    assert s["text"].startswith("Selene Date: Year 5784")


def test_selene_day_samples_local_noon():
    # noon at +09:00 is still 2024-06-01 in UTC
    res = get_selene_day(date(2024, 6, 1), tz="Asia/Tokyo")
    assert res["selene"]["day"] == 25
    assert res["sampled_at"].startswith("2024-06-01T03:00:00")


def test_selene_day_invalid_inputs():
    with pytest.raises(HTTPException) as e:
        get_selene_day("2024-13-01")
    assert e.value.status_code == 422
    with pytest.raises(HTTPException):
        get_selene_day("2024-06-01", tz="Nowhere/Invalid")
    with pytest.raises(HTTPException):
        get_selene_day("2024-06-01", model="vsop")


def test_selene_range():
    res = get_selene_range("2024-06-04", "2024-06-07")
    assert res["range"] == {"start": "2024-06-04", "end": "2024-06-07"}
    days = res["days"]
    assert [d["date"] for d in days] == ["2024-06-04", "2024-06-05", "2024-06-06", "2024-06-07"]
    # new moon of 2024-06-06 starts the next lunation
    assert [d["selene"]["day"] for d in days] == [28, 29, 1, 2]
    assert [d["selene"]["month"] for d in days] == [4, 4, 5, 5]


def test_selene_range_rejects_reversed_bounds():
    with pytest.raises(ValueError):
        get_selene_range("2024-06-07", "2024-06-01")


def test_selene_year():
    res = get_selene_year(5781)
    assert res["year"] == 5781
    assert res["lunation_count"] == 12
    assert res["days"] == sum(x["length"] for x in res["lunations"])
    assert res["lunations"][0]["name"] == "Wolf Moon"
    first = res["lunations"][0]
    assert first["full_moon_utc"].startswith("2021-01-28")
    assert first["deipnon_utc"].startswith("2021-02-10T00:00:00")
    assert {"first_quarter_utc", "last_quarter_utc"} <= set(first)


# ---- HTTP ----

@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def test_http_day(client):
    r = client.get("/api/v1/selene/day", params={"date": "2024-06-01"})
    assert r.status_code == 200
    body = r.json()
    assert body["selene"]["label"] == "05/25"
    assert body["tz"] == "UTC"


def test_http_day_bad_date(client):
    r = client.get("/api/v1/selene/day", params={"date": "06/01/2024"})
    assert r.status_code == 422


def test_http_range_limit(client):
    r = client.get(
        "/api/v1/selene/range",
        params={"start": "2024-01-01", "end": "2024-01-10", "limit_days": 5},
    )
    assert r.status_code == 422

    r = client.get("/api/v1/selene/range", params={"start": "2024-01-01", "end": "2024-01-03"})
    assert r.status_code == 200
    assert len(r.json()["days"]) == 3


def test_http_year(client):
    r = client.get("/api/v1/selene/year", params={"year": 5780})
    assert r.status_code == 200
    assert r.json()["lunation_count"] == 13

    r = client.get("/api/v1/selene/year", params={"year": 999_999})
    assert r.status_code == 422


def test_http_now(client):
    r = client.get("/api/v1/selene/now")
    assert r.status_code == 200
    body = r.json()
    assert body["year_from_solstice"] - body["selene"]["year"] in (0, 1)
