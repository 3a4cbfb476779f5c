from __future__ import annotations

"""
Feature-level display tables.

- planetary week: label index 0..7 => planet the day is named after
- lunations: 0-based index + day => short "MM/DD" label
"""

from dataclasses import dataclass
from typing import Dict

from selene.core.config import PLANET_WEEK_DAYS

PLANET_BY_WEEKDAY: Dict[str, str] = {
    "Merva": "Mercury",
    "Venuva": "Venus",
    "Earava": "Earth",
    "Marva": "Mars",
    "Jupva": "Jupiter",
    "Saturva": "Saturn",
    "Urava": "Uranus",
    "Neptuva": "Neptune",
}


def weekday_label(index: int) -> str:
    i = int(index)
    if not (0 <= i < len(PLANET_WEEK_DAYS)):
        raise ValueError(f"invalid weekday index: {index}")
    return PLANET_WEEK_DAYS[i]


def planet_of_weekday(label: str) -> str:
    try:
        return PLANET_BY_WEEKDAY[label]
    except KeyError as e:
        raise ValueError(f"unknown planetary weekday: {label!r}") from e


def lunation_label(index: int, day: int) -> str:
    """Short "MM/DD" label, 1-based month for display."""
    return f"{int(index) + 1:02d}/{int(day):02d}"


@dataclass(frozen=True)
class PlanetaryWeekday:
    index: int
    label: str
    planet: str

    def __str__(self) -> str:
        return self.label


def planetary_weekday_from_index(index: int) -> PlanetaryWeekday:
    label = weekday_label(index)
    return PlanetaryWeekday(index=int(index), label=label, planet=planet_of_weekday(label))
