# src/selene/core/solstice.py
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Dict, Tuple


class Season(Enum):
    MARCH_EQUINOX = "march_equinox"
    JUNE_SOLSTICE = "june_solstice"
    SEPTEMBER_EQUINOX = "september_equinox"
    DECEMBER_SOLSTICE = "december_solstice"


Coeffs = Tuple[float, float, float, float, float]

# Meeus, Astronomical Algorithms ch.27, table 27.A (years -1000..+1000), Y = year / 1000
_MEAN_SEASONS_BEFORE_1000: Dict[Season, Coeffs] = {
    Season.MARCH_EQUINOX: (1721139.29189, 365242.13740, 0.06134, 0.00111, -0.00071),
    Season.JUNE_SOLSTICE: (1721233.25401, 365241.72562, -0.05323, 0.00907, 0.00025),
    Season.SEPTEMBER_EQUINOX: (1721325.70455, 365242.49558, -0.11677, -0.00297, 0.00074),
    Season.DECEMBER_SOLSTICE: (1721414.39987, 365242.88257, -0.00769, -0.00933, -0.00006),
}

# table 27.B (years +1000..+3000), Y = (year - 2000) / 1000
_MEAN_SEASONS_FROM_1000: Dict[Season, Coeffs] = {
    Season.MARCH_EQUINOX: (2451623.80984, 365242.37404, 0.05169, -0.00411, -0.00057),
    Season.JUNE_SOLSTICE: (2451716.56767, 365241.62603, 0.00325, 0.00888, -0.00030),
    Season.SEPTEMBER_EQUINOX: (2451810.21715, 365242.01767, -0.11575, 0.00337, 0.00078),
    Season.DECEMBER_SOLSTICE: (2451900.05952, 365242.74049, -0.06223, -0.00823, 0.00032),
}


def _horner(coeffs: Coeffs, y: float) -> float:
    acc = 0.0
    for c in reversed(coeffs):
        acc = acc * y + c
    return acc


@lru_cache(maxsize=4096)
def predict_season(gregorian_year: int, season: Season) -> float:
    """
    Mean instant (JDE) of an equinox or solstice for a Gregorian year.

    Closed-form quartic without the periodic correction terms; the two tables
    join at year 1000. Good to several minutes inside 1000..3000 and degrades
    smoothly outside it, but never fails for a finite integer year.
    """
    year = int(gregorian_year)
    if year < 1000:
        return _horner(_MEAN_SEASONS_BEFORE_1000[season], year / 1000.0)
    return _horner(_MEAN_SEASONS_FROM_1000[season], (year - 2000) / 1000.0)


def predict_december_solstice(gregorian_year: int) -> float:
    """Julian Date of the December solstice of the given Gregorian year."""
    return predict_season(gregorian_year, Season.DECEMBER_SOLSTICE)
