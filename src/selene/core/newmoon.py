# src/selene/core/newmoon.py
from __future__ import annotations

import math
from enum import Enum
from functools import lru_cache

from .config import MEAN_SYNODIC_MONTH, REFERENCE_NEW_MOON_JD

# Meeus ch.49: lunations per Julian century
_LUNATIONS_PER_CENTURY = 1236.85

# E drifts below zero after ~400 centuries; hold it at its +-40 century value
_E_CLAMP_CENTURIES = 40.0


class MoonPhase(Enum):
    """Principal phases as fractions of a lunation."""
    NEW_MOON = 0.0
    FIRST_QUARTER = 0.25
    FULL_MOON = 0.5
    LAST_QUARTER = 0.75

    @property
    def elongation_deg(self) -> float:
        """Moon - Sun longitude at the phase."""
        return self.value * 360.0


# (coefficient, E power, (M', M, F, Omega) multipliers)
_NEW_MOON_TERMS = (
    (-0.40720, 0, (1, 0, 0, 0)),
    (0.17241, 1, (0, 1, 0, 0)),
    (0.01608, 0, (2, 0, 0, 0)),
    (0.01039, 0, (0, 0, 2, 0)),
    (0.00739, 1, (1, -1, 0, 0)),
    (-0.00514, 1, (1, 1, 0, 0)),
    (0.00208, 2, (0, 2, 0, 0)),
    (-0.00111, 0, (1, 0, -2, 0)),
    (-0.00057, 0, (1, 0, 2, 0)),
    (0.00056, 1, (2, 1, 0, 0)),
    (-0.00042, 0, (3, 0, 0, 0)),
    (0.00042, 1, (0, 1, 2, 0)),
    (0.00038, 1, (0, 1, -2, 0)),
    (-0.00024, 1, (2, -1, 0, 0)),
    (-0.00017, 0, (0, 0, 0, 1)),
    (-0.00007, 0, (1, 2, 0, 0)),
    (0.00004, 0, (2, 0, -2, 0)),
    (0.00004, 0, (0, 3, 0, 0)),
    (0.00003, 0, (1, 1, -2, 0)),
    (0.00003, 0, (2, 0, 2, 0)),
    (-0.00003, 0, (1, 1, 2, 0)),
    (0.00003, 0, (1, -1, 2, 0)),
    (-0.00002, 0, (1, -1, -2, 0)),
    (-0.00002, 0, (3, 1, 0, 0)),
    (0.00002, 0, (4, 0, 0, 0)),
)

_FULL_MOON_TERMS = (
    (-0.40614, 0, (1, 0, 0, 0)),
    (0.17302, 1, (0, 1, 0, 0)),
    (0.01614, 0, (2, 0, 0, 0)),
    (0.01043, 0, (0, 0, 2, 0)),
    (0.00734, 1, (1, -1, 0, 0)),
    (-0.00515, 1, (1, 1, 0, 0)),
    (0.00209, 2, (0, 2, 0, 0)),
    (-0.00111, 0, (1, 0, -2, 0)),
    (-0.00057, 0, (1, 0, 2, 0)),
    (0.00056, 1, (2, 1, 0, 0)),
    (-0.00042, 0, (3, 0, 0, 0)),
    (0.00042, 1, (0, 1, 2, 0)),
    (0.00038, 1, (0, 1, -2, 0)),
    (-0.00024, 1, (2, -1, 0, 0)),
    (-0.00017, 0, (0, 0, 0, 1)),
    (-0.00007, 0, (1, 2, 0, 0)),
    (0.00004, 0, (2, 0, -2, 0)),
    (0.00004, 0, (0, 3, 0, 0)),
    (0.00003, 0, (1, 1, -2, 0)),
    (0.00003, 0, (2, 0, 2, 0)),
    (-0.00003, 0, (1, 1, 2, 0)),
    (0.00003, 0, (1, -1, 2, 0)),
    (-0.00002, 0, (1, -1, -2, 0)),
    (-0.00002, 0, (3, 1, 0, 0)),
    (0.00002, 0, (4, 0, 0, 0)),
)

_QUARTER_TERMS = (
    (-0.62801, 0, (1, 0, 0, 0)),
    (0.17172, 1, (0, 1, 0, 0)),
    (-0.01183, 1, (1, 1, 0, 0)),
    (0.00862, 0, (2, 0, 0, 0)),
    (0.00804, 0, (0, 0, 2, 0)),
    (0.00454, 1, (1, -1, 0, 0)),
    (0.00204, 2, (0, 2, 0, 0)),
    (-0.00180, 0, (1, 0, -2, 0)),
    (-0.00070, 0, (1, 0, 2, 0)),
    (-0.00040, 0, (3, 0, 0, 0)),
    (-0.00034, 1, (2, -1, 0, 0)),
    (0.00032, 1, (0, 1, 2, 0)),
    (0.00032, 1, (0, 1, -2, 0)),
    (-0.00028, 2, (1, 2, 0, 0)),
    (0.00027, 1, (2, 1, 0, 0)),
    (-0.00017, 0, (0, 0, 0, 1)),
    (-0.00005, 0, (1, -1, -2, 0)),
    (0.00004, 0, (2, 0, 2, 0)),
    (-0.00004, 0, (1, 1, 2, 0)),
    (0.00004, 0, (1, -2, 0, 0)),
    (0.00003, 0, (1, 1, -2, 0)),
    (0.00003, 0, (0, 3, 0, 0)),
    (0.00002, 0, (2, 0, -2, 0)),
    (0.00002, 0, (1, -1, 2, 0)),
    (-0.00002, 0, (3, 1, 0, 0)),
)

_PHASE_TERMS = {
    MoonPhase.NEW_MOON: _NEW_MOON_TERMS,
    MoonPhase.FIRST_QUARTER: _QUARTER_TERMS,
    MoonPhase.FULL_MOON: _FULL_MOON_TERMS,
    MoonPhase.LAST_QUARTER: _QUARTER_TERMS,
}


def mean_new_moon_jd(k: float) -> float:
    """Mean phase (JDE) for a lunation number, without periodic terms.

    Integer k is a new moon; k + 0.25/0.5/0.75 the following quarters.
    """
    t = k / _LUNATIONS_PER_CENTURY
    return (
        REFERENCE_NEW_MOON_JD
        + 29.530588861 * k
        + 0.00015437 * t * t
        - 0.000000150 * t ** 3
        + 0.00000000073 * t ** 4
    )


def _periodic(terms, e: float, mp: float, m: float, f: float, om: float) -> float:
    corr = 0.0
    for coeff, e_pow, (a_mp, a_m, a_f, a_om) in terms:
        arg = a_mp * mp + a_m * m + a_f * f + a_om * om
        corr += coeff * (e ** e_pow) * math.sin(arg)
    return corr


@lru_cache(maxsize=16384)
def moon_phase_jd(k: int, phase: MoonPhase = MoonPhase.NEW_MOON) -> float:
    """
    Instant (JDE) of a principal phase in lunation ordinal k.

    k=0 is the new moon of 2000-01-06; the quarters and full moon of
    lunation k follow its new moon. Mean phase plus the principal periodic
    terms; good to a few minutes over several millennia around J2000.
    """
    kk = int(k) + phase.value
    t = kk / _LUNATIONS_PER_CENTURY
    t2 = t * t
    t3 = t2 * t
    t4 = t3 * t

    te = max(-_E_CLAMP_CENTURIES, min(_E_CLAMP_CENTURIES, t))
    e = 1.0 - 0.002516 * te - 0.0000074 * te * te
    m = math.radians((2.5534 + 29.10535670 * kk - 0.0000014 * t2 - 0.00000011 * t3) % 360.0)
    mp = math.radians(
        (201.5643 + 385.81693528 * kk + 0.0107582 * t2 + 0.00001238 * t3 - 0.000000058 * t4) % 360.0
    )
    f = math.radians(
        (160.7108 + 390.67050284 * kk - 0.0016118 * t2 - 0.00000227 * t3 + 0.000000011 * t4) % 360.0
    )
    om = math.radians((124.7746 - 1.56375588 * kk + 0.0020672 * t2 + 0.00000215 * t3) % 360.0)

    corr = _periodic(_PHASE_TERMS[phase], e, mp, m, f, om)

    if phase in (MoonPhase.FIRST_QUARTER, MoonPhase.LAST_QUARTER):
        w = (
            0.00306
            - 0.00038 * e * math.cos(m)
            + 0.00026 * math.cos(mp)
            - 0.00002 * math.cos(mp - m)
            + 0.00002 * math.cos(mp + m)
            + 0.00002 * math.cos(2.0 * f)
        )
        corr += w if phase is MoonPhase.FIRST_QUARTER else -w

    return mean_new_moon_jd(kk) + corr


def new_moon_jd(k: int) -> float:
    """New moon instant (JDE) of lunation ordinal k."""
    return moon_phase_jd(int(k), MoonPhase.NEW_MOON)


def estimate_lunation_ordinal(jd: float) -> float:
    """Fractional lunation ordinal for jd from mean-month stepping."""
    return (jd - REFERENCE_NEW_MOON_JD) / MEAN_SYNODIC_MONTH
