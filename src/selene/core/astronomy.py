# src/selene/core/astronomy.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from .newmoon import MoonPhase, moon_phase_jd
from .solstice import predict_december_solstice
from .timeutil import delta_t_days


def norm360(deg: float) -> float:
    x = deg % 360.0
    return x + 360.0 if x < 0 else x


def angdiff180(deg: float) -> float:
    """Map angle to (-180, 180]."""
    x = (deg + 180.0) % 360.0 - 180.0
    return 180.0 if x == -180.0 else x


# ============================================================
# Calendar model: where solstices and lunar phases come from
# ============================================================

@runtime_checkable
class AstroModel(Protocol):
    """
    Source of the astronomical events the calendar is built on.
    All return Julian Dates on the UTC scale.
    """
    def december_solstice_jd(self, gregorian_year: int) -> float: ...
    def new_moon_jd(self, k: int) -> float: ...
    def moon_phase_jd(self, k: int, phase: MoonPhase) -> float: ...


@dataclass(frozen=True)
class MeeusModel:
    """
    Closed-form model: seasonal quartic + mean phases with periodic terms.

    The series give dynamical time (JDE); an estimated ΔT is taken off so
    the results are on UT like the ephemeris model's.
    """

    def december_solstice_jd(self, gregorian_year: int) -> float:
        jde = predict_december_solstice(gregorian_year)
        return jde - delta_t_days(jde)

    def new_moon_jd(self, k: int) -> float:
        return self.moon_phase_jd(k, MoonPhase.NEW_MOON)

    def moon_phase_jd(self, k: int, phase: MoonPhase) -> float:
        jde = moon_phase_jd(int(k), phase)
        return jde - delta_t_days(jde)


DEFAULT_MODEL = MeeusModel()


# ============================================================
# Ephemeris provider plumbing
# ============================================================

@runtime_checkable
class AstroProvider(Protocol):
    def sun_ecliptic_longitude_deg(self, dt_utc: datetime) -> float: ...
    def moon_ecliptic_longitude_deg(self, dt_utc: datetime) -> float: ...


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC).")
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class AstronomyEngine:
    provider: AstroProvider

    def sun_lon(self, dt_utc: datetime) -> float:
        """Apparent solar ecliptic longitude (degrees) at dt_utc."""
        return norm360(self.provider.sun_ecliptic_longitude_deg(_as_utc(dt_utc)))

    def moon_lon(self, dt_utc: datetime) -> float:
        """Apparent lunar ecliptic longitude (degrees) at dt_utc."""
        return norm360(self.provider.moon_ecliptic_longitude_deg(_as_utc(dt_utc)))

    def moon_sun_lon_diff(self, dt_utc: datetime) -> float:
        """Δλ = λ☾ - λ☉ mapped to (-180, 180]. New moon ≈ 0."""
        return angdiff180(self.moon_lon(dt_utc) - self.sun_lon(dt_utc))

    def sun_lon_offset(self, dt_utc: datetime, target_deg: float) -> float:
        """Signed distance of the solar longitude from target_deg, in (-180, 180]."""
        return angdiff180(self.sun_lon(dt_utc) - target_deg)
