# src/selene/core/ephemeris.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from .astronomy import AstronomyEngine, MeeusModel, angdiff180
from .config import EphemerisSearchConfig
from .errors import EphemerisSearchError
from .newmoon import MoonPhase
from .rootfind import bracket_by_scan, brentq_jd
from .timeutil import jd_to_datetime

log = logging.getLogger(__name__)

DECEMBER_SOLSTICE_LON = 270.0


@dataclass(frozen=True)
class EphemerisModel:
    """
    AstroModel refined against a JPL ephemeris.

    The closed-form Meeus values seed each search; the event is then solved as
    a root of the apparent-longitude offset (Sun at 270° for the solstice,
    Moon - Sun at 0°, 90°, 180° or 270° for a lunar phase). Results are UTC
    Julian Dates.
    """
    eng: AstronomyEngine
    config: EphemerisSearchConfig = field(default_factory=EphemerisSearchConfig)
    seed: MeeusModel = field(default_factory=MeeusModel)

    def december_solstice_jd(self, gregorian_year: int) -> float:
        return _solstice_jd(self, int(gregorian_year))

    def new_moon_jd(self, k: int) -> float:
        return _phase_jd(self, int(k), MoonPhase.NEW_MOON)

    def moon_phase_jd(self, k: int, phase: MoonPhase) -> float:
        return _phase_jd(self, int(k), phase)


def _solve_near(
    f,
    guess_jd: float,
    window_days: float,
    cfg: EphemerisSearchConfig,
    what: str,
) -> float:
    a = guess_jd - window_days
    b = guess_jd + window_days
    try:
        brackets = bracket_by_scan(f, a, b, cfg.scan_step_hours / 24.0)
        if not brackets:
            raise EphemerisSearchError(f"{what}: no sign change in JD {a:.3f}..{b:.3f}")
        # closest bracket to the seed
        lo, hi = min(brackets, key=lambda ab: abs(0.5 * (ab[0] + ab[1]) - guess_jd))
        if lo == hi:
            return lo
        r = brentq_jd(f, lo, hi, tol_seconds=cfg.tol_seconds, max_iter=cfg.max_iter)
    except ValueError as e:
        raise EphemerisSearchError(f"{what}: {e}") from e
    log.debug("%s: seed JD %.6f -> %.6f (%.1f min)", what, guess_jd, r.jd, (r.jd - guess_jd) * 1440.0)
    return r.jd


@lru_cache(maxsize=512)
def _solstice_jd(model: EphemerisModel, year: int) -> float:
    def offset(jd: float) -> float:
        return model.eng.sun_lon_offset(jd_to_datetime(jd), DECEMBER_SOLSTICE_LON)

    guess = model.seed.december_solstice_jd(year)
    return _solve_near(offset, guess, model.config.solstice_window_days, model.config, f"solstice {year}")


@lru_cache(maxsize=8192)
def _phase_jd(model: EphemerisModel, k: int, phase: MoonPhase) -> float:
    target = phase.elongation_deg

    def elongation(jd: float) -> float:
        return angdiff180(model.eng.moon_sun_lon_diff(jd_to_datetime(jd)) - target)

    guess = model.seed.moon_phase_jd(k, phase)
    what = f"{phase.name.lower().replace('_', ' ')} k={k}"
    return _solve_near(elongation, guess, model.config.new_moon_window_days, model.config, what)


def ephemeris_model(
    *,
    ephemeris: Optional[Union[str, Path]] = None,
    ephemeris_path: Optional[Path] = None,
    config: Optional[EphemerisSearchConfig] = None,
) -> EphemerisModel:
    """EphemerisModel over a SkyfieldProvider (raises FileNotFoundError without an ephemeris)."""
    from .providers.skyfield_provider import SkyfieldProvider

    provider = SkyfieldProvider(ephemeris=ephemeris, ephemeris_path=ephemeris_path)
    return EphemerisModel(
        eng=AstronomyEngine(provider=provider),
        config=config if config is not None else EphemerisSearchConfig(),
    )
