from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional, Tuple, Union

from skyfield.api import Loader

log = logging.getLogger(__name__)

SELENE_EPHEMERIS_ENV = "SELENE_EPHEMERIS"
SELENE_EPHEMERIS_PATH_ENV = "SELENE_EPHEMERIS_PATH"

EclipticFrameName = Literal[
    "of_date",   # true ecliptic and equinox of date
    "J2000",     # ecliptic J2000
    "builtin",   # obs.ecliptic_latlon() as shipped by Skyfield
]


def _resolve_ecliptic_frame(name: EclipticFrameName):
    """Skyfield frame object for `name`, or None for the builtin behavior."""
    if name == "builtin":
        return None

    from skyfield.framelib import ecliptic_frame, ecliptic_J2000_frame

    if name == "J2000":
        return ecliptic_J2000_frame
    return ecliptic_frame


# ----------------------------
# Ephemeris path resolution
# ----------------------------
def project_data_dir() -> Path:
    return Path(__file__).resolve().parents[4] / "data"


def find_ephemeris_path(
    *,
    ephemeris_path: Optional[Path] = None,
    ephemeris: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Resolution priority:
      1) ephemeris_path argument
      2) SELENE_EPHEMERIS_PATH environment variable
      3) ephemeris argument (or SELENE_EPHEMERIS): absolute path as is,
         bare name under the project data dir
      4) data/de440s.bsp if present, else data/de421.bsp
    """
    if ephemeris_path is not None:
        return Path(ephemeris_path).expanduser()

    env_path = os.environ.get(SELENE_EPHEMERIS_PATH_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()

    name = ephemeris if ephemeris is not None else (os.environ.get(SELENE_EPHEMERIS_ENV, "").strip() or None)
    if name is not None:
        p = Path(name)
        return p if p.is_absolute() else project_data_dir() / p

    data_dir = project_data_dir()
    p440s = data_dir / "de440s.bsp"
    return p440s if p440s.exists() else data_dir / "de421.bsp"


@dataclass(frozen=True)
class SkyfieldProvider:
    """
    Apparent geocentric ecliptic longitudes of the Sun and Moon from a JPL
    ephemeris loaded through Skyfield.
    """

    ephemeris_path: Optional[Path] = None
    ephemeris: Optional[Union[str, Path]] = None
    ecliptic_frame: EclipticFrameName = "of_date"

    def __post_init__(self) -> None:
        resolved = find_ephemeris_path(ephemeris_path=self.ephemeris_path, ephemeris=self.ephemeris)
        object.__setattr__(self, "ephemeris_path", resolved)

        if not resolved.exists():
            raise FileNotFoundError(
                f"Ephemeris not found: {resolved}\n"
                f"Place de440s.bsp or de421.bsp under {project_data_dir()}, "
                f"set {SELENE_EPHEMERIS_PATH_ENV}, or pass ephemeris_path=Path(...)."
            )

        loader = Loader(str(resolved.parent))
        eph = loader(resolved.name)
        ts = loader.timescale()

        object.__setattr__(self, "_eph", eph)
        object.__setattr__(self, "_ts", ts)
        object.__setattr__(self, "_earth", eph["earth"])
        object.__setattr__(self, "_sun", eph["sun"])
        object.__setattr__(self, "_moon", eph["moon"])
        object.__setattr__(self, "_frame", _resolve_ecliptic_frame(self.ecliptic_frame))

        start_utc, end_utc = self._coverage_utc()
        object.__setattr__(self, "_coverage", (start_utc, end_utc))
        log.debug("loaded ephemeris %s covering %s .. %s", resolved, start_utc, end_utc)

    def _coverage_utc(self) -> Tuple[datetime, datetime]:
        """Time span of the SPK segments; Skyfield only complains deep inside a computation."""
        segments = getattr(getattr(self._eph, "spk", None), "segments", None)
        if not segments:
            return (
                datetime.min.replace(tzinfo=timezone.utc),
                datetime.max.replace(tzinfo=timezone.utc),
            )
        t0 = self._ts.tt_jd(min(s.start_jd for s in segments))
        t1 = self._ts.tt_jd(max(s.end_jd for s in segments))
        return (
            t0.utc_datetime().replace(tzinfo=timezone.utc),
            t1.utc_datetime().replace(tzinfo=timezone.utc),
        )

    @property
    def coverage_utc(self) -> Tuple[datetime, datetime]:
        return self._coverage

    def _t(self, dt_utc: datetime):
        if dt_utc.tzinfo is None:
            raise ValueError("dt_utc must be timezone-aware")
        dt = dt_utc.astimezone(timezone.utc)
        start, end = self._coverage
        if dt < start or dt > end:
            raise ValueError(
                f"Requested datetime {dt.isoformat()} is outside ephemeris coverage "
                f"{start.isoformat()} .. {end.isoformat()} ({self.ephemeris_path})"
            )
        return self._ts.from_datetime(dt)

    def _lon_deg(self, body, dt_utc: datetime) -> float:
        obs = self._earth.at(self._t(dt_utc)).observe(body).apparent()
        if self._frame is None:
            _lat, lon, _dist = obs.ecliptic_latlon()
        else:
            _lat, lon, _dist = obs.frame_latlon(self._frame)
        return float(lon.degrees % 360.0)

    def sun_ecliptic_longitude_deg(self, dt_utc: datetime) -> float:
        return self._lon_deg(self._sun, dt_utc)

    def moon_ecliptic_longitude_deg(self, dt_utc: datetime) -> float:
        return self._lon_deg(self._moon, dt_utc)
