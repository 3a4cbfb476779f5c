from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

# ============================================================
# Reference instants / astronomical constants
# ============================================================

# Unix epoch (1970-01-01T00:00Z) on the Julian Date scale
JD_OF_UNIX_EPOCH: float = 2440587.5
MS_PER_DAY: int = 86_400_000

# Planetary week: index 0 at the Unix epoch day
WEEK_EPOCH: float = 2440587.5

# Mean synodic month used to step between lunations (days)
MEAN_SYNODIC_MONTH: float = 29.530588

# Meeus lunation k=0: new moon of 2000-01-06 (JDE)
REFERENCE_NEW_MOON_JD: float = 2451550.09766

# Displayed year = anchor Gregorian year + offset.
# An instant before the December solstice of its Gregorian year belongs to the
# year anchored one solstice earlier: G + offset - ERA_CHANGEOVER.
EPOCH_YEAR_OFFSET: int = 3761
ERA_CHANGEOVER: int = 1


# ============================================================
# Display tables
# ============================================================

PLANET_WEEK_DAYS: Tuple[str, ...] = (
    "Merva",
    "Venuva",
    "Earava",
    "Marva",
    "Jupva",
    "Saturva",
    "Urava",
    "Neptuva",
)

# (name, description) per lunation index; 12-lunation years stop at "Frost Moon"
LUNATION_INFO: Tuple[Tuple[str, str], ...] = (
    ("Wolf Moon", "Howling in deep winter, marking the year's start."),
    ("Snow Moon", "Quiet reflection amid icy calm."),
    ("Storm Moon", "Heralding fierce, late-winter storms."),
    ("Worm Moon", "Signaling the first stirrings of renewal."),
    ("Seed Moon", "When hope is sown and new growth begins."),
    ("Flower Moon", "Celebrating blooming life in spring."),
    ("Honey Moon", "Early summer warmth and fruitful days."),
    ("Thunder Moon", "The intense, stormy heart of summer."),
    ("Corn Moon", "Crops ripen as autumn approaches."),
    ("Harvest Moon", "Bounty of early autumn reaping the earth's gifts."),
    ("Ancestor's Moon", "A time for remembrance and ancestral wisdom."),
    ("Frost Moon", "A delicate chill as the year winds down."),
    ("Hecate's Moon", "The secret, transformative moon that closes the cycle."),
)

MAX_LUNATIONS_PER_YEAR: int = len(LUNATION_INFO)
MIN_LUNATION_DAYS: int = 29
MAX_LUNATION_DAYS: int = 30


# ============================================================
# Runtime configuration
# ============================================================

@dataclass(frozen=True)
class CalendarConfig:
    """
    Calendar-level knobs.

    The anchor-year window bounds every year/lunation search. Outside it the
    polynomial models stop being monotonic enough to locate boundaries, so
    conversions raise CalendarOverflowError instead.
    """
    epoch_year_offset: int = EPOCH_YEAR_OFFSET
    era_changeover: int = ERA_CHANGEOVER
    week_epoch_jd: float = WEEK_EPOCH

    # Gregorian anchor years (astronomical numbering, year 0 exists)
    min_anchor_year: int = -50_000
    max_anchor_year: int = 50_000

    # cap for the local refinement loops (each normally needs 0..2 steps)
    max_refine_steps: int = 16

    # searches may look this many anchor years past the bounds
    search_margin_years: int = 16

    @property
    def min_year(self) -> int:
        return self.min_anchor_year + self.epoch_year_offset

    @property
    def max_year(self) -> int:
        return self.max_anchor_year + self.epoch_year_offset


@dataclass(frozen=True)
class EphemerisSearchConfig:
    """
    Root-finding windows for the ephemeris-backed model.
    All time units are explicit.
    """
    solstice_window_days: float = 3.0
    new_moon_window_days: float = 1.0
    scan_step_hours: int = 6
    tol_seconds: float = 0.5
    max_iter: int = 100


@dataclass(frozen=True)
class SeleneConfig:
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    ephemeris: EphemerisSearchConfig = field(default_factory=EphemerisSearchConfig)
