from __future__ import annotations

"""
Shared argparse helpers for the check scripts.

Ephemeris lookup goes through selene.core.providers.skyfield_provider, so the
scripts resolve files exactly like ephemeris_model() does.
"""

import argparse
import json
import sys
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Iterator, Optional, Tuple

from selene.core.providers.skyfield_provider import SELENE_EPHEMERIS_PATH_ENV, find_ephemeris_path


@dataclass(frozen=True)
class ResolvedEphemeris:
    path: Path
    skip_reason: Optional[str]


def add_ephemeris_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ephemeris", default="", help="BSP file name under data/ or absolute path")
    parser.add_argument("--ephemeris-path", default="", help="explicit BSP path")
    parser.add_argument("--json", action="store_true")


def resolve_ephemeris(name_arg: str, path_arg: str) -> ResolvedEphemeris:
    name = (name_arg or "").strip() or None
    path_raw = (path_arg or "").strip()
    p = find_ephemeris_path(
        ephemeris=name,
        ephemeris_path=Path(path_raw).expanduser() if path_raw else None,
    )
    if p.exists():
        return ResolvedEphemeris(path=p, skip_reason=None)
    return ResolvedEphemeris(
        path=p,
        skip_reason=f"ephemeris not found: {p} (set {SELENE_EPHEMERIS_PATH_ENV} or pass --ephemeris-path)",
    )


def resolve_date_range(args: argparse.Namespace) -> Tuple[Optional[date], Optional[date]]:
    if args.start and args.end:
        return date.fromisoformat(args.start), date.fromisoformat(args.end)
    if args.date:
        d = date.fromisoformat(args.date)
        return d, d
    return None, None


def iter_dates(start: date, end: date) -> Iterator[date]:
    cur = start
    while cur <= end:
        yield cur
        cur = cur + timedelta(days=1)


def dump_json(obj: object) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def skip(msg: str) -> None:
    print(f"SKIP: {msg}")
    sys.exit(0)
