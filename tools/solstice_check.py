from __future__ import annotations

"""
Solstice / new moon check: closed-form predictions vs the JPL ephemeris.

Uses:
- selene.core.astronomy.MeeusModel
- selene.core.ephemeris.ephemeris_model
"""

import argparse

from selene.core.astronomy import MeeusModel
from selene.core.ephemeris import ephemeris_model
from selene.core.newmoon import estimate_lunation_ordinal
from selene.core.timeutil import jd_to_datetime

from tools.common import add_ephemeris_args, dump_json, resolve_ephemeris, skip


def main() -> None:
    parser = argparse.ArgumentParser(description="December solstice / new moon check")
    parser.add_argument("--start-year", type=int, default=2000)
    parser.add_argument("--end-year", type=int, default=2030)
    parser.add_argument("--new-moons", action="store_true", help="also compare the new moons after each solstice")
    add_ephemeris_args(parser)
    args = parser.parse_args()

    if args.end_year < args.start_year:
        parser.error("--end-year must be >= --start-year")

    eph = resolve_ephemeris(args.ephemeris, args.ephemeris_path)
    if eph.skip_reason:
        skip(eph.skip_reason)

    seed = MeeusModel()
    precise = ephemeris_model(ephemeris_path=eph.path)

    rows = []
    for year in range(args.start_year, args.end_year + 1):
        jd_poly = seed.december_solstice_jd(year)
        jd_eph = precise.december_solstice_jd(year)
        row = {
            "year": year,
            "poly_utc": jd_to_datetime(jd_poly).isoformat(),
            "ephemeris_utc": jd_to_datetime(jd_eph).isoformat(),
            "diff_minutes": round((jd_poly - jd_eph) * 1440.0, 2),
        }
        if args.new_moons:
            k = int(estimate_lunation_ordinal(jd_eph)) + 1
            nm_poly = seed.new_moon_jd(k)
            nm_eph = precise.new_moon_jd(k)
            row["new_moon_k"] = k
            row["new_moon_utc"] = jd_to_datetime(nm_eph).isoformat()
            row["new_moon_diff_minutes"] = round((nm_poly - nm_eph) * 1440.0, 2)
        rows.append(row)

    if args.json:
        dump_json({"rows": rows})
        return

    for r in rows:
        line = f"{r['year']}  eph={r['ephemeris_utc']}  poly-eph={r['diff_minutes']:+.2f} min"
        if args.new_moons:
            line += f"  k={r['new_moon_k']} nm-diff={r['new_moon_diff_minutes']:+.2f} min"
        print(line)


if __name__ == "__main__":
    main()
