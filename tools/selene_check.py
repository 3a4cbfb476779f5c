from __future__ import annotations

"""
Selene date check script.

Uses:
- selene.features.selene_date.selene_date_for
- selene.core.ephemeris.ephemeris_model (with --model ephemeris)
"""

import argparse
from datetime import datetime, time as dt_time
from zoneinfo import ZoneInfo

from selene.core.astronomy import DEFAULT_MODEL
from selene.core.ephemeris import ephemeris_model
from selene.core.timeutil import datetime_to_ms
from selene.features.selene_date import selene_date_for

from tools.common import add_ephemeris_args, dump_json, iter_dates, resolve_date_range, resolve_ephemeris, skip


def main() -> None:
    parser = argparse.ArgumentParser(description="Selene calendar check")
    parser.add_argument("--date", help="YYYY-MM-DD")
    parser.add_argument("--start", help="YYYY-MM-DD")
    parser.add_argument("--end", help="YYYY-MM-DD")
    parser.add_argument("--tz", default="UTC")
    add_ephemeris_args(parser)
    parser.add_argument("--model", choices=["meeus", "ephemeris"], default="meeus")
    args = parser.parse_args()

    start, end = resolve_date_range(args)
    if start is None or end is None:
        parser.error("--date or --start/--end required")

    model = DEFAULT_MODEL
    if args.model == "ephemeris":
        eph = resolve_ephemeris(args.ephemeris, args.ephemeris_path)
        if eph.skip_reason:
            skip(eph.skip_reason)
        model = ephemeris_model(ephemeris_path=eph.path)

    tzinfo = ZoneInfo(args.tz)

    rows = []
    for cur in iter_dates(start, end):
        t = datetime.combine(cur, dt_time(12, 0), tzinfo=tzinfo)
        sd = selene_date_for(datetime_to_ms(t), model=model)

        if args.json:
            rows.append(
                {
                    "date": cur.isoformat(),
                    "year": sd.year,
                    "month": sd.month,
                    "day": sd.day,
                    "label": sd.label,
                    "lunation_name": sd.lunation_name,
                    "weekday": sd.weekday.label,
                }
            )
        else:
            sep = "\n" if sd.day == 1 and cur != start else ""
            print(f"{sep}{cur.isoformat()}  S={sd.year}/{sd.label}  {sd.lunation_name:<16} {sd.weekday.label}")

    if args.json:
        dump_json({"rows": rows})


if __name__ == "__main__":
    main()
