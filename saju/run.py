"""
CLI wrapper around BirthMoment.

Usage:
    python3 saju/run.py --birth-date YYYY-MM-DD [--birth-time HH:MM] --gender male \
        [--longitude LON] [--latitude LAT] [--meridian DEG] [--apply-correction] \
        [--strategy pairwise|cosine|fourier] [--series START END] [--verbose]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from saju.birth_moment import SEOUL_LONGITUDE, BirthMoment
from saju.continuous import STRATEGIES, get_strategy
from saju.errors import InvalidInputError, SajuError
from saju.relations import describe
from saju.solar_time import KST_MERIDIAN, standard_meridian_for


def parse_moment(args) -> BirthMoment:
    try:
        birth_date = datetime.strptime(args.birth_date, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError(f"Bad birth date {args.birth_date!r}, expected YYYY-MM-DD",
                                code="INVALID_DATE") from None
    hour = minute = None
    if args.birth_time:
        try:
            hour, minute = map(int, args.birth_time.split(":"))
        except ValueError:
            raise InvalidInputError(f"Bad birth time {args.birth_time!r}, expected HH:MM",
                                    code="INVALID_TIME") from None
    return BirthMoment(birth_date.year, birth_date.month, birth_date.day, hour, minute,
                       args.gender, args.longitude)


def build_report(args) -> dict:
    moment = parse_moment(args)
    correction = None
    if args.apply_correction and moment.has_time:
        meridian = args.meridian
        if meridian is None and args.latitude is not None:
            when = datetime(moment.year, moment.month, moment.day, moment.hour, moment.minute or 0)
            meridian = standard_meridian_for(args.latitude, moment.longitude, when)
        if meridian is None:
            meridian = KST_MERIDIAN
        corrected = moment.corrected(meridian)
        correction = {"meridian": meridian, "input": moment.to_dict(), "corrected": corrected.to_dict()}
        moment = corrected

    report = moment.chart_data()
    if args.strategy != "pairwise":
        report["continuous"] = moment.continuous_with(get_strategy(args.strategy)).to_dict()
    report["relation_summary"] = describe(moment.relations)
    if correction:
        report["correction"] = correction
    if args.series:
        start, end = args.series
        report["time_series"] = moment.time_series(start, end).to_dict()
    if not args.curves:
        report.pop("curves")
    return report


def main():
    parser = argparse.ArgumentParser(description="Compute a continuous saju chart.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", dest="birth_time", default=None)
    parser.add_argument("--gender", required=True, choices=["male", "female", "m", "f"])
    parser.add_argument("--longitude", type=float, default=SEOUL_LONGITUDE)
    parser.add_argument("--latitude", type=float, default=None)
    parser.add_argument("--meridian", type=float, default=None)
    parser.add_argument("--apply-correction", dest="apply_correction", action="store_true")
    parser.add_argument("--strategy", default="pairwise", choices=sorted(STRATEGIES))
    parser.add_argument("--series", nargs=2, type=int, metavar=("START", "END"), default=None)
    parser.add_argument("--curves", action="store_true", help="include sampled element curves")
    parser.add_argument("--verbose", "-v", action="store_true")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        report = build_report(args)
    except SajuError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2, ensure_ascii=False), file=sys.stderr)
        sys.exit(2)

    print(json.dumps(report, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
