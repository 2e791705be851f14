from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from .config import DEFAULT_CLUB, ClubConfig, load_club_config
from .export import (
    assign_field,
    csv_filename,
    default_week_start,
    record_to_dict,
    render_week_csv,
    render_week_html,
    week_bounds,
)
from .parse import FixtureParser


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="platzbelegung",
        description="Read a club schedule copied from the association PDF and plan field usage",
    )
    p.add_argument("input", help="Text copied from the schedule PDF, or - for stdin")
    p.add_argument(
        "--format",
        choices=("json", "csv", "html"),
        default="json",
        help="Output format (default: json)",
    )
    p.add_argument(
        "--out",
        default=None,
        help="Output path (default: platzplan_kw<NN>.csv, platzplan.html or stdout for json)",
    )
    p.add_argument(
        "--week",
        default=None,
        help="Week to export, any day in it as YYYY-MM-DD (default: next Monday)",
    )
    p.add_argument("--all", action="store_true", help="Include away fixtures in json output")
    p.add_argument("--config", default=None, help="JSON file overriding the club configuration")
    p.add_argument(
        "--assign",
        action="append",
        default=[],
        metavar="ID=FIELD",
        help="Override the field of one fixture; empty FIELD clears it (repeatable)",
    )
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    return p


def parse_assignment(raw: str) -> Tuple[str, Optional[str]]:
    record_id, sep, field_name = raw.rpartition("=")
    if not sep or not record_id:
        raise ValueError(f"expected ID=FIELD, got {raw!r}")
    return record_id, field_name or None


def read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: List[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    config: ClubConfig = DEFAULT_CLUB
    if args.config:
        try:
            config = load_club_config(Path(args.config))
        except (OSError, ValueError) as e:
            ap.error(f"--config: {e}")

    if args.week:
        try:
            week = date.fromisoformat(args.week)
        except ValueError:
            ap.error(f"--week: expected YYYY-MM-DD, got {args.week!r}")
    else:
        week = default_week_start(date.today())

    try:
        text = read_input(args.input)
    except OSError as e:
        ap.error(f"cannot read {args.input}: {e}")
    report = FixtureParser(config).parse_report(text)
    records = report.records

    for raw in args.assign:
        try:
            record_id, field_name = parse_assignment(raw)
            assign_field(records, record_id, field_name, config=config)
        except ValueError as e:
            ap.error(f"--assign: {e}")
        except KeyError:
            ap.error(f"--assign: no fixture with id {record_id!r}")

    to_stdout = False
    if args.format == "csv":
        out_path = Path(args.out or csv_filename(week))
        out_path.write_text(render_week_csv(records, week), encoding="utf-8")
        target = str(out_path)
    elif args.format == "html":
        out_path = Path(args.out or "platzplan.html")
        out_path.write_text(render_week_html(records, week, config=config), encoding="utf-8")
        target = str(out_path)
    else:
        chosen = records if args.all else [r for r in records if r.is_home_fixture]
        payload = json.dumps(
            {"matches": [record_to_dict(r) for r in chosen]}, indent=2, ensure_ascii=False
        )
        if args.out:
            Path(args.out).write_text(payload, encoding="utf-8")
            target = args.out
        else:
            print(payload)
            to_stdout = True
            target = "stdout"

    start, end = week_bounds(week)
    home = sum(1 for r in records if r.is_home_fixture)
    summary = (
        f"Recognized {len(records)} fixtures ({home} home, {len(report.skipped)} rows skipped); "
        f"wrote {target}"
    )
    if args.format != "json":
        summary += f" for {start.isoformat()}..{end.isoformat()}"
    print(summary, file=sys.stderr if to_stdout else sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
