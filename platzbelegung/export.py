from __future__ import annotations

import csv
import io
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from .config import DEFAULT_CLUB, ClubConfig
from .models import MatchRecord
from .util import monday_of, weekday_de

DEFAULT_TITLE = "TSV Lonnerstadt – Wochenplan Platzbelegung"

CSV_HEADER = [
    "week_number",
    "start_date",
    "end_date",
    "field",
    "day",
    "date",
    "time",
    "home_team",
    "away_team",
    "category",
    "league",
]

PRINT_CSS = """
@page { size: A4 landscape; margin: 16mm; }
body { font: 12px system-ui, -apple-system, Segoe UI, Roboto, "Helvetica Neue", Arial; color: #0f172a; }
h1 { font-size: 18px; margin: 0 0 12px; }
.muted { color: #475569; font-size: 10px; }
table { border-collapse: collapse; width: 100%; }
thead th { background: #0f172a; color: #fff; padding: 6px 8px; text-align: left; }
tbody th { background: #e2e8f0; text-align: left; padding: 6px 8px; white-space: nowrap; }
td { border: 1px solid #cbd5e1; vertical-align: top; padding: 6px 8px; min-width: 120px; }
th { border: 1px solid #cbd5e1; }
.footer { margin-top: 10px; font-size: 10px; color: #64748b; }
"""


def record_to_dict(r: MatchRecord) -> Dict[str, Any]:
    """Convert a MatchRecord to a JSON-serializable dict."""
    return {
        "id": r.id,
        "date": r.date,
        "time": r.time,
        "sort_key": r.sort_key,
        "section": r.section,
        "competition": r.competition,
        "home_team": r.home_team,
        "away_team": r.away_team,
        "is_home_fixture": r.is_home_fixture,
        "venue": r.venue,
        "suggested_field": r.suggested_field,
        "assigned_field": r.assigned_field,
    }


def assign_field(
    records: Iterable[MatchRecord],
    record_id: str,
    field_name: Optional[str],
    *,
    config: ClubConfig = DEFAULT_CLUB,
) -> MatchRecord:
    """Set (or clear, with None) the field a fixture is played on."""
    if field_name is not None and field_name not in config.fields:
        raise ValueError(f"unknown field {field_name!r}; expected one of {', '.join(config.fields)}")
    for r in records:
        if r.id == record_id:
            r.assigned_field = field_name
            return r
    raise KeyError(record_id)


def default_week_start(today: date) -> date:
    """Next Monday, or today when today is a Monday."""
    return today + timedelta(days=(7 - today.weekday()) % 7)


def week_bounds(week_start: date) -> Tuple[date, date]:
    start = monday_of(week_start)
    return start, start + timedelta(days=6)


def week_games(
    records: Iterable[MatchRecord], week_start: date, *, home_only: bool = True
) -> List[MatchRecord]:
    start, end = week_bounds(week_start)
    lo, hi = start.isoformat(), end.isoformat()
    return [
        r
        for r in records
        if lo <= r.date <= hi and (r.is_home_fixture or not home_only)
    ]


def csv_filename(week_start: date) -> str:
    start, _ = week_bounds(week_start)
    return f"platzplan_kw{start.isocalendar()[1]:02d}.csv"


def render_week_csv(records: Iterable[MatchRecord], week_start: date) -> str:
    start, end = week_bounds(week_start)
    week_number = start.isocalendar()[1]
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\r\n")
    writer.writerow(CSV_HEADER)
    for r in week_games(records, start):
        if not r.assigned_field:
            continue
        writer.writerow(
            [
                week_number,
                start.isoformat(),
                end.isoformat(),
                r.assigned_field,
                weekday_de(date.fromisoformat(r.date)),
                r.date,
                r.time,
                r.home_team,
                r.away_team,
                r.section,
                r.competition,
            ]
        )
    return buf.getvalue()


def _games_cell(soup: BeautifulSoup, games: Sequence[MatchRecord]) -> Tag:
    td = soup.new_tag("td")
    for n, g in enumerate(games):
        if n:
            td.append(soup.new_tag("br"))
            td.append(soup.new_tag("br"))
        td.append(f"{g.time} – {g.home_team} vs {g.away_team}")
        td.append(soup.new_tag("br"))
        muted = soup.new_tag("span", attrs={"class": "muted"})
        muted.string = f"{g.section} · {g.competition}"
        td.append(muted)
    return td


def render_week_html(
    records: Iterable[MatchRecord],
    week_start: date,
    *,
    config: ClubConfig = DEFAULT_CLUB,
    title: str = DEFAULT_TITLE,
) -> str:
    """Printable week plan: one row per field, one column per weekday."""
    start, end = week_bounds(week_start)
    days = [start + timedelta(days=i) for i in range(7)]
    games = [r for r in week_games(records, start) if r.assigned_field]

    soup = BeautifulSoup("<!doctype html><html><head></head><body></body></html>", "lxml")
    soup.head.append(soup.new_tag("meta", charset="utf-8"))
    title_tag = soup.new_tag("title")
    title_tag.string = title
    soup.head.append(title_tag)
    style = soup.new_tag("style")
    style.string = PRINT_CSS
    soup.head.append(style)

    h1 = soup.new_tag("h1")
    h1.string = (
        f"{title} – KW {start.isocalendar()[1]} "
        f"({start.strftime('%d.%m.')}–{end.strftime('%d.%m.%Y')})"
    )
    soup.body.append(h1)

    table = soup.new_tag("table")
    thead = soup.new_tag("thead")
    head_row = soup.new_tag("tr")
    corner = soup.new_tag("th")
    corner.string = "Platz"
    head_row.append(corner)
    for d in days:
        th = soup.new_tag("th")
        th.string = f"{weekday_de(d)} {d.strftime('%d.%m.')}"
        head_row.append(th)
    thead.append(head_row)
    table.append(thead)

    tbody = soup.new_tag("tbody")
    for field_name in config.fields:
        row = soup.new_tag("tr")
        label = soup.new_tag("th")
        label.string = field_name
        row.append(label)
        for d in days:
            iso = d.isoformat()
            row.append(_games_cell(soup, [g for g in games if g.assigned_field == field_name and g.date == iso]))
        tbody.append(row)
    table.append(tbody)
    soup.body.append(table)

    footer = soup.new_tag("div", attrs={"class": "footer"})
    footer.string = "Generiert mit Platzbelegung-Tool"
    soup.body.append(footer)
    script = soup.new_tag("script")
    script.string = "window.onload = function () { window.print(); };"
    soup.body.append(script)
    return str(soup)
