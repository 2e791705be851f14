from __future__ import annotations

import csv
import io
import json
from datetime import date
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from platzbelegung.export import (
    CSV_HEADER,
    assign_field,
    csv_filename,
    default_week_start,
    record_to_dict,
    render_week_csv,
    render_week_html,
    week_bounds,
    week_games,
)
from platzbelegung.parse import parse

WEEK = date(2025, 9, 22)


def load_records():
    text = (Path(__file__).parent / "fixtures" / "club_schedule.txt").read_text(encoding="utf-8")
    return parse(text)


def test_week_bounds_and_default_start() -> None:
    assert week_bounds(date(2025, 9, 24)) == (date(2025, 9, 22), date(2025, 9, 28))
    assert default_week_start(date(2025, 9, 22)) == date(2025, 9, 22)
    assert default_week_start(date(2025, 9, 24)) == date(2025, 9, 29)
    assert default_week_start(date(2025, 9, 28)) == date(2025, 9, 29)


def test_week_games_filters_home_fixtures() -> None:
    records = load_records()

    home = week_games(records, WEEK)
    everything = week_games(records, WEEK, home_only=False)

    assert [r.date for r in home] == ["2025-09-24", "2025-09-25", "2025-09-26"]
    assert [r.date for r in everything] == [
        "2025-09-22",
        "2025-09-24",
        "2025-09-25",
        "2025-09-26",
        "2025-09-27",
    ]


def test_assign_field_overrides_suggestion() -> None:
    records = load_records()
    target = next(r for r in records if r.date == "2025-09-24")
    assert target.suggested_field == "Frimmersdorf"

    assign_field(records, target.id, "B")
    assert target.assigned_field == "B"
    assert target.suggested_field == "Frimmersdorf"

    assign_field(records, target.id, None)
    assert target.assigned_field is None


def test_assign_field_errors() -> None:
    records = load_records()
    with pytest.raises(ValueError, match="unknown field"):
        assign_field(records, records[0].id, "Platz Z")
    with pytest.raises(KeyError):
        assign_field(records, "2099-01-01_00:00_nobody", "A")


def test_render_week_csv() -> None:
    out = render_week_csv(load_records(), WEEK)
    rows = list(csv.reader(io.StringIO(out)))

    assert out.endswith("\r\n")
    assert rows[0] == CSV_HEADER
    assert len(rows) == 4
    assert rows[1] == [
        "39",
        "2025-09-22",
        "2025-09-28",
        "Frimmersdorf",
        "Mi",
        "2025-09-24",
        "18:00",
        "TSV Lonnerstadt",
        "(SG) SV Beispiel",
        "Herren",
        "ME Gruppe",
    ]
    assert [r[3] for r in rows[1:]] == ["Frimmersdorf", "Vestenbergsgreuth", "ASV Weisendorf Kunstrasen"]
    assert [r[4] for r in rows[1:]] == ["Mi", "Do", "Fr"]


def test_render_week_csv_skips_unassigned() -> None:
    records = load_records()
    friday = next(r for r in records if r.date == "2025-09-26")
    assign_field(records, friday.id, None)

    rows = list(csv.reader(io.StringIO(render_week_csv(records, WEEK))))
    assert [r[5] for r in rows[1:]] == ["2025-09-24", "2025-09-25"]


def test_csv_filename() -> None:
    assert csv_filename(WEEK) == "platzplan_kw39.csv"
    assert csv_filename(date(2025, 1, 1)) == "platzplan_kw01.csv"


def test_render_week_html() -> None:
    html = render_week_html(load_records(), WEEK)
    soup = BeautifulSoup(html, "lxml")

    assert "KW 39" in soup.h1.get_text()
    assert "(22.09.–28.09.2025)" in soup.h1.get_text()
    head = [th.get_text() for th in soup.select("thead th")]
    assert head == ["Platz", "Mo 22.09.", "Di 23.09.", "Mi 24.09.", "Do 25.09.", "Fr 26.09.", "Sa 27.09.", "So 28.09."]

    rows = soup.select("tbody tr")
    assert [r.th.get_text() for r in rows] == [
        "A",
        "B",
        "C",
        "Frimmersdorf",
        "Vestenbergsgreuth",
        "ASV Weisendorf Kunstrasen",
    ]
    frimmersdorf = rows[3].find_all("td")
    assert len(frimmersdorf) == 7
    assert "18:00 – TSV Lonnerstadt vs (SG) SV Beispiel" in frimmersdorf[2].get_text()
    assert frimmersdorf[2].select_one("span.muted").get_text() == "Herren · ME Gruppe"
    assert all(td.get_text() == "" for td in rows[0].find_all("td"))
    assert "window.print" in soup.script.string


def test_render_week_html_escapes_text() -> None:
    records = parse(
        "ME Liga 24.09.2025 18:00 TSV Lonnerstadt <b>Gegner</b> & Co\n"
        "Lonnerstadt, Am Sonnenhügel, Platz 2\n"
    )
    html = render_week_html(records, WEEK, title="Plan <Test>")

    assert "<b>Gegner</b>" not in html
    assert "&lt;b&gt;Gegner&lt;/b&gt; &amp; Co" in html
    soup = BeautifulSoup(html, "lxml")
    assert soup.title.get_text() == "Plan <Test>"
    assert "<b>Gegner</b> & Co" in soup.select("tbody tr")[1].get_text()


def test_record_to_dict_is_json_serializable() -> None:
    d = record_to_dict(load_records()[0])

    assert d["date"] == "2025-09-20"
    assert d["time"] == "09:30"
    assert d["suggested_field"] == "C"
    assert json.loads(json.dumps(d)) == d
