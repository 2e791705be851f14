from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Set, Tuple

from .config import DEFAULT_CLUB, ClubConfig
from .models import MatchRecord, ParseReport, RawRow, RowOutcome, SkippedRow
from .util import iso_date, match_id, normalize_lines, normalize_spaces, pad_time, sort_key

logger = logging.getLogger(__name__)

SPIELFREI = "SPIELFREI"

ROW_RE = re.compile(
    r"^(?P<label>.*?)\s(?P<date>\d{2}\.\d{2}\.\d{4})\s"
    r"(?P<kickoff>\d{1,2}:\d{2}|(?i:spielfrei))\s(?P<pairing>.*)$"
)
PITCH_RE = re.compile(r"\bplatz\s*(\d{1,3})\b")
TRAILING_SPIELFREI_RE = re.compile(r"\bspielfrei$", re.IGNORECASE)


class LineClassifier:
    def __init__(self, config: ClubConfig) -> None:
        codes = "|".join(re.escape(c) for c in config.match_types)
        self._row_start = re.compile(rf"^({codes})\s+(.*)$")
        self._sections = frozenset(normalize_spaces(s) for s in config.sections)
        keywords = "|".join(re.escape(k) for k in config.section_keywords)
        self._section_keyword = re.compile(rf"\b({keywords})\b") if keywords else None
        self._keyword_policy = config.section_policy == "keyword"
        self._skip = [re.compile(p) for p in config.skip_patterns]

    def row_start(self, line: str) -> Optional[Tuple[str, str]]:
        """Return (match type code, remainder) when the line opens a fixture row."""
        m = self._row_start.match(line)
        if not m:
            return None
        return m.group(1), m.group(2)

    def is_row_start(self, line: str) -> bool:
        return self._row_start.match(line) is not None

    def is_section_header(self, line: str) -> bool:
        # Row lines often mention "Frauen" or "Junioren" in team names.
        if self.is_row_start(line):
            return False
        if self._keyword_policy:
            return bool(self._section_keyword and self._section_keyword.search(line))
        return normalize_spaces(line) in self._sections

    def is_boilerplate(self, line: str) -> bool:
        return any(p.search(line) for p in self._skip)


def split_pairing(pairing: str, variants_longest_first: Iterable[str]) -> Tuple[str, str, bool]:
    """Split a pairing into (home team, away team, is home fixture).

    The export puts no separator between the two clubs, so the split relies on
    knowing how our own teams are spelled. Variants must be ordered longest
    first so "TSV Lonnerstadt 2" wins over "TSV Lonnerstadt".
    """
    text = normalize_spaces(pairing)
    variants = list(variants_longest_first)

    for variant in variants:
        if text == variant or text.startswith(variant + " "):
            return variant, text[len(variant):].strip(), True

    for variant in variants:
        if text == variant or text.endswith(" " + variant) or (" " + variant) in text:
            home = text[: text.rindex(variant)].strip()
            return home or text, variant, False

    return text, "", False


def suggest_field(venue: str, config: ClubConfig = DEFAULT_CLUB) -> Optional[str]:
    v = venue.lower()
    for keywords, field_name in config.venue_rules:
        if all(k in v for k in keywords):
            return field_name
    if config.home_ground and config.home_ground in v:
        m = PITCH_RE.search(v)
        if m:
            return config.pitch_field(int(m.group(1)))
        return config.default_pitch_field
    return None


class FixtureParser:
    """Parses text copied from a club schedule PDF into match records.

    Parsing is best effort: rows that cannot be read are reported as skipped
    in the ParseReport instead of raising.
    """

    def __init__(self, config: ClubConfig = DEFAULT_CLUB) -> None:
        self.config = config
        self.classifier = LineClassifier(config)

    def parse(self, text: str) -> List[MatchRecord]:
        return self.parse_report(text).records

    def parse_report(self, text: str) -> ParseReport:
        outcomes: List[RowOutcome] = []
        seen_ids: Set[str] = set()
        for item in self._tokenize(normalize_lines(text)):
            if isinstance(item, SkippedRow):
                outcome = RowOutcome(skipped=item)
            else:
                outcome = self._assemble(item, seen_ids)
            if outcome.skipped is not None:
                logger.debug(
                    "Skipped line %d (%s): %s",
                    outcome.skipped.line_no,
                    outcome.skipped.reason,
                    outcome.skipped.line,
                )
            outcomes.append(outcome)

        report = ParseReport(outcomes=outcomes)
        logger.info(
            "Parsed %d fixtures, skipped %d rows", len(report.records), len(report.skipped)
        )
        return report

    def _tokenize(self, lines: List[str]) -> List[RawRow | SkippedRow]:
        out: List[RawRow | SkippedRow] = []
        section = ""
        i = 0
        while i < len(lines):
            line = lines[i]
            if self.classifier.is_section_header(line):
                section = normalize_spaces(line)
                i += 1
                continue
            start = self.classifier.row_start(line)
            if start is None:
                # Stray continuation line before the first row, or page furniture.
                i += 1
                continue

            venue_parts: List[str] = []
            j = i + 1
            while j < len(lines):
                nxt = lines[j]
                if self.classifier.is_row_start(nxt) or self.classifier.is_section_header(nxt):
                    break
                if not self.classifier.is_boilerplate(nxt):
                    venue_parts.append(nxt)
                j += 1

            match_type, rest = start
            m = ROW_RE.match(rest)
            if m is None:
                reason = "spielfrei" if TRAILING_SPIELFREI_RE.search(rest) else "unparseable"
                out.append(SkippedRow(line_no=i + 1, line=line, reason=reason))
            else:
                out.append(
                    RawRow(
                        line_no=i + 1,
                        line=line,
                        match_type=match_type,
                        competition_label=m.group("label").strip(),
                        date=m.group("date"),
                        kickoff=m.group("kickoff"),
                        pairing=m.group("pairing").strip(),
                        venue=" ".join(venue_parts),
                        section=section,
                    )
                )
            i = j
        return out

    def _assemble(self, row: RawRow, seen_ids: Set[str]) -> RowOutcome:
        if row.kickoff.upper() == SPIELFREI:
            return RowOutcome(skipped=SkippedRow(line_no=row.line_no, line=row.line, reason="spielfrei"))
        try:
            iso = iso_date(row.date)
        except ValueError:
            return RowOutcome(skipped=SkippedRow(line_no=row.line_no, line=row.line, reason="invalid-date"))

        hhmm = pad_time(row.kickoff)
        home, away, is_home = split_pairing(row.pairing, self.config.variants_longest_first)
        suggested = suggest_field(row.venue, self.config) if is_home else None

        base_id = match_id(iso=iso, hhmm=hhmm, pairing=row.pairing)
        record_id = base_id
        n = 1
        while record_id in seen_ids:
            n += 1
            record_id = f"{base_id}#{n}"
        seen_ids.add(record_id)

        return RowOutcome(
            record=MatchRecord(
                id=record_id,
                date=iso,
                time=hhmm,
                sort_key=sort_key(iso, hhmm),
                section=row.section,
                competition=f"{row.match_type} {row.competition_label}".strip(),
                home_team=home,
                away_team=away,
                is_home_fixture=is_home,
                venue=row.venue,
                suggested_field=suggested,
                assigned_field=suggested,
            )
        )


def parse(text: str, config: Optional[ClubConfig] = None) -> List[MatchRecord]:
    return FixtureParser(config or DEFAULT_CLUB).parse(text)
