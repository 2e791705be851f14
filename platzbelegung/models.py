from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class RawRow:
    line_no: int  # 1-based index into the normalized lines
    line: str
    match_type: str  # "FS", "ME", "PO"
    competition_label: str
    date: str  # DD.MM.YYYY as found in the text
    kickoff: str  # HH:MM or "SPIELFREI"
    pairing: str
    venue: str
    section: str


@dataclass(slots=True)
class MatchRecord:
    id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    sort_key: str  # YYYY-MM-DDTHH:MM:00
    section: str
    competition: str
    home_team: str
    away_team: str
    is_home_fixture: bool
    venue: str
    suggested_field: Optional[str]
    # The only attribute callers change after parsing (field assignment).
    assigned_field: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SkippedRow:
    line_no: int
    line: str
    reason: str  # "unparseable", "invalid-date", "spielfrei"


@dataclass(frozen=True, slots=True)
class RowOutcome:
    record: Optional[MatchRecord] = None
    skipped: Optional[SkippedRow] = None

    def __post_init__(self) -> None:
        if (self.record is None) == (self.skipped is None):
            raise ValueError("RowOutcome needs exactly one of record or skipped")


@dataclass(frozen=True)
class ParseReport:
    outcomes: List[RowOutcome]

    @property
    def records(self) -> List[MatchRecord]:
        """Parsed records in chronological order (stable for equal keys)."""
        found = [o.record for o in self.outcomes if o.record is not None]
        return sorted(found, key=lambda r: r.sort_key)

    @property
    def skipped(self) -> List[SkippedRow]:
        return [o.skipped for o in self.outcomes if o.skipped is not None]
