from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

FIELDS_DEFAULT = (
    "A",
    "B",
    "C",
    "Frimmersdorf",
    "Vestenbergsgreuth",
    "ASV Weisendorf Kunstrasen",
)

TEAM_VARIANTS_DEFAULT = (
    "(SG) TSV Lonnerstadt II/ASV Weisendorf",
    "TSV Lonnerstadt 2 (7er)",
    "TSV Lonnerstadt AH",
    "TSV Lonnerstadt 3",
    "TSV Lonnerstadt 2",
    "TSV Lonnerstadt/ ASV Weisendorf",
    "(SG) TSV Lonnerstadt II",
    "(SG) TSV Lonnerstadt",
    "TSV Lonnerstadt",
)

# FS = Freundschaftsspiel, ME = Meisterschaft, PO = Pokal
MATCH_TYPES_DEFAULT = ("FS", "ME", "PO")

SECTIONS_DEFAULT = (
    "Herren Ü32",
    "Herren",
    "Herren-Reserve",
    "A-Junioren",
    "B-Junioren",
    "C-Junioren",
    "D-Junioren",
    "E-Junioren",
    "Frauen",
    "C-Juniorinnen",
    "E-Juniorinnen",
)

SECTION_KEYWORDS_DEFAULT = ("Herren", "Frauen", "Junioren", "Juniorinnen")

# Page headers and footers of the exported PDF.
SKIP_PATTERNS_DEFAULT = (
    r"^Bayerischer Fußball-Verband",
    r"^Ergebnisse online",
    r"^Kursiv dargestellte Spiele",
    r"^https?://",
    r"^Zeit:",
    r"^Seite \d+ von",
    r"^TSV Lonnerstadt$",
    r"^Alle Vereinsspiele in der Übersicht$",
)

VENUE_RULES_DEFAULT: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("frimmersdorf",), "Frimmersdorf"),
    (("vestenbergsgreuth",), "Vestenbergsgreuth"),
    (("weisendorf", "kunstrasen"), "ASV Weisendorf Kunstrasen"),
)

SECTION_POLICIES = ("strict", "keyword")


def _check_strings(name: str, values: Any) -> None:
    if not isinstance(values, (tuple, list)) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"{name} must be a list of strings, got {values!r}")


@dataclass(frozen=True)
class ClubConfig:
    fields: Tuple[str, ...] = FIELDS_DEFAULT
    team_variants: Tuple[str, ...] = TEAM_VARIANTS_DEFAULT
    match_types: Tuple[str, ...] = MATCH_TYPES_DEFAULT
    sections: Tuple[str, ...] = SECTIONS_DEFAULT
    section_keywords: Tuple[str, ...] = SECTION_KEYWORDS_DEFAULT
    section_policy: str = "strict"
    skip_patterns: Tuple[str, ...] = SKIP_PATTERNS_DEFAULT
    venue_rules: Tuple[Tuple[Tuple[str, ...], str], ...] = VENUE_RULES_DEFAULT
    home_ground: str = "am sonnenhügel"
    pitch_fields: Tuple[Tuple[int, str], ...] = ((1, "A"), (2, "B"), (3, "C"))
    default_pitch_field: str = "A"
    # Derived in __post_init__.
    variants_longest_first: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._check_types()
        if self.section_policy not in SECTION_POLICIES:
            raise ValueError(
                f"section_policy must be one of {', '.join(SECTION_POLICIES)}, got {self.section_policy!r}"
            )
        if not self.team_variants:
            raise ValueError("team_variants must not be empty")
        if not self.match_types:
            raise ValueError("match_types must not be empty")
        known = set(self.fields)
        targets = [f for _, f in self.venue_rules] + [f for _, f in self.pitch_fields]
        targets.append(self.default_pitch_field)
        unknown = [f for f in targets if f not in known]
        if unknown:
            raise ValueError(f"fields referenced but not declared: {', '.join(unknown)}")
        for pattern in self.skip_patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid skip pattern {pattern!r}: {e}") from e
        # sorted() is stable, so equally long variants keep their configured order.
        ordered = tuple(sorted(self.team_variants, key=len, reverse=True))
        object.__setattr__(self, "variants_longest_first", ordered)

    def _check_types(self) -> None:
        for name in ("fields", "team_variants", "match_types", "sections", "section_keywords", "skip_patterns"):
            _check_strings(name, getattr(self, name))
        for name in ("section_policy", "home_ground", "default_pitch_field"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string, got {getattr(self, name)!r}")
        for name in ("venue_rules", "pitch_fields"):
            if not isinstance(getattr(self, name), (tuple, list)):
                raise ValueError(f"{name} must be a list, got {getattr(self, name)!r}")
        for rule in self.venue_rules:
            # ((keyword, ...), field)
            if not (isinstance(rule, (tuple, list)) and len(rule) == 2 and isinstance(rule[1], str)):
                raise ValueError(f"venue rule must be [[keywords...], field], got {rule!r}")
            _check_strings("venue rule keywords", rule[0])
        for entry in self.pitch_fields:
            if not (
                isinstance(entry, (tuple, list))
                and len(entry) == 2
                and isinstance(entry[0], int)
                and not isinstance(entry[0], bool)
                and isinstance(entry[1], str)
            ):
                raise ValueError(f"pitch field must be [number, field], got {entry!r}")

    def pitch_field(self, pitch: int) -> str:
        return dict(self.pitch_fields).get(pitch, self.default_pitch_field)


DEFAULT_CLUB = ClubConfig()


def _as_tuple(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_as_tuple(v) for v in value)
    return value


def config_from_dict(d: Dict[str, Any], *, base: ClubConfig = DEFAULT_CLUB) -> ClubConfig:
    """Build a ClubConfig from JSON-like data; missing keys fall back to `base`."""
    allowed = {f.name for f in fields(ClubConfig) if f.init}
    unknown = sorted(set(d) - allowed)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    overrides = {k: _as_tuple(v) for k, v in d.items()}
    if "pitch_fields" in overrides and isinstance(d["pitch_fields"], dict):
        # JSON object keys are strings: {"1": "A", "2": "B"}
        overrides["pitch_fields"] = tuple(
            (int(k), str(v)) for k, v in d["pitch_fields"].items()
        )
    return replace(base, **overrides)


def load_club_config(path: Path) -> ClubConfig:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return config_from_dict(data)
