"""Heuristic classification of tournament names.

Each heuristic is an ordered list of rules evaluated first-match-wins, so a
single rule can be tested on its own and the priority is visible in one place.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from . import config

BracketMapping = Callable[[re.Match], Optional[str]]


@dataclass(frozen=True)
class KeywordRule:
    keywords: Tuple[str, ...]
    value: str

    def matches(self, lowered: str) -> bool:
        return any(k in lowered for k in self.keywords)


@dataclass(frozen=True)
class BracketRule:
    name: str
    pattern: re.Pattern
    mapping: BracketMapping


@dataclass(frozen=True)
class Classification:
    format: str
    elo_bracket: str
    is_internal: bool


# "semilampo" (Italian for semi-rapid) contains "lampo"; semi-rapid names
# are Rapide, so this rule runs before the blitz one.
FORMAT_RULES: Sequence[KeywordRule] = (
    KeywordRule(("semilampo", "semi-rapide"), "Rapide"),
    KeywordRule(("blitz", "lampo"), "Blitz"),
    KeywordRule(("rapide", "rapid", "schnell", "aktiv"), "Rapide"),
)
DEFAULT_FORMAT = "Lent"


def _range_bracket(match: re.Match) -> Optional[str]:
    low = int(match.group(1))
    high = int(match.group(2))
    if high <= 1650:
        return "-1600"
    if low >= 1500 and high <= 2300:
        return "1600-2000"
    if low >= 2000:
        return "2000+"
    return None


def _minus_bracket(match: re.Match) -> Optional[str]:
    value = int(match.group(1))
    if value <= 1650:
        return "-1600"
    if value <= 2300:
        return "1600-2000"
    return None


def _plus_bracket(match: re.Match) -> Optional[str]:
    value = int(match.group(2))
    if value >= 2000:
        return "2000+"
    if value >= 1400:
        return "1600-2000"
    return None


# A rule whose pattern matches ends the evaluation, even when its mapping
# yields no bracket (the name then keeps the default bracket).
BRACKET_RULES: Sequence[BracketRule] = (
    BracketRule("range", re.compile(r"(\d{4})\s*-\s*(\d{4})"), _range_bracket),
    BracketRule("minus", re.compile(r"[-<]\s*(\d{4})"), _minus_bracket),
    BracketRule("plus", re.compile(r"([+>]|plus de)\s*(\d{4})"), _plus_bracket),
    BracketRule(
        "under_1600_phrase",
        re.compile(r"en dessous de 1600|moins de 1600"),
        lambda _match: "-1600",
    ),
)

INTERNAL_PHRASES: Tuple[str, ...] = (
    "interne",
    "réservé aux membres",
    "tournoi du club",
    "membres du club",
    "membres de r2c2",
    "championnat du club",
    "réservé membres",
    "uniquement membres",
)


def infer_format(name: str, forced_format: Optional[str] = None, rules: Sequence[KeywordRule] = FORMAT_RULES) -> str:
    if forced_format:
        return forced_format
    lowered = (name or "").lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.value
    return DEFAULT_FORMAT


def match_bracket_rule(name: str, rules: Sequence[BracketRule] = BRACKET_RULES) -> Optional[Tuple[BracketRule, Optional[str]]]:
    lowered = (name or "").lower()
    for rule in rules:
        match = rule.pattern.search(lowered)
        if match:
            return rule, rule.mapping(match)
    return None


def infer_elo_bracket(name: str, rules: Sequence[BracketRule] = BRACKET_RULES) -> str:
    matched = match_bracket_rule(name, rules)
    if matched is None or matched[1] is None:
        return config.DEFAULT_BRACKET
    return matched[1]


def is_internal_tournament(name: str, phrases: Sequence[str] = INTERNAL_PHRASES) -> bool:
    lowered = (name or "").lower()
    return any(p in lowered for p in phrases)


def classify(name: str, forced_format: Optional[str] = None) -> Classification:
    return Classification(
        format=infer_format(name, forced_format),
        elo_bracket=infer_elo_bracket(name),
        is_internal=is_internal_tournament(name),
    )

