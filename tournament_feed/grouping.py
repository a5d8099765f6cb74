"""Collapse sections of one physical event into a single parent record."""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Dict, List, Sequence, Tuple

from .models import Section, TournamentRecord

logger = logging.getLogger(__name__)

# Trailing " A".." E" or " Open A".." Open E" section suffix.
SECTION_SUFFIX = re.compile(r"\s+[ABCDE]$|\s+Open\s+[ABCDE]$", re.IGNORECASE)

GroupKey = Tuple[str, str, str]


def group_key(record: TournamentRecord) -> GroupKey:
    return (f"{record.lat:.4f}", f"{record.lng:.4f}", record.date)


def name_prefix(name: str) -> str:
    return SECTION_SUFFIX.sub("", name, count=1).strip()


def merge_sections(prefix: str, members: Sequence[TournamentRecord]) -> TournamentRecord:
    """Parent record for ``members`` (two or more, first-seen order).

    The parent keeps the first member's fields (format, bracket, link and
    the rest) apart from id, name and sections.
    """
    first = members[0]
    return replace(
        first,
        id=f"grouped-{first.id}",
        name=prefix,
        sections=tuple(
            Section(name=m.name, elo_bracket=m.elo_bracket, format=m.format, link=m.link)
            for m in members
        ),
    )


def group_tournaments(records: Sequence[TournamentRecord]) -> List[TournamentRecord]:
    groups: Dict[GroupKey, List[TournamentRecord]] = {}
    for record in records:
        groups.setdefault(group_key(record), []).append(record)

    grouped: List[TournamentRecord] = []
    for members in groups.values():
        if len(members) == 1:
            grouped.append(members[0])
            continue

        by_prefix: Dict[str, List[TournamentRecord]] = {}
        for record in members:
            by_prefix.setdefault(name_prefix(record.name), []).append(record)

        for prefix, subgroup in by_prefix.items():
            if len(subgroup) == 1:
                grouped.append(subgroup[0])
            else:
                grouped.append(merge_sections(prefix, subgroup))

    logger.info("Total tournaments after grouping: %s (from %s raw)", len(grouped), len(records))
    return grouped
