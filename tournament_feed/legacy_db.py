"""Best-effort reader for a local tournament-manager database (Access/JET file).

The table and column names below are provisional: they have not been checked
against a real file, so treat the output as a last-resort fallback.
"""
from __future__ import annotations

import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List, Mapping

from access_parser import AccessParser

from . import config
from .models import TournamentRecord

logger = logging.getLogger(__name__)

TOURNAMENT_TABLE = "Tournoi"
CADENCE_FORMATS = {"B": "Blitz", "R": "Rapide"}
HOMOLOGATION_URL = "https://ffechecs.fr/tournoi?id={ref}"


def _iso_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value:
        text = str(value).strip()
        try:
            return datetime.fromisoformat(text[:10]).date().isoformat()
        except ValueError:
            pass
    return date.today().isoformat()


def row_to_record(row: Mapping[str, Any], index: int) -> TournamentRecord:
    elo_max = row.get("EloMax")
    return TournamentRecord(
        id=f"papi-{row.get('Id') or index}",
        name=str(row.get("Nom") or "Tournoi Sans Nom"),
        format=CADENCE_FORMATS.get(str(row.get("Cadence") or ""), "Lent"),
        elo_bracket=f"-{elo_max}" if elo_max else config.DEFAULT_BRACKET,
        lat=config.FRANCE_CENTROID["lat"],
        lng=config.FRANCE_CENTROID["lng"],
        city=str(row.get("Lieu") or "Ville inconnue"),
        address=str(row.get("Adresse") or "Adresse inconnue"),
        has_players_list=False,
        link=HOMOLOGATION_URL.format(ref=row.get("Homologation") or ""),
        date=_iso_date(row.get("DateDebut")),
    )


def _table_rows(columns: Mapping[str, List[Any]]) -> List[Dict[str, Any]]:
    if not columns:
        return []
    count = max(len(values) for values in columns.values())
    rows: List[Dict[str, Any]] = []
    for i in range(count):
        rows.append({name: (values[i] if i < len(values) else None) for name, values in columns.items()})
    return rows


def parse_legacy_database(path: str) -> List[TournamentRecord]:
    """Records from the tournament table of ``path``; empty on any read problem."""
    if not os.path.exists(path):
        logger.warning("Legacy database not found: %s", path)
        return []
    try:
        db = AccessParser(path)
        if TOURNAMENT_TABLE not in db.catalog:
            logger.warning("Legacy database %s has no %s table", path, TOURNAMENT_TABLE)
            return []
        columns = db.parse_table(TOURNAMENT_TABLE)
    except Exception as exc:  # third-party parser raises assorted errors on bad files
        logger.warning("Legacy database %s unreadable: %s", path, exc)
        return []
    return [row_to_record(row, index) for index, row in enumerate(_table_rows(columns))]
