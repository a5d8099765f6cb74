from datetime import datetime

from tournament_feed import legacy_db
from tournament_feed.legacy_db import parse_legacy_database, row_to_record


def test_row_to_record_maps_columns():
    row = {
        "Id": 7,
        "Nom": "Open de Rouen",
        "Cadence": "R",
        "EloMax": 1800,
        "Lieu": "Rouen",
        "Adresse": "Salle des fêtes",
        "Homologation": "61234",
        "DateDebut": datetime(2026, 5, 2, 9, 30),
    }

    record = row_to_record(row, 0)

    assert record.id == "papi-7"
    assert record.format == "Rapide"
    assert record.elo_bracket == "-1800"
    assert record.city == "Rouen"
    assert record.date == "2026-05-02"
    assert record.link == "https://ffechecs.fr/tournoi?id=61234"
    assert (record.lat, record.lng) == (46.2276, 2.2137)


def test_row_to_record_defaults():
    record = row_to_record({}, 3)

    assert record.id == "papi-3"
    assert record.name == "Tournoi Sans Nom"
    assert record.format == "Lent"
    assert record.elo_bracket == "Toutes catégories"
    assert record.city == "Ville inconnue"


def test_missing_database_returns_nothing(tmp_path):
    assert parse_legacy_database(str(tmp_path / "absent.papi")) == []


class FakeAccessParser:
    tables = {}

    def __init__(self, path):
        self.path = path
        self.catalog = {name: i for i, name in enumerate(self.tables)}

    def parse_table(self, name):
        return self.tables[name]


def test_tournament_table_is_read_column_wise(tmp_path, monkeypatch):
    path = tmp_path / "tournaments.papi"
    path.write_bytes(b"\x00")
    FakeAccessParser.tables = {
        "Tournoi": {
            "Id": [1, 2],
            "Nom": ["Blitz de Caen", "Open de Caen"],
            "Cadence": ["B", None],
            "DateDebut": ["2026-06-01", None],
        }
    }
    monkeypatch.setattr(legacy_db, "AccessParser", FakeAccessParser)

    records = parse_legacy_database(str(path))

    assert [r.id for r in records] == ["papi-1", "papi-2"]
    assert [r.format for r in records] == ["Blitz", "Lent"]
    assert records[0].date == "2026-06-01"


def test_database_without_tournament_table(tmp_path, monkeypatch):
    path = tmp_path / "tournaments.papi"
    path.write_bytes(b"\x00")
    FakeAccessParser.tables = {"Joueur": {"Nom": ["X"]}}
    monkeypatch.setattr(legacy_db, "AccessParser", FakeAccessParser)

    assert parse_legacy_database(str(path)) == []


class BrokenAccessParser:
    def __init__(self, path):
        raise ValueError("not an access file")


def test_unreadable_database_returns_nothing(tmp_path, monkeypatch):
    path = tmp_path / "tournaments.papi"
    path.write_bytes(b"garbage")
    monkeypatch.setattr(legacy_db, "AccessParser", BrokenAccessParser)

    assert parse_legacy_database(str(path)) == []
