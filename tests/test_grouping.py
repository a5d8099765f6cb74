from tournament_feed.grouping import group_tournaments, name_prefix
from tournament_feed.models import TournamentRecord


def make_record(id, name, lat=48.8566, lng=2.3522, date="2026-03-15", bracket="Toutes catégories", fmt="Lent"):
    return TournamentRecord(
        id=id,
        name=name,
        format=fmt,
        elo_bracket=bracket,
        lat=lat,
        lng=lng,
        city="PARIS",
        address="PARIS",
        has_players_list=False,
        link=f"http://example.test/{id}",
        date=date,
    )


def test_name_prefix_strips_section_suffix():
    assert name_prefix("Open de Paris A") == "Open de Paris"
    assert name_prefix("Festival Open B") == "Festival"
    assert name_prefix("Festival open c") == "Festival"
    assert name_prefix("Open de Paris") == "Open de Paris"
    assert name_prefix("Open F") == "Open F"


def test_sections_of_same_event_are_merged():
    records = [
        make_record("1", "Festival Open A", bracket="2000+"),
        make_record("2", "Festival Open B", bracket="1600-2000", fmt="Rapide"),
    ]

    grouped = group_tournaments(records)

    assert len(grouped) == 1
    parent = grouped[0]
    assert parent.id == "grouped-1"
    assert parent.name == "Festival"
    assert parent.elo_bracket == "2000+"
    assert parent.format == "Lent"
    assert parent.link == "http://example.test/1"
    assert [s.name for s in parent.sections] == ["Festival Open A", "Festival Open B"]
    assert parent.sections[1].elo_bracket == "1600-2000"
    assert parent.sections[1].format == "Rapide"
    assert parent.sections[1].link == "http://example.test/2"


def test_unrelated_event_at_same_place_and_date_stays_separate():
    records = [
        make_record("1", "Festival A"),
        make_record("2", "Festival B"),
        make_record("3", "Blitz du soir"),
    ]

    grouped = group_tournaments(records)

    assert [r.id for r in grouped] == ["grouped-1", "3"]
    assert grouped[1].sections == ()


def test_different_dates_are_not_merged():
    records = [
        make_record("1", "Festival A", date="2026-03-15"),
        make_record("2", "Festival B", date="2026-03-16"),
    ]

    grouped = group_tournaments(records)

    assert [r.id for r in grouped] == ["1", "2"]


def test_coordinates_compared_at_four_decimals():
    records = [
        make_record("1", "Festival A", lat=48.85661),
        make_record("2", "Festival B", lat=48.85664),
    ]

    assert len(group_tournaments(records)) == 1


def test_grouping_is_idempotent():
    records = [
        make_record("1", "Festival A"),
        make_record("2", "Festival B"),
        make_record("3", "Open de Lyon", lat=45.764, lng=4.8357),
    ]

    once = group_tournaments(records)
    twice = group_tournaments(once)

    assert twice == once


def test_grouped_record_serializes_sections():
    grouped = group_tournaments([make_record("1", "Festival A"), make_record("2", "Festival B")])

    data = grouped[0].to_dict()

    assert data["id"] == "grouped-1"
    assert data["sections"][0] == {
        "name": "Festival A",
        "eloBracket": "Toutes catégories",
        "format": "Lent",
        "homologationLink": "http://example.test/1",
    }
