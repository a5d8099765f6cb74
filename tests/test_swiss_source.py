from tournament_feed.geocoder import SWITZERLAND
from tournament_feed.models import GeoCoordinate
from tournament_feed.swiss_source import (
    SwissCalendarSource,
    extract_city,
    fetch_swiss_tournaments,
    iso_from_dotted,
    parse_calendar_page,
    swiss_id,
)

CALENDAR_HTML = """
<html><body><div class="calendar">
<p>05.01.2026 – 07.01.2026 Zürich: Neujahrsturnier (Open)</p>
<p><a href="/turnier/neujahr">Zürich: Neujahrsturnier</a></p>
<p>12.02.2026 Schnellschach in Bern, 5 Runden</p>
<p>20.03.2026 SSB Delegiertenversammlung</p>
<p>01.04.2026 Kalender</p>
<p>02.05.2026 abc</p>
</div></body></html>
"""


def test_extract_city_heuristics():
    assert extract_city("Genève: Open de printemps") == "Genève"
    assert extract_city("Schnellschach in Bern, 5 Runden") == "Bern"
    assert extract_city("Open - Lausanne") == "Lausanne"
    assert extract_city("79. Bieler Schachfestival") == "Biel"
    assert extract_city("Grand Prix") == "Suisse"


def test_swiss_id_is_stable():
    assert swiss_id("Test", "01.01.2026") == "swiss-VGVzdDAxLjAx"
    assert swiss_id("Test", "01.01.2026") == swiss_id("Test", "01.01.2026")


def test_iso_from_dotted():
    assert iso_from_dotted("05.01.2026") == "2026-01-05"


def test_parse_calendar_page_segments_on_dates():
    records = parse_calendar_page(CALENDAR_HTML)

    assert [r.name for r in records] == ["Zürich: Neujahrsturnier", "Schnellschach in Bern, 5 Runden"]
    first, second = records
    assert first.date_text == "07.01.2026"
    assert first.city == "Zürich"
    assert first.link == "https://www.swisschess.ch/turnier/neujahr"
    assert first.ref is None
    assert second.city == "Bern"
    assert second.link == "https://www.swisschess.ch/terminliste-anzeigen.html"


class FakeHttp:
    def __init__(self, html):
        self.html = html
        self.calls = 0

    def get_text(self, url, params=None, kind="detail", timeout=None):
        self.calls += 1
        return self.html


class FakeGeocoder:
    def __init__(self):
        self.calls = []

    def resolve(self, city, region):
        self.calls.append((city, region))
        return GeoCoordinate(lat=47.0, lng=8.0)


def test_fetch_swiss_tournaments_builds_records():
    http = FakeHttp(CALENDAR_HTML)
    geocoder = FakeGeocoder()

    tournaments = fetch_swiss_tournaments(SwissCalendarSource(http), geocoder)

    assert http.calls == 1
    assert len(tournaments) == 2
    rapid = tournaments[1]
    assert rapid.format == "Rapide"
    assert rapid.elo_bracket == "Toutes catégories"
    assert rapid.date == "2026-02-12"
    assert rapid.has_players_list is False
    assert rapid.id.startswith("swiss-")
    assert tournaments[0].format == "Lent"
    assert geocoder.calls == [("Zürich", SWITZERLAND), ("Bern", SWITZERLAND)]


def test_source_reports_no_second_page():
    source = SwissCalendarSource(FakeHttp(CALENDAR_HTML))
    assert source.fetch_page(2, None).rows == []


def test_date_range_entry_takes_the_end_date():
    records = parse_calendar_page("<p>05.01.2026 – 07.01.2026 Zürich: Neujahrsturnier</p>")

    assert [r.date_text for r in records] == ["07.01.2026"]
    assert records[0].name == "Zürich: Neujahrsturnier"
