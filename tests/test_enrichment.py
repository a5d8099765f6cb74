import requests

from tournament_feed.enrichment import (
    Enricher,
    collect_ratings,
    parse_rating_stats,
    parse_registration_page,
)


def ratings_table(values, header=("Nr", "Nom", "Club", "Elo", "Cat")):
    head = "".join(f"<td>{h}</td>" for h in header)
    rows = [f'<tr class="papi_liste_t">{head}</tr>']
    for i, value in enumerate(values, start=1):
        rows.append(
            f"<tr><td>{i}</td><td>Joueur {i}</td><td>Club</td><td>{value}</td><td>SenM</td></tr>"
        )
    return f"<html><body><table>{''.join(rows)}</table></body></html>"


def test_fewer_than_three_ratings_gives_no_stats():
    assert parse_rating_stats(ratings_table(["1500 F", "1700 N"])) is None


def test_average_and_top_rating():
    stats = parse_rating_stats(ratings_table(["1200", "1400", "1600", "1800", "2000"]))
    assert stats.avg_elo == 1600
    assert stats.top_player_elo == 2000


def test_average_rounds_half_up():
    stats = parse_rating_stats(ratings_table(["1500", "1500", "1501", "1502"]))
    # mean 1500.75
    assert stats.avg_elo == 1501


def test_rating_suffix_letters_are_ignored():
    assert collect_ratings(ratings_table(["1520 F", "1699N", "2100 E"])) == [1520, 1699, 2100]


def test_implausible_ratings_are_dropped():
    values = ["0", "799", "800", "2998", "2999", "NC", ""]
    assert collect_ratings(ratings_table(values)) == [800, 2998]


def test_rating_column_found_from_header_label():
    header = ("Nr", "Nom", "Elo", "Club", "Ligue")
    rows = [f'<tr class="papi_liste_t">{"".join(f"<td>{h}</td>" for h in header)}</tr>']
    for i, value in enumerate(["1300", "1500", "1700"]):
        rows.append(f"<tr><td>{i}</td><td>Joueur</td><td>{value}</td><td>9999</td><td>IDF</td></tr>")
    html = f"<table>{''.join(rows)}</table>"

    assert collect_ratings(html) == [1300, 1500, 1700]


def test_rating_column_falls_back_without_header():
    rows = "".join(
        f"<tr><td>{i}</td><td>Joueur</td><td>Club</td><td>{v}</td></tr>"
        for i, v in enumerate(["1400", "1600", "1800"])
    )
    stats = parse_rating_stats(f"<table>{rows}</table>")
    assert stats.avg_elo == 1600
    assert stats.top_player_elo == 1800


def test_registration_count_and_player_list_link():
    html = (
        "<html><body><table>"
        "<tr><td>Inscrits :</td><td>42</td></tr>"
        '<tr><td><a href="ListeInscrits.aspx?Ref=61234">Liste des inscrits</a></td></tr>'
        "</table></body></html>"
    )

    info = parse_registration_page(html)

    assert info.count == 42
    assert info.list_url == "http://www.echecs.asso.fr/ListeInscrits.aspx?Ref=61234"


def test_missing_registration_count_is_unknown():
    info = parse_registration_page("<html><body><p>Tournoi homologué</p></body></html>")
    assert info.count is None
    assert info.list_url is None


class NoWaitSpacer:
    def __init__(self):
        self.waits = 0

    def wait(self):
        self.waits += 1


class FakeHttp:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def get_text(self, url, params=None, kind="detail", timeout=None):
        self.calls.append((url, dict(params or {}), kind))
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        return page or ""


DETAIL_URL = "http://www.echecs.asso.fr/FicheTournoi.aspx"
LIST_URL = "http://www.echecs.asso.fr/ListeInscrits.aspx?Ref=7"


def test_enricher_combines_count_and_stats():
    detail = f'<p>Inscrits : 17</p><a href="{LIST_URL}">Liste</a>'
    http = FakeHttp({DETAIL_URL: detail, LIST_URL: ratings_table(["1400", "1600", "1800"])})
    spacer = NoWaitSpacer()

    enrichment = Enricher(http, spacer=spacer).enrich("7")

    assert enrichment.registered_count == 17
    assert enrichment.avg_elo == 1600
    assert enrichment.top_player_elo == 1800
    assert enrichment.players_list_url == LIST_URL
    assert http.calls[0] == (DETAIL_URL, {"Ref": "7"}, "detail")
    assert spacer.waits == 2


def test_enricher_failure_leaves_fields_unset():
    http = FakeHttp({DETAIL_URL: requests.ConnectionError("down")})

    enrichment = Enricher(http, spacer=NoWaitSpacer()).enrich("7")

    assert enrichment.registered_count is None
    assert enrichment.avg_elo is None
    assert enrichment.top_player_elo is None
    assert enrichment.players_list_url is None


def test_enricher_skips_records_without_ref():
    http = FakeHttp({})

    enrichment = Enricher(http, spacer=NoWaitSpacer()).enrich(None)

    assert enrichment.registered_count is None
    assert http.calls == []
