from tournament_feed.classifier import (
    BRACKET_RULES,
    classify,
    infer_elo_bracket,
    infer_format,
    is_internal_tournament,
    match_bracket_rule,
)


def test_range_bracket_maps_to_middle_band():
    assert infer_elo_bracket("Open 1500-1799") == "1600-2000"


def test_minus_bracket_low_threshold():
    assert infer_elo_bracket("Open -1600") == "-1600"
    assert infer_elo_bracket("Tournoi <1400") == "-1600"


def test_minus_bracket_middle_threshold():
    assert infer_elo_bracket("Open B -2000") == "1600-2000"


def test_no_marker_keeps_default_bracket():
    assert infer_elo_bracket("Open de Paris") == "Toutes catégories"


def test_plus_brackets():
    assert infer_elo_bracket("Open +2000") == "2000+"
    assert infer_elo_bracket("Open plus de 1500") == "1600-2000"
    assert infer_elo_bracket("Open >2200") == "2000+"


def test_high_range_maps_to_top_band():
    assert infer_elo_bracket("Open 2000 - 2600") == "2000+"


def test_low_range_maps_to_bottom_band():
    assert infer_elo_bracket("Open 1000-1600") == "-1600"


def test_under_phrase():
    assert infer_elo_bracket("Réservé en dessous de 1600") == "-1600"
    assert infer_elo_bracket("Tournoi moins de 1600 Elo") == "-1600"


def test_matched_rule_without_band_stops_evaluation():
    # 1200-2600 matches the range rule but fits no band; later rules are not tried.
    rule, value = match_bracket_rule("Open 1200-2600 moins de 1600")
    assert rule.name == "range"
    assert value is None
    assert infer_elo_bracket("Open 1200-2600 moins de 1600") == "Toutes catégories"


def test_bracket_rules_order():
    assert [r.name for r in BRACKET_RULES] == ["range", "minus", "plus", "under_1600_phrase"]


def test_format_keywords():
    assert infer_format("Blitz du dimanche") == "Blitz"
    assert infer_format("Torneo Lampo") == "Blitz"
    assert infer_format("Rapide de Lyon") == "Rapide"
    assert infer_format("Schnellschach Open") == "Rapide"
    assert infer_format("Aktivschach Bern") == "Rapide"
    assert infer_format("Open International") == "Lent"


def test_semi_rapid_wins_over_blitz_keyword():
    assert infer_format("Torneo Semilampo Lugano") == "Rapide"
    assert infer_format("Semi-rapide de l'Est") == "Rapide"


def test_forced_format_overrides_keywords():
    assert infer_format("Blitz du club", forced_format="Lent") == "Lent"


def test_internal_phrases():
    assert is_internal_tournament("Championnat du Club 2026")
    assert is_internal_tournament("Open réservé aux membres")
    assert is_internal_tournament("Tournoi INTERNE d'hiver")
    assert not is_internal_tournament("Open de Paris")


def test_classify_combines_labels():
    labels = classify("Blitz interne -1600")
    assert labels.format == "Blitz"
    assert labels.elo_bracket == "-1600"
    assert labels.is_internal is True
