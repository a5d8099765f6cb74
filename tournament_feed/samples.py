"""Built-in sample tournaments, returned when every other source comes up empty."""
from __future__ import annotations

from typing import List

from .models import TournamentRecord

SAMPLE_TOURNAMENTS: List[TournamentRecord] = [
    TournamentRecord(
        id="hom-001",
        name="31e Open de Capeline",
        format="Lent",
        elo_bracket="1600-2000",
        lat=48.8566,
        lng=2.3522,
        city="Paris",
        address="Mairie du 4e, Place Baudoyer",
        has_players_list=True,
        link="https://ffechecs.fr",
        date="2026-03-15",
    ),
    TournamentRecord(
        id="hom-002",
        name="Tournoi Rapide de Lyon",
        format="Rapide",
        elo_bracket="Toutes catégories",
        lat=45.7640,
        lng=4.8357,
        city="Lyon",
        address="Complexe Sportif Tronchet",
        has_players_list=False,
        link="https://ffechecs.fr",
        date="2026-03-20",
    ),
    TournamentRecord(
        id="hom-003",
        name="Blitz du Dimanche",
        format="Blitz",
        elo_bracket="-1600",
        lat=43.2965,
        lng=5.3698,
        city="Marseille",
        address="Club d'Échecs Phocéen",
        has_players_list=True,
        link="https://ffechecs.fr",
        date="2026-04-05",
    ),
    TournamentRecord(
        id="hom-004",
        name="Open d'Été de Bordeaux",
        format="Lent",
        elo_bracket="-1600",
        lat=44.8378,
        lng=-0.5792,
        city="Bordeaux",
        address="Palais des Sports Gironde",
        has_players_list=True,
        link="https://ffechecs.fr",
        date="2026-07-10",
    ),
    TournamentRecord(
        id="hom-005",
        name="Semi-rapide de l'Est",
        format="Rapide",
        elo_bracket="1600-2000",
        lat=48.5734,
        lng=7.7521,
        city="Strasbourg",
        address="Maison des Associations",
        has_players_list=False,
        link="https://ffechecs.fr",
        date="2026-05-12",
    ),
]


def sample_tournaments() -> List[TournamentRecord]:
    return list(SAMPLE_TOURNAMENTS)
