"""Project configuration.

Keeps endpoints, request shapes, pacing and output paths centralized here.
Path and worker settings can be overridden from the environment (see
``apply_env_overrides``); everything else is fixed by the upstream sites.
"""
from __future__ import annotations

import os
from typing import Dict, List, Tuple

from .models import CategoryDescriptor

# --- Primary source (paginated listing) ---

FFE_SITE_ROOT = "http://www.echecs.asso.fr/"
FFE_LISTING_URL = "http://www.echecs.asso.fr/ListeTournois.aspx"
FFE_DETAIL_URL = "http://www.echecs.asso.fr/FicheTournoi.aspx"
FFE_PAGER_TARGET = "ctl00$ContentPlaceHolderMain$PagerHeader"
FFE_HIDDEN_FIELDS: Tuple[str, ...] = (
    "__VIEWSTATE",
    "__VIEWSTATEGENERATOR",
    "__EVENTVALIDATION",
)
FFE_MAX_PAGES = 10

CATEGORIES: List[CategoryDescriptor] = [
    CategoryDescriptor(level=1, format="Lent", name="Cadence Lente"),
    CategoryDescriptor(level=2, format="Lent", name="60 ko / 61mn"),
    CategoryDescriptor(level=3, format="Rapide", name="Rapide"),
    CategoryDescriptor(level=4, format="Blitz", name="Blitz"),
]

# --- Secondary source (single page) ---

SWISS_SITE_ROOT = "https://www.swisschess.ch"
SWISS_LISTING_URL = "https://www.swisschess.ch/terminliste-anzeigen.html"

# --- Geocoding ---

GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
GEOCODER_USER_AGENT = "EchecsMatchApp/1.0"
GEOCODER_TIMEOUT_SECONDS = 10
GEOCODER_MIN_INTERVAL_SECONDS = 1.0

FRANCE_CENTROID: Dict[str, float] = {"lat": 46.2276, "lng": 2.2137}
SWITZERLAND_CENTROID: Dict[str, float] = {"lat": 46.8182, "lng": 8.2275}

# --- Enrichment ---

ENRICH_MIN_INTERVAL_SECONDS = 0.1
RATING_MIN = 800
RATING_MAX_EXCLUSIVE = 2999
RATING_MIN_SAMPLES = 3
RATING_HEADER_LABELS = frozenset({"elo", "elor", "elop", "classement"})
RATING_FALLBACK_COLUMN = 3

# --- Classification ---

DEFAULT_BRACKET = "Toutes catégories"

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 3
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0
HTTP_USER_AGENT = "EchecsMatchScraper/1.0"

# --- Concurrency ---

CATEGORY_WORKERS = 2

# --- Outputs ---

SNAPSHOT_PATH = "data/tournaments.json"
GEOCODE_CACHE_PATH = "data/geocoding_cache.json"
LEGACY_DB_PATH = "data/tournaments.papi"


def apply_env_overrides(environ=None) -> None:
    """Update module-level settings from ``TOURNAMENT_*`` environment variables."""
    env = os.environ if environ is None else environ
    globals_ref = globals()

    for env_name, setting in (
        ("TOURNAMENT_SNAPSHOT_PATH", "SNAPSHOT_PATH"),
        ("TOURNAMENT_GEOCODE_CACHE_PATH", "GEOCODE_CACHE_PATH"),
        ("TOURNAMENT_LEGACY_DB_PATH", "LEGACY_DB_PATH"),
    ):
        value = (env.get(env_name) or "").strip()
        if value:
            globals_ref[setting] = value

    workers = (env.get("TOURNAMENT_CATEGORY_WORKERS") or "").strip()
    if workers:
        globals_ref["CATEGORY_WORKERS"] = max(1, int(workers))

    timeout = (env.get("TOURNAMENT_HTTP_TIMEOUT_SECONDS") or "").strip()
    if timeout:
        globals_ref["HTTP_TIMEOUT_SECONDS"] = float(timeout)
