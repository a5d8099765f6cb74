"""Secondary listing source: a single calendar page segmented by dates."""
from __future__ import annotations

import base64
import logging
import re
from typing import Dict, List, Optional, Tuple

import requests

from . import config
from .classifier import infer_format
from .extractors import absolutize_url, parse_page
from .geocoder import SWITZERLAND, Geocoder
from .http import HttpClient
from .listing import ListingPage, ListingPageError, PaginationWalker
from .models import RawListingRecord, TournamentRecord

logger = logging.getLogger(__name__)

# Every date splits the text; in a "DD.MM.YYYY – DD.MM.YYYY" range the start
# date only owns the separator, so the entry pairs with the end date.
DATE_SPLIT = re.compile(r"(\d{2}\.\d{2}\.\d{4})")
LEADING_SEPARATORS = re.compile(r"^[–\s]+")
EDITION_PREFIX = re.compile(r"^(14\.|15\.|73\.|79\.)\s+")
SKIP_NAMES = ("Kalender",)

MAJOR_CITIES: Tuple[str, ...] = (
    "Zürich", "Zurich", "Genève", "Geneva", "Basel", "Bâle", "Bern", "Berne", "Lausanne",
    "Winterthur", "Lucerne", "Luzern", "St. Gallen", "Lugano", "Biel", "Bienne", "Thun",
    "Fribourg", "Schaffhausen", "Chur", "Neuchâtel", "Payerne", "Martigny", "Locarno",
    "Riehen", "Davos", "Aarau", "Wil", "Inzling", "Graechen", "St. Moritz", "Baden",
    "Zug", "Sion", "Uster", "Montreux", "Thalwil", "Stäfa", "Ascona", "Lyss",
    "Prangins", "Echallens", "Vevey", "Nyon", "Morges", "Gland", "Bulle", "Muri", "Rapperswil",
)
UNKNOWN_CITY = "Suisse"


def extract_city(name: str) -> str:
    """Guess the host city from a calendar entry title."""
    clean = EDITION_PREFIX.sub("", name)
    if ":" in clean:
        return clean.split(":")[0].strip()
    if " in " in clean:
        return re.sub(r"[.,]", "", clean.split(" in ")[1].strip().split(" ")[0])

    parts = re.split(r"[-–]", clean)
    if len(parts) > 1:
        last = parts[-1].strip().split(" ")[0]
        if len(last) > 3:
            return last

    for city in MAJOR_CITIES:
        if city in clean:
            return city
    return UNKNOWN_CITY


def swiss_id(name: str, date_text: str) -> str:
    encoded = base64.b64encode(f"{name}{date_text}".encode("utf-8")).decode("ascii")
    return f"swiss-{encoded[:12]}"


def iso_from_dotted(date_text: str) -> str:
    day, month, year = date_text.split(".")
    return f"{year}-{month}-{day}"


def _find_link(anchors: List[Tuple[str, str]], name: str, default: str) -> str:
    needle = name[:10]
    for href, text in anchors:
        if needle in text:
            return absolutize_url(config.SWISS_SITE_ROOT + "/", href) or default
    return default


def parse_calendar_page(html_text: str, listing_url: str = config.SWISS_LISTING_URL) -> List[RawListingRecord]:
    parsed = parse_page(html_text)
    chunks = DATE_SPLIT.split(parsed.text)
    records: List[RawListingRecord] = []
    for i in range(1, len(chunks), 2):
        date_text = chunks[i]
        content = (chunks[i + 1] if i + 1 < len(chunks) else "").strip()
        content = LEADING_SEPARATORS.sub("", content).strip()
        if len(content) < 5:
            continue

        name = content.split("\n")[0].split("(")[0].strip()
        if len(name) < 5 or "SSB" in name or name in SKIP_NAMES:
            continue

        records.append(
            RawListingRecord(
                ref=None,
                name=name,
                city=extract_city(name),
                date_text=date_text,
                link=_find_link(parsed.anchors, name, listing_url),
            )
        )
    return records


class SwissCalendarSource:
    """Single-page source; ignores tokens and never reports more pages."""

    def __init__(self, http: HttpClient, listing_url: str = config.SWISS_LISTING_URL) -> None:
        self.http = http
        self.listing_url = listing_url

    def fetch_page(self, page_index: int, tokens: Optional[Dict[str, str]]) -> ListingPage:
        if page_index > 1:
            return ListingPage(rows=[])
        try:
            html_text = self.http.get_text(self.listing_url, kind="listing")
        except requests.RequestException as exc:
            raise ListingPageError(f"calendar page failed: {exc}") from exc
        return ListingPage(rows=parse_calendar_page(html_text, self.listing_url))


def build_swiss_record(raw: RawListingRecord, geocoder: Geocoder) -> TournamentRecord:
    coordinate = geocoder.resolve(raw.city, SWITZERLAND)
    return TournamentRecord(
        id=swiss_id(raw.name, raw.date_text),
        name=raw.name,
        format=infer_format(raw.name),
        elo_bracket=config.DEFAULT_BRACKET,
        lat=coordinate.lat,
        lng=coordinate.lng,
        city=raw.city,
        address=raw.city,
        has_players_list=False,
        link=raw.link,
        date=iso_from_dotted(raw.date_text),
    )


def fetch_swiss_tournaments(source: SwissCalendarSource, geocoder: Geocoder) -> List[TournamentRecord]:
    logger.info("Scraping Swiss tournaments...")
    raw_records = PaginationWalker(source, max_pages=1, label="Swiss calendar").walk()
    tournaments = [build_swiss_record(raw, geocoder) for raw in raw_records]
    logger.info("Found %s Swiss tournaments.", len(tournaments))
    return tournaments
