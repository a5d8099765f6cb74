"""Per-record lookups on the detail pages: registration count and rating statistics."""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional

import requests

from . import config
from .extractors import ParsedPage, absolutize_url, parse_page
from .http import HttpClient, RequestSpacer

logger = logging.getLogger(__name__)

REGISTERED_PATTERN = re.compile(r"Inscrits\s*:\s*(\d+)", re.IGNORECASE)
PLAYER_LIST_MARKERS = ("ListeInscrits.aspx", "Resultats.aspx?")
HEADER_ROW_CLASS = "papi_liste_t"
LEADING_NUMBER = re.compile(r"\d+")


@dataclass(frozen=True)
class RegistrationInfo:
    count: Optional[int] = None
    list_url: Optional[str] = None


@dataclass(frozen=True)
class RatingStats:
    avg_elo: int
    top_player_elo: int


@dataclass(frozen=True)
class Enrichment:
    registered_count: Optional[int] = None
    avg_elo: Optional[int] = None
    top_player_elo: Optional[int] = None
    players_list_url: Optional[str] = None


def parse_registration_page(html_text: str, site_root: str = config.FFE_SITE_ROOT) -> RegistrationInfo:
    """Read ``Inscrits : N`` and the player-list link from a detail page.

    A missing pattern means the count is unknown, not zero.
    """
    parsed = parse_page(html_text)
    match = REGISTERED_PATTERN.search(parsed.text)
    count = int(match.group(1)) if match else None

    list_url = None
    for href, _text in parsed.anchors:
        if any(marker in href for marker in PLAYER_LIST_MARKERS):
            list_url = absolutize_url(site_root, href)
            break
    return RegistrationInfo(count=count, list_url=list_url)


def _rating_column(parsed: ParsedPage) -> int:
    column = -1
    for row in parsed.rows:
        if not row.has_class(HEADER_ROW_CLASS):
            continue
        for index, cell in enumerate(row.cells):
            if cell.text.lower() in config.RATING_HEADER_LABELS:
                column = index
        break
    return column if column >= 0 else config.RATING_FALLBACK_COLUMN


def _leading_rating(text: str) -> Optional[int]:
    token = text.strip().split(" ")[0]
    match = LEADING_NUMBER.match(token)
    if not match:
        return None
    return int(match.group(0))


def collect_ratings(html_text: str) -> List[int]:
    parsed = parse_page(html_text)
    column = _rating_column(parsed)
    ratings: List[int] = []
    for row in parsed.rows:
        if row.has_class(HEADER_ROW_CLASS):
            continue
        cells = row.data_cells()
        if len(cells) <= column:
            continue
        value = _leading_rating(cells[column].text)
        if value is not None and config.RATING_MIN <= value < config.RATING_MAX_EXCLUSIVE:
            ratings.append(value)
    return ratings


def parse_rating_stats(html_text: str) -> Optional[RatingStats]:
    """Mean and max of the plausible ratings; None for sparse or garbled tables."""
    ratings = collect_ratings(html_text)
    if len(ratings) < config.RATING_MIN_SAMPLES:
        return None
    mean = sum(ratings) / len(ratings)
    return RatingStats(avg_elo=int(math.floor(mean + 0.5)), top_player_elo=max(ratings))


class Enricher:
    def __init__(
        self,
        http: HttpClient,
        spacer: Optional[RequestSpacer] = None,
        detail_url: str = config.FFE_DETAIL_URL,
        site_root: str = config.FFE_SITE_ROOT,
    ) -> None:
        self.http = http
        self.spacer = spacer or RequestSpacer(config.ENRICH_MIN_INTERVAL_SECONDS)
        self.detail_url = detail_url
        self.site_root = site_root

    def fetch_registration(self, ref: str) -> RegistrationInfo:
        if not ref:
            return RegistrationInfo()
        self.spacer.wait()
        try:
            html_text = self.http.get_text(self.detail_url, params={"Ref": ref}, kind="detail")
        except requests.RequestException as exc:
            logger.warning("Failed to fetch player count for ref %s: %s", ref, exc)
            return RegistrationInfo()
        return parse_registration_page(html_text, self.site_root)

    def fetch_rating_stats(self, url: str) -> Optional[RatingStats]:
        self.spacer.wait()
        try:
            html_text = self.http.get_text(url, kind="detail")
        except requests.RequestException as exc:
            logger.warning("Failed to fetch rating stats from %s: %s", url, exc)
            return None
        return parse_rating_stats(html_text)

    def enrich(self, ref: Optional[str]) -> Enrichment:
        if not ref:
            return Enrichment()
        registration = self.fetch_registration(ref)
        stats = self.fetch_rating_stats(registration.list_url) if registration.list_url else None
        return Enrichment(
            registered_count=registration.count,
            avg_elo=stats.avg_elo if stats else None,
            top_player_elo=stats.top_player_elo if stats else None,
            players_list_url=registration.list_url,
        )
