"""Pipeline orchestration: live scrape, source aggregation and the snapshot read API."""
from __future__ import annotations

import hashlib
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import config
from .cache import GeocodeCache
from .classifier import classify, is_internal_tournament
from .enrichment import Enricher, Enrichment
from .geocoder import FRANCE, Geocoder
from .grouping import group_tournaments
from .http import HttpClient, RequestMetrics, RequestSpacer
from .legacy_db import parse_legacy_database
from .listing import PaginationWalker, PostbackListingSource, parse_listing_date
from .models import CategoryDescriptor, GeoCoordinate, RawListingRecord, TournamentRecord
from .reporting import read_snapshot, snapshot_records, write_snapshot
from .samples import sample_tournaments
from .swiss_source import SwissCalendarSource, fetch_swiss_tournaments

logger = logging.getLogger(__name__)

PLAYER_LIST_MARKER = "ListeInscrits.aspx"

RecordFetcher = Callable[[], List[TournamentRecord]]


@dataclass
class PipelineClients:
    http: HttpClient
    metrics: RequestMetrics
    cache: GeocodeCache
    geocoder: Geocoder
    enricher: Enricher


def build_clients(
    cache_path: Optional[str] = None,
    metrics: Optional[RequestMetrics] = None,
    http: Optional[HttpClient] = None,
) -> PipelineClients:
    metrics = metrics or RequestMetrics()
    if http is None:
        http = HttpClient(
            timeout=config.HTTP_TIMEOUT_SECONDS,
            retry_max=config.HTTP_RETRY_MAX,
            backoff_base=config.HTTP_BACKOFF_BASE,
            backoff_max=config.HTTP_BACKOFF_MAX,
            user_agent=config.HTTP_USER_AGENT,
            metrics=metrics,
        )
    else:
        http.set_metrics(metrics)
    cache = GeocodeCache.load(cache_path or config.GEOCODE_CACHE_PATH)
    geocoder = Geocoder(
        http,
        cache,
        spacer=RequestSpacer(config.GEOCODER_MIN_INTERVAL_SECONDS),
        metrics=metrics,
    )
    enricher = Enricher(http, spacer=RequestSpacer(config.ENRICH_MIN_INTERVAL_SECONDS))
    return PipelineClients(http=http, metrics=metrics, cache=cache, geocoder=geocoder, enricher=enricher)


def walk_category(http: HttpClient, category: CategoryDescriptor) -> List[RawListingRecord]:
    logger.info("Scraping level %s (%s)...", category.level, category.name)
    source = PostbackListingSource(http, category)
    walker = PaginationWalker(source, max_pages=config.FFE_MAX_PAGES, label=f"Level {category.level}")
    return walker.walk()


def walk_categories(
    http: HttpClient,
    categories: Sequence[CategoryDescriptor],
    workers: int = 1,
) -> List[RawListingRecord]:
    """Union of all category walks, in category order.

    Each walk is sequential; distinct categories may run side by side.
    """
    workers = max(1, int(workers))
    if workers == 1 or len(categories) <= 1:
        results = [walk_category(http, c) for c in categories]
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(categories))) as executor:
            results = list(executor.map(lambda c: walk_category(http, c), categories))
    records: List[RawListingRecord] = []
    for rows in results:
        records.extend(rows)
    return records


def dedupe_raw(records: Sequence[RawListingRecord]) -> List[RawListingRecord]:
    seen = set()
    unique: List[RawListingRecord] = []
    for record in records:
        key = record.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def fallback_id(raw: RawListingRecord) -> str:
    digest = hashlib.sha256(f"{raw.link}|{raw.name}|{raw.date_text}".encode("utf-8")).hexdigest()
    return f"gen-{digest[:12]}"


def build_record(
    raw: RawListingRecord,
    coordinate: GeoCoordinate,
    enrichment: Enrichment,
    today: Optional[date] = None,
) -> TournamentRecord:
    labels = classify(raw.name, raw.forced_format)
    return TournamentRecord(
        id=raw.ref or fallback_id(raw),
        name=raw.name,
        format=labels.format,
        elo_bracket=labels.elo_bracket,
        lat=coordinate.lat,
        lng=coordinate.lng,
        city=raw.city,
        address=raw.city,
        has_players_list=enrichment.players_list_url is not None or PLAYER_LIST_MARKER in raw.link,
        link=raw.link,
        date=parse_listing_date(raw.date_text, today),
        is_internal=labels.is_internal,
        registered_count=enrichment.registered_count,
        avg_elo=enrichment.avg_elo,
        top_player_elo=enrichment.top_player_elo,
    )


def fetch_live_tournaments(
    clients: PipelineClients,
    categories: Optional[Sequence[CategoryDescriptor]] = None,
    workers: Optional[int] = None,
    today: Optional[date] = None,
) -> List[TournamentRecord]:
    """Full multi-category scrape of the primary source, enriched and grouped."""
    categories = list(config.CATEGORIES if categories is None else categories)
    workers = config.CATEGORY_WORKERS if workers is None else workers

    raw_records = dedupe_raw(walk_categories(clients.http, categories, workers))
    logger.info("Enriching %s unique tournaments", len(raw_records))

    records: List[TournamentRecord] = []
    for raw in raw_records:
        coordinate = clients.geocoder.resolve(raw.city, FRANCE)
        enrichment = clients.enricher.enrich(raw.ref)
        records.append(build_record(raw, coordinate, enrichment, today))
    return group_tournaments(records)


def mark_internal(records: Sequence[TournamentRecord]) -> List[TournamentRecord]:
    return [
        replace(r, is_internal=r.is_internal or is_internal_tournament(r.name)) for r in records
    ]


class SourceAggregator:
    """Prioritized source chain; ``aggregate`` never returns an empty list.

    1. persisted snapshot if present, otherwise a live primary scrape;
    2. the secondary source, always, unioned with (1);
    3. the legacy local database when the union is empty;
    4. the built-in samples as a last resort.
    """

    def __init__(
        self,
        live_fetcher: RecordFetcher,
        secondary_fetcher: RecordFetcher,
        snapshot_path: Optional[str] = None,
        legacy_db_path: Optional[str] = None,
        legacy_reader: Callable[[str], List[TournamentRecord]] = parse_legacy_database,
        samples: Callable[[], List[TournamentRecord]] = sample_tournaments,
    ) -> None:
        self.live_fetcher = live_fetcher
        self.secondary_fetcher = secondary_fetcher
        self.snapshot_path = snapshot_path or config.SNAPSHOT_PATH
        self.legacy_db_path = legacy_db_path or config.LEGACY_DB_PATH
        self.legacy_reader = legacy_reader
        self.samples = samples

    def primary_records(self) -> List[TournamentRecord]:
        try:
            payload = read_snapshot(self.snapshot_path)
        except (OSError, ValueError) as exc:
            logger.warning("Snapshot %s unreadable, scraping live: %s", self.snapshot_path, exc)
            payload = None
        if payload is not None:
            records = snapshot_records(payload)
            logger.info("Loaded %s tournaments from snapshot %s", len(records), self.snapshot_path)
            return records
        try:
            return self.live_fetcher()
        except Exception as exc:  # a failing source degrades to the next step
            logger.warning("Primary source failed: %s", exc)
            return []

    def secondary_records(self) -> List[TournamentRecord]:
        try:
            return self.secondary_fetcher()
        except Exception as exc:  # a failing source degrades to the next step
            logger.warning("Secondary source failed: %s", exc)
            return []

    def aggregate(self) -> List[TournamentRecord]:
        combined = self.primary_records() + self.secondary_records()
        if combined:
            return mark_internal(combined)

        if os.path.exists(self.legacy_db_path):
            legacy = self.legacy_reader(self.legacy_db_path)
            if legacy:
                logger.info("Using %s tournaments from legacy database", len(legacy))
                return legacy

        logger.warning("All sources empty, falling back to built-in samples")
        return self.samples()


def build_aggregator(
    clients: PipelineClients,
    snapshot_path: Optional[str] = None,
    legacy_db_path: Optional[str] = None,
    workers: Optional[int] = None,
) -> SourceAggregator:
    swiss = SwissCalendarSource(clients.http)
    return SourceAggregator(
        live_fetcher=lambda: fetch_live_tournaments(clients, workers=workers),
        secondary_fetcher=lambda: fetch_swiss_tournaments(swiss, clients.geocoder),
        snapshot_path=snapshot_path,
        legacy_db_path=legacy_db_path,
    )


def run_scrape(
    snapshot_path: Optional[str] = None,
    cache_path: Optional[str] = None,
    workers: Optional[int] = None,
    clients: Optional[PipelineClients] = None,
) -> Dict[str, Any]:
    """Live scrape of the primary source, written as a fresh snapshot.

    Errors propagate; the previous snapshot is replaced only on success.
    """
    snapshot_path = snapshot_path or config.SNAPSHOT_PATH
    clients = clients or build_clients(cache_path)
    logger.info("Starting global scrape...")
    tournaments = fetch_live_tournaments(clients, workers=workers)
    payload = write_snapshot(snapshot_path, tournaments)
    logger.info("Scrape complete: %s tournaments saved to %s", len(tournaments), snapshot_path)
    logger.info("Requests: %s", clients.metrics.summary())
    return payload


def load_snapshot_payload(
    snapshot_path: Optional[str] = None,
    aggregator: Optional[SourceAggregator] = None,
) -> Dict[str, Any]:
    """Read API for the presentation layer: aggregated tournaments plus ``lastUpdate``."""
    snapshot_path = snapshot_path or config.SNAPSHOT_PATH
    last_update = None
    try:
        payload = read_snapshot(snapshot_path)
    except (OSError, ValueError) as exc:
        logger.warning("Snapshot %s unreadable: %s", snapshot_path, exc)
        payload = None
    if payload is not None:
        last_update = payload.get("lastUpdate")

    if aggregator is None:
        aggregator = build_aggregator(build_clients(), snapshot_path=snapshot_path)
    tournaments = aggregator.aggregate()
    return {"tournaments": [t.to_dict() for t in tournaments], "lastUpdate": last_update}
