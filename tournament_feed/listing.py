"""Paginated listing source: row extraction and the postback page walker.

The upstream listing is a web-forms page. Page 1 comes from a plain GET; every
later page is a form POST carrying the hidden tokens of the previous response
plus a pager target and the wanted page number. Any source exposing
``fetch_page(page_index, tokens) -> ListingPage`` can be walked.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Protocol
from urllib.parse import parse_qs, urlparse

import requests

from . import config
from .extractors import ParsedPage, TableRow, absolutize_url, parse_page
from .http import HttpClient
from .models import CategoryDescriptor, RawListingRecord

logger = logging.getLogger(__name__)

DETAIL_LINK_MARKER = "FicheTournoi.aspx"

# Column positions in a listing row (td cells only).
CITY_COLUMN = 1
NAME_COLUMN = 3
DATE_COLUMN = 4
HANDICAP_COLUMN = 6

FRENCH_MONTHS: Dict[str, str] = {
    "janv.": "01",
    "févr.": "02",
    "mars": "03",
    "avr.": "04",
    "mai": "05",
    "juin": "06",
    "juil.": "07",
    "août": "08",
    "sept.": "09",
    "oct.": "10",
    "nov.": "11",
    "déc.": "12",
}


class ListingPageError(RuntimeError):
    """A listing page could not be fetched or parsed."""


@dataclass(frozen=True)
class ListingPage:
    rows: List[RawListingRecord]
    tokens: Dict[str, str] = field(default_factory=dict)
    has_more: bool = False


class PageSource(Protocol):
    def fetch_page(self, page_index: int, tokens: Optional[Dict[str, str]]) -> ListingPage:
        ...


def _row_detail_link(row: TableRow) -> Optional[str]:
    for href, _text in row.links():
        if DETAIL_LINK_MARKER in href:
            return href
    return None


def _ref_from_link(link: str) -> Optional[str]:
    values = parse_qs(urlparse(link).query).get("Ref")
    if not values:
        return None
    ref = values[0].strip()
    return ref or None


def parse_listing_rows(
    parsed: ParsedPage,
    forced_format: Optional[str] = None,
    site_root: str = config.FFE_SITE_ROOT,
) -> List[RawListingRecord]:
    records: List[RawListingRecord] = []
    for row in parsed.rows:
        if _row_detail_link(row) is None:
            continue
        cells = row.data_cells()

        def text_at(index: int) -> str:
            return cells[index].text if index < len(cells) else ""

        city = text_at(CITY_COLUMN).split(" (")[0].strip()
        name = ""
        link = ""
        if NAME_COLUMN < len(cells) and cells[NAME_COLUMN].links:
            href, anchor_text = cells[NAME_COLUMN].links[0]
            name = anchor_text.strip()
            link = absolutize_url(site_root, href) or ""
        if not name or not city:
            continue
        records.append(
            RawListingRecord(
                ref=_ref_from_link(link),
                name=name,
                city=city,
                date_text=text_at(DATE_COLUMN),
                link=link,
                handicap=text_at(HANDICAP_COLUMN).upper() == "X",
                forced_format=forced_format,
            )
        )
    return records


def parse_listing_page(
    html_text: str,
    forced_format: Optional[str] = None,
    site_root: str = config.FFE_SITE_ROOT,
) -> List[RawListingRecord]:
    """Map one listing page to raw records.

    Fields are read by fixed column position; a reordered upstream table
    yields wrong or dropped fields rather than an error. Rows without a
    name or a city are dropped.
    """
    return parse_listing_rows(parse_page(html_text), forced_format, site_root)


def extract_hidden_fields(parsed: ParsedPage) -> Dict[str, str]:
    return {name: parsed.inputs.get(name, "") for name in config.FFE_HIDDEN_FIELDS}


def parse_listing_date(date_text: str, today: Optional[date] = None) -> str:
    """Normalize ``"23 oct. 2026"`` style dates to ``YYYY-MM-DD``.

    Unknown months map to January, a missing year to the current one, and
    an unparseable value to today's date.
    """
    today = today or date.today()
    parts = (date_text or "").split()
    if len(parts) >= 2:
        day = parts[0].zfill(2)
        month = FRENCH_MONTHS.get(parts[1].lower(), "01")
        year = parts[2] if len(parts) > 2 else str(today.year)
        return f"{year}-{month}-{day}"
    return today.isoformat()


class PostbackListingSource:
    """One listing category of the web-forms site."""

    def __init__(
        self,
        http: HttpClient,
        category: CategoryDescriptor,
        listing_url: str = config.FFE_LISTING_URL,
        pager_target: str = config.FFE_PAGER_TARGET,
        site_root: str = config.FFE_SITE_ROOT,
    ) -> None:
        self.http = http
        self.category = category
        self.listing_url = listing_url
        self.pager_target = pager_target
        self.site_root = site_root

    @property
    def params(self) -> Dict[str, str]:
        return {"Action": "ANNONCE", "Level": str(self.category.level)}

    def build_postback_form(self, page_index: int, tokens: Dict[str, str]) -> Dict[str, str]:
        form = {
            "__EVENTTARGET": self.pager_target,
            "__EVENTARGUMENT": str(page_index),
        }
        for name in config.FFE_HIDDEN_FIELDS:
            form[name] = tokens.get(name, "")
        return form

    def fetch_page(self, page_index: int, tokens: Optional[Dict[str, str]]) -> ListingPage:
        try:
            if page_index <= 1:
                html_text = self.http.get_text(self.listing_url, params=self.params, kind="listing")
            else:
                if not tokens:
                    raise ListingPageError(
                        f"page {page_index} of level {self.category.level} requested without session tokens"
                    )
                form = self.build_postback_form(page_index, tokens)
                html_text = self.http.post_form(
                    self.listing_url, form, params=self.params, kind="listing"
                )
        except requests.RequestException as exc:
            raise ListingPageError(
                f"page {page_index} of level {self.category.level} failed: {exc}"
            ) from exc

        try:
            parsed = parse_page(html_text)
            rows = parse_listing_rows(parsed, self.category.format, self.site_root)
            next_tokens = extract_hidden_fields(parsed)
        except ValueError as exc:
            raise ListingPageError(
                f"page {page_index} of level {self.category.level} unparseable: {exc}"
            ) from exc
        if rows and not next_tokens.get("__VIEWSTATE"):
            logger.debug(
                "Level %s page %s carries no view-state; pagination ends here",
                self.category.level,
                page_index,
            )
        has_more = bool(rows) and bool(next_tokens.get("__VIEWSTATE"))
        return ListingPage(rows=rows, tokens=next_tokens, has_more=has_more)


class PaginationWalker:
    """Walks a page source sequentially until an empty page or the page ceiling."""

    def __init__(self, source: PageSource, max_pages: int = config.FFE_MAX_PAGES, label: str = "") -> None:
        self.source = source
        self.max_pages = max(1, int(max_pages))
        self.label = label

    def walk(self) -> List[RawListingRecord]:
        records: List[RawListingRecord] = []
        tokens: Optional[Dict[str, str]] = None
        for page_index in range(1, self.max_pages + 1):
            try:
                page = self.source.fetch_page(page_index, tokens)
            except ListingPageError as exc:
                logger.warning("Stopping %s at page %s: %s", self.label or "walk", page_index, exc)
                break
            if not page.rows:
                break
            records.extend(page.rows)
            logger.info("%s, page %s: added %s tournaments.", self.label or "walk", page_index, len(page.rows))
            if not page.has_more:
                break
            tokens = page.tokens
        return records
