"""HTML extraction helpers shared by the listing, detail and secondary-source parsers."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

SKIP_TAGS = {"script", "style", "noscript"}
BLOCK_TAGS = {"br", "p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "table", "section"}
CELL_TAGS = {"td", "th"}


@dataclass
class TableCell:
    tag: str
    text_parts: List[str] = field(default_factory=list)
    links: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def text(self) -> str:
        return normalize_space("".join(self.text_parts))


@dataclass
class TableRow:
    classes: Tuple[str, ...] = ()
    cells: List[TableCell] = field(default_factory=list)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def data_cells(self) -> List[TableCell]:
        return [c for c in self.cells if c.tag == "td"]

    def links(self) -> List[Tuple[str, str]]:
        out: List[Tuple[str, str]] = []
        for cell in self.cells:
            out.extend(cell.links)
        return out


@dataclass
class ParsedPage:
    rows: List[TableRow]
    anchors: List[Tuple[str, str]]
    inputs: Dict[str, str]
    text: str


class _PageParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.rows: List[TableRow] = []
        self.anchors: List[Tuple[str, str]] = []
        self.inputs: Dict[str, str] = {}
        self.text_parts: List[str] = []
        self._in_script_or_style = 0
        self._row_stack: List[TableRow] = []
        self._cell_stack: List[TableCell] = []
        self._current_href: Optional[str] = None
        self._current_anchor_parts: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        tag = tag.lower()
        attrs_dict = {k.lower(): (v or "") for k, v in attrs}
        if tag in SKIP_TAGS:
            self._in_script_or_style += 1
            return
        if tag in BLOCK_TAGS:
            self.text_parts.append("\n")
        if tag == "tr":
            row = TableRow(classes=tuple(attrs_dict.get("class", "").split()))
            self.rows.append(row)
            self._row_stack.append(row)
            return
        if tag in CELL_TAGS and self._row_stack:
            cell = TableCell(tag=tag)
            self._row_stack[-1].cells.append(cell)
            self._cell_stack.append(cell)
            return
        if tag == "a":
            href = attrs_dict.get("href")
            if href:
                self._current_href = href
                self._current_anchor_parts = []
            return
        if tag == "input":
            value = attrs_dict.get("value", "")
            for key in ("id", "name"):
                ident = attrs_dict.get(key)
                if ident and ident not in self.inputs:
                    self.inputs[ident] = value

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        if tag in SKIP_TAGS:
            if self._in_script_or_style:
                self._in_script_or_style -= 1
            return
        if tag in BLOCK_TAGS:
            self.text_parts.append("\n")
        if tag == "a" and self._current_href is not None:
            anchor = (self._current_href, normalize_space("".join(self._current_anchor_parts)))
            self.anchors.append(anchor)
            if self._cell_stack:
                self._cell_stack[-1].links.append(anchor)
            self._current_href = None
            self._current_anchor_parts = []
            return
        if tag in CELL_TAGS and self._cell_stack:
            self._cell_stack.pop()
            return
        if tag == "tr" and self._row_stack:
            closed = self._row_stack.pop()
            # Unclosed cells belong to the row being closed.
            self._cell_stack = [
                c for c in self._cell_stack if not any(c is owned for owned in closed.cells)
            ]

    def handle_data(self, data: str) -> None:
        if not data or self._in_script_or_style:
            return
        self.text_parts.append(data)
        if self._current_href is not None:
            self._current_anchor_parts.append(data)
        if self._cell_stack:
            self._cell_stack[-1].text_parts.append(data)


def parse_page(html_text: str) -> ParsedPage:
    parser = _PageParser()
    parser.feed(html_text or "")
    parser.close()
    return ParsedPage(
        rows=parser.rows,
        anchors=parser.anchors,
        inputs=parser.inputs,
        text="".join(parser.text_parts),
    )


def normalize_space(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def absolutize_url(base_url: str, href: str) -> Optional[str]:
    href = (href or "").strip()
    if not href:
        return None
    if href.lower().startswith(("javascript:", "mailto:", "#")):
        return None
    if urlparse(href).scheme in ("http", "https"):
        return href
    return urljoin(base_url, href)
