"""
Turn entries of an AO3 reading history page into WorkRecords.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from bs4 import BeautifulSoup

ORPHAN_ACCOUNT = "orphan_account"

ENTRY_SELECTOR = "ol.reading.work.index.group li.reading.work.blurb.group"
REQUIRED_TAG_SLOTS = ("rating", "warnings", "category", "status")

_VISITS_RE = re.compile(r"Visited\s+(\S+)")


@dataclass
class WorkRecord:
    title: str
    authors: List[str] = field(default_factory=list)
    last_updated: str = ""
    fandoms: List[str] = field(default_factory=list)
    characters: List[str] = field(default_factory=list)
    ship_types: List[str] = field(default_factory=list)
    rating: str = ""
    work_status: str = ""
    ships: List[str] = field(default_factory=list)
    additional_tags: List[str] = field(default_factory=list)
    word_count: int = 0
    kudos: int = 0
    hits: int = 0
    user_last_visited: str = ""
    user_visitations: int = 1


class ExtractStatus(Enum):
    MATCHED = "matched"
    NOT_IN_YEAR = "not_in_year"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ExtractResult:
    status: ExtractStatus
    record: Optional[WorkRecord] = None
    # True when the visited date was in the target year, even if the entry was
    # then skipped for missing markup.
    in_year: bool = False

    @property
    def matched(self):
        return self.status is ExtractStatus.MATCHED

    @classmethod
    def skipped(cls, in_year=False):
        return cls(ExtractStatus.SKIPPED, in_year=in_year)


NOT_IN_YEAR = ExtractResult(ExtractStatus.NOT_IN_YEAR)


@dataclass(frozen=True)
class RequiredTags:
    """The four fixed classification spans, in page order."""

    rating: str
    warnings: str
    category: str
    status: str

    @classmethod
    def from_spans(cls, texts):
        if len(texts) < len(REQUIRED_TAG_SLOTS):
            return None
        return cls(*texts[:len(REQUIRED_TAG_SLOTS)])

    @property
    def ship_types(self):
        return [token.strip() for token in self.category.split(",") if token.strip()]


def parse_count(text):
    """Parse '12,345' style numbers; anything unreadable counts as 0."""
    if text is None:
        return 0
    try:
        return max(int(text.replace(",", "").strip()), 0)
    except ValueError:
        return 0


def parse_visitations(text):
    """'Visited once' -> 1, 'Visited 4 times' -> 4, otherwise 1."""
    match = _VISITS_RE.search(text or "")
    if not match or match.group(1) == "once":
        return 1
    try:
        visits = int(match.group(1))
    except ValueError:
        return 1
    return visits if visits > 0 else 1


def parse_last_visited(text):
    """Pull the date out of a 'Last visited: 14 Dec 2024 (...) Visited N times' block."""
    text = text.strip()
    prefix = "Last visited:"
    if not text.startswith(prefix):
        return ""
    lines = text[len(prefix):].strip().splitlines()
    first_line = lines[0] if lines else ""
    # Markup flattened onto a single line still carries the version note and
    # visit count after the date.
    first_line = re.split(r"\(|Visited", first_line, maxsplit=1)[0]
    return first_line.strip()


def _text(tag):
    return tag.get_text().strip()


def _stat(stats_block, selector):
    if stats_block is None:
        return 0
    tag = stats_block.select_one(selector)
    return parse_count(tag.get_text()) if tag else 0


def extract(entry, target_year) -> ExtractResult:
    """
    Extract one reading history entry (a bs4 Tag for the <li> blurb).
    """

    visited_block = entry.select_one("div.user.module.group h4")
    if visited_block is None:
        return ExtractResult.skipped()

    visited_text = visited_block.get_text()
    last_visited = parse_last_visited(visited_text)
    if str(target_year) not in last_visited:
        return NOT_IN_YEAR

    header = entry.select_one("div.header.module")
    if header is None:
        return ExtractResult.skipped(in_year=True)
    title_tag = header.select_one("h4.heading a")
    if title_tag is None:
        return ExtractResult.skipped(in_year=True)

    required = RequiredTags.from_spans(
        [_text(span) for span in header.select("ul li a span.text")]
    )
    if required is None:
        return ExtractResult.skipped(in_year=True)

    authors = [
        name for name in (_text(a) for a in header.select("h4.heading a[rel~=author]"))
        if name != ORPHAN_ACCOUNT
    ]
    updated = header.find('p')
    stats_block = entry.select_one("dl.stats")

    record = WorkRecord(
        title=_text(title_tag),
        authors=authors,
        last_updated=_text(updated) if updated else "",
        fandoms=[_text(a) for a in header.select("h5.fandoms.heading a")],
        characters=[_text(li) for li in entry.select("ul.tags.commas li.characters")],
        ship_types=required.ship_types,
        rating=required.rating,
        work_status=required.status,
        ships=[_text(li) for li in entry.select("ul.tags.commas li.relationships")],
        additional_tags=[_text(li) for li in entry.select("ul.tags.commas li.freeforms")],
        word_count=_stat(stats_block, "dd.words"),
        kudos=_stat(stats_block, "dd.kudos a"),
        hits=_stat(stats_block, "dd.hits"),
        user_last_visited=last_visited,
        user_visitations=parse_visitations(visited_text),
    )
    return ExtractResult(ExtractStatus.MATCHED, record, in_year=True)


def extract_page(html, target_year):
    """Run extract() over every history entry of a page, in document order."""
    soup = BeautifulSoup(html, 'html.parser')
    return [extract(entry, target_year) for entry in soup.select(ENTRY_SELECTOR)]
