"""Catalog synchronisation: fetch the library catalog page and upsert its resource links.

Runs either from ``SyncScheduler`` or on demand (CLI, admin endpoint). Runs
may overlap: the URL existence check happens per entry at insert time rather
than under a batch lock, so two runs racing on the same new link can both
insert it. That is rare and an administrator can remove the duplicate.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from libassist.index.storage import LibraryStore
from libassist.models import LibraryResource, SyncResult
from libassist.utils.text import collapse_whitespace

LOGGER = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = "https://library-service.com.ua:8443/khkhdak/DocumentSearchForm"
FETCH_TIMEOUT = 15.0
USER_AGENT = "HDAK-LibBot-Sync/1.0"

# Checked in order; the first rule with a matching fragment wins.
URL_TYPE_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("catalog", ("documentsearchform", "catalog")),
    ("repository", ("repository", "репозитор")),
    ("database", ("scopus", "webofscience", "doaj")),
    ("electronic_library", ("elib", "e-library")),
]


class SyncState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    UPSERTING = "upserting"
    FAILED = "failed"


@dataclass(slots=True)
class ParsedResource:
    name_uk: str
    name_en: str
    name_ru: str
    type: str
    url: str
    description_uk: Optional[str] = None


def extract_links(html: str) -> List[Tuple[str, str]]:
    """Return ``(href, text)`` for every anchor, text whitespace-collapsed.

    All HTML parsing lives here so callers stay independent of the parser.
    """
    soup = BeautifulSoup(html, "html.parser")
    links = []
    for anchor in soup.find_all("a", href=True):
        links.append((anchor["href"].strip(), collapse_whitespace(anchor.get_text(" "))))
    return links


def is_absolute_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def classify_resource_url(url: str) -> str:
    lowered = url.lower()
    for resource_type, fragments in URL_TYPE_RULES:
        if any(fragment in lowered for fragment in fragments):
            return resource_type
    return "other"


def parse_resources_from_html(html: str) -> List[ParsedResource]:
    """Keep absolute, non-empty links that point at a known kind of resource."""
    results = []
    for href, text in extract_links(html):
        if not text or not is_absolute_url(href):
            continue
        resource_type = classify_resource_url(href)
        if resource_type == "other":
            continue
        results.append(
            ParsedResource(name_uk=text, name_en=text, name_ru=text, type=resource_type, url=href)
        )
    return results


def fetch_catalog_html(url: str = DEFAULT_CATALOG_URL, *, timeout: float = FETCH_TIMEOUT) -> str:
    """GET the catalog page; timeouts and non-2xx responses raise ``httpx.HTTPError``."""
    response = httpx.get(
        url,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )
    response.raise_for_status()
    return response.text


class CatalogSync:
    """One synchronisation cycle: Idle → Fetching → Parsing → Upserting → Idle."""

    def __init__(
        self,
        store: LibraryStore,
        *,
        url: str = DEFAULT_CATALOG_URL,
        timeout: float = FETCH_TIMEOUT,
        fetch: Optional[Callable[[str, float], str]] = None,
    ) -> None:
        self.store = store
        self.url = url
        self.timeout = timeout
        self._fetch = fetch or (lambda target, limit: fetch_catalog_html(target, timeout=limit))
        self.state = SyncState.IDLE

    def run_sync(self) -> SyncResult:
        result = SyncResult()
        LOGGER.info("Starting catalog sync from %s", self.url)

        self.state = SyncState.FETCHING
        try:
            html = self._fetch(self.url, self.timeout)
        except Exception as exc:
            self.state = SyncState.FAILED
            message = str(exc) or exc.__class__.__name__
            LOGGER.error("Failed to fetch catalog HTML: %s", message)
            result.errors.append(message)
            self.state = SyncState.IDLE
            return result

        self.state = SyncState.PARSING
        parsed = parse_resources_from_html(html)
        LOGGER.info("Parsed %s resources from catalog", len(parsed))

        self.state = SyncState.UPSERTING
        for entry in parsed:
            try:
                if self._upsert(entry):
                    result.synced += 1
                    LOGGER.info("Synced resource %s (%s)", entry.name_uk, entry.url)
            except Exception as exc:
                message = f'Failed to sync "{entry.name_uk}": {exc}'
                LOGGER.warning(message)
                result.errors.append(message)

        self.state = SyncState.IDLE
        LOGGER.info("Sync complete: synced=%s errors=%s", result.synced, len(result.errors))
        return result

    def _upsert(self, entry: ParsedResource) -> bool:
        """Insert ``entry`` unless its URL is already known; existing rows are never touched."""
        if self.store.get_resource_by_url(entry.url) is not None:
            return False
        self.store.create_resource(
            LibraryResource(
                name_en=entry.name_en,
                name_uk=entry.name_uk,
                name_ru=entry.name_ru,
                description_uk=entry.description_uk,
                type=entry.type,
                url=entry.url,
            )
        )
        return True
