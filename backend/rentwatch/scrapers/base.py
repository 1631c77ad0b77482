"""Base scraper adapter interface.

All portal-specific scrapers inherit from BaseScraperAdapter and implement
``extract_from_soup()``; fetching, pagination, pacing and deduplication are
shared here.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Set, Tuple

import httpx
import structlog
from bs4 import BeautifulSoup, Tag

from rentwatch.core.exceptions import NetworkError, ParseError, ScraperError
from rentwatch.scrapers.utils.extraction import absolute_url, parse_html
from rentwatch.scrapers.utils.identity import deduplicate_properties, generate_property_id
from rentwatch.scrapers.utils.rate_limiter import DelayStrategy, FixedDelay
from rentwatch.scrapers.utils.retry import RETRYABLE_HTTP_ERRORS, with_retry
from rentwatch.scrapers.utils.user_agents import get_browser_headers


BUILDING_TYPE_APARTMENT = "apartment"
UNKNOWN_VALUE = "不明"

DEFAULT_MAX_PAGES = 10
DEFAULT_PAGE_DELAY_SECONDS = 1.5
DEFAULT_URL_DELAY_SECONDS = 2.0
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class PropertyRecord:
    """Normalized rental listing returned by all adapters."""

    id: str  # generate_property_id(address, area, price)
    url: str
    title: str = ""
    price: str = ""  # site-native formatting, e.g. "13万円" or "248,000円"
    address: str = ""  # normalized to chōme level
    layout: str = ""
    area: str = ""
    building_type: str = BUILDING_TYPE_APARTMENT
    access: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    # Assigned by the persistence layer, never by extractors
    created_at: Optional[datetime] = None
    first_seen_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.id:
            raise ValueError("id is required")
        if not self.url:
            raise ValueError("url is required")

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary representation (access copied)."""
        data = asdict(self)
        data["access"] = list(self.access)
        return data


class PageState(str, Enum):
    """States of the page cursor walking one search URL."""

    FETCHING = "fetching"
    HAS_NEXT = "has_next"
    DONE = "done"


class PageResult(NamedTuple):
    """One downloaded result page."""

    html: str
    records: List[PropertyRecord]
    next_url: Optional[str]


class BaseScraperAdapter(ABC):
    """Abstract base class for all portal adapters.

    Subclasses set the class attributes below and implement
    ``extract_from_soup()``. Shared collaborators (HTTP client, delays,
    limits) are plain attributes so the factory can inject them.
    """

    site_slug: str = ""  # Must be overridden in subclass (e.g., "suumo")
    site_name: str = ""  # Must be overridden in subclass (e.g., "SUUMO")
    base_url: str = ""  # Origin used to resolve relative links
    url_patterns: Tuple[str, ...] = ()  # Substrings identifying the site's URLs

    # Minimum viable record: every required field, plus one of any_of_fields
    required_fields: Tuple[str, ...] = ("url", "title", "price", "area")
    any_of_fields: Tuple[str, ...] = ()

    # Pagination
    pagination_selectors: Tuple[str, ...] = ('a[rel="next"]', "a.next")
    guess_next_page: bool = False
    page_param: str = "page"

    def __init__(self):
        """Initialize the adapter with default collaborators."""
        self.logger = structlog.get_logger(__name__).bind(adapter=self.site_slug)
        self.http_client: Optional[httpx.AsyncClient] = None  # Injected
        self.headers: Dict[str, str] = get_browser_headers()
        self.page_delay: DelayStrategy = FixedDelay(DEFAULT_PAGE_DELAY_SECONDS)
        self.url_delay: DelayStrategy = FixedDelay(DEFAULT_URL_DELAY_SECONDS)
        self.max_pages: int = DEFAULT_MAX_PAGES
        self.timeout: float = DEFAULT_TIMEOUT_SECONDS
        self.fetch_attempts: int = 1
        self.retry_base_delay: float = 1.0
        # Guessed pages already downloaded while validating them
        self._prefetched: Dict[str, str] = {}

    @classmethod
    def matches(cls, url: str) -> bool:
        """Whether ``url`` belongs to this adapter's site."""
        return any(pattern in url for pattern in cls.url_patterns)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def preprocess_html(self, html: str) -> str:
        """Hook to clean raw markup before parsing (noise sections etc.)."""
        return html

    @abstractmethod
    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        """Turn one parsed result page into records.

        Args:
            soup: Parsed (and preprocessed) page

        Returns:
            Records in page order; may be empty, must not raise for odd markup
        """
        pass

    def extract(self, html: str) -> List[PropertyRecord]:
        """Extract records from one raw HTML document.

        Args:
            html: Raw page markup (may be empty or malformed)

        Returns:
            List of PropertyRecord, possibly empty
        """
        soup = parse_html(self.preprocess_html(html or ""))
        records = self.extract_from_soup(soup)
        self.logger.info(
            "properties_extracted",
            count=len(records),
            with_images=sum(1 for r in records if r.image_url),
        )
        return records

    def is_viable(self, fields: Mapping[str, Any]) -> bool:
        """Whether the extracted fields are enough to emit a record."""
        if not all(fields.get(name) for name in self.required_fields):
            return False
        if self.any_of_fields and not any(fields.get(name) for name in self.any_of_fields):
            return False
        return True

    def build_record(self, fields: Dict[str, Any], identity: Tuple[str, str, str]) -> PropertyRecord:
        """Create a record whose id is derived from the ``identity`` keys."""
        return PropertyRecord(id=generate_property_id(*identity), **fields)

    def collect(
        self,
        elements: Iterable[Tag],
        parse_element: Callable[[Tag], Optional[PropertyRecord]],
    ) -> List[PropertyRecord]:
        """Apply ``parse_element`` to each element, skipping failures.

        An unexpected error inside one element is logged and only that
        element is dropped.
        """
        records: List[PropertyRecord] = []
        for element in elements:
            try:
                record = parse_element(element)
            except Exception as e:
                self.logger.warning("element_parse_failed", error=str(e), exc_info=True)
                continue
            if record is not None:
                records.append(record)
        return records

    def absolute(self, href: Optional[str]) -> str:
        """Resolve a link against the site origin."""
        return absolute_url(href, self.base_url)

    # ------------------------------------------------------------------
    # Fetching and pagination
    # ------------------------------------------------------------------

    async def fetch_html(self, url: str) -> str:
        """Download one page with the browser header set.

        Raises:
            NetworkError: On transport failures, timeouts and non-2xx responses
        """
        if url in self._prefetched:
            return self._prefetched.pop(url)

        self.logger.info("scraping_url", url=url)

        async def _get() -> str:
            if self.http_client is not None:
                response = await self.http_client.get(
                    url, headers=self.headers, timeout=self.timeout, follow_redirects=True
                )
            else:
                async with httpx.AsyncClient(
                    headers=self.headers, timeout=self.timeout, follow_redirects=True
                ) as client:
                    response = await client.get(url)
            response.raise_for_status()
            return response.text

        try:
            return await with_retry(
                _get,
                max_attempts=self.fetch_attempts,
                base_delay=self.retry_base_delay,
                retry_on=RETRYABLE_HTTP_ERRORS,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(url, self.site_slug, e) from e

    def find_next_page_link(self, soup: BeautifulSoup, page_num: int) -> Optional[str]:
        """Look for an explicit link to page ``page_num + 1``.

        Selectors are tried in ``pagination_selectors`` order; within a
        selector the first qualifying link wins.
        """
        for selector in self.pagination_selectors:
            for link in soup.select(selector):
                href = link.get("href")
                if href and self._is_next_link(link, href, page_num):
                    return self.absolute(href)
        return None

    def _is_next_link(self, link: Tag, href: str, page_num: int) -> bool:
        next_num = page_num + 1
        if "next" in (link.get("rel") or []):
            return True
        if "next" in (link.get("class") or []):
            return True
        params = "|".join(re.escape(p) for p in {self.page_param, "page", "p"})
        if re.search(rf"[?&](?:{params})={next_num}(?!\d)", href):
            return True
        text = link.get_text(strip=True)
        return text in (">", "次へ", str(next_num))

    def guess_next_page_url(self, url: str, next_num: int) -> str:
        """Rewrite (or add) the page query parameter of ``url``."""
        params = "|".join(re.escape(p) for p in {self.page_param, "page", "p"})
        pattern = re.compile(rf"([?&])({params})=\d+")
        if pattern.search(url):
            return pattern.sub(lambda m: f"{m.group(1)}{m.group(2)}={next_num}", url, count=1)
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{self.page_param}={next_num}"

    async def _probe_guessed_page(
        self, url: str, page_num: int, known_ids: Set[str]
    ) -> Optional[str]:
        """Validate a guessed next page by fetching it.

        The guess is accepted only if it yields at least one record not seen
        so far; its HTML is then kept so the page is not downloaded twice.
        """
        candidate = self.guess_next_page_url(url, page_num + 1)
        if candidate == url:
            return None

        await self.page_delay.wait()
        try:
            html = await self.fetch_html(candidate)
        except NetworkError as e:
            self.logger.info("guessed_page_unavailable", url=candidate, error=str(e))
            return None

        records = self.extract(html)
        if not any(record.id not in known_ids for record in records):
            self.logger.info("guessed_page_empty", url=candidate)
            return None

        self._prefetched[candidate] = html
        return candidate

    async def _fetch_and_extract(
        self, url: str, page_num: int = 1, seen_ids: Optional[Set[str]] = None
    ) -> PageResult:
        html = await self.fetch_html(url)
        try:
            records = self.extract(html)
            next_url = self.find_next_page_link(parse_html(html), page_num)
        except Exception as e:
            raise ParseError(url, self.site_slug, e) from e

        if next_url is None and self.guess_next_page and page_num < self.max_pages:
            known_ids = set(seen_ids or ()) | {record.id for record in records}
            next_url = await self._probe_guessed_page(url, page_num, known_ids)

        return PageResult(html=html, records=records, next_url=next_url)

    async def fetch_page(
        self, url: str, page_num: int = 1, seen_ids: Optional[Set[str]] = None
    ) -> Tuple[str, Optional[str]]:
        """Fetch one result page and discover the next one.

        Args:
            url: Page URL
            page_num: 1-based number of this page
            seen_ids: Record ids already collected (used to validate guesses)

        Returns:
            (raw HTML, next page URL or None)
        """
        # Only a guess for this very page may be reused; anything else is stale
        self._prefetched = {k: v for k, v in self._prefetched.items() if k == url}
        result = await self._fetch_and_extract(url, page_num, seen_ids)
        return result.html, result.next_url

    async def scrape_url(self, url: str) -> List[PropertyRecord]:
        """Walk the result pages of one search URL.

        Stops when no next page is found, a page repeats, or ``max_pages``
        pages have been read. A failure on the first page propagates; a
        failure on a later page keeps what was collected so far.
        """
        records: List[PropertyRecord] = []
        seen_ids: Set[str] = set()
        visited: Set[str] = set()
        current_url = url
        page_num = 1
        state = PageState.FETCHING

        try:
            while state is not PageState.DONE:
                try:
                    result = await self._fetch_and_extract(current_url, page_num, seen_ids)
                except ScraperError as e:
                    if page_num == 1:
                        raise
                    self.logger.error(
                        "page_fetch_failed", url=current_url, page=page_num, error=str(e)
                    )
                    break

                visited.add(current_url)
                records.extend(result.records)
                seen_ids.update(record.id for record in result.records)
                self.logger.info(
                    "page_scraped", url=current_url, page=page_num, count=len(result.records)
                )

                if page_num >= self.max_pages:
                    self.logger.info("max_pages_reached", url=url, max_pages=self.max_pages)
                    state = PageState.DONE
                elif not result.next_url or result.next_url in visited:
                    state = PageState.DONE
                else:
                    state = PageState.HAS_NEXT

                if state is PageState.HAS_NEXT:
                    already_fetched = result.next_url in self._prefetched
                    current_url = result.next_url
                    page_num += 1
                    if not already_fetched:
                        await self.page_delay.wait()
                    state = PageState.FETCHING
        finally:
            self._prefetched.clear()

        self.logger.info("url_scraped", url=url, pages=page_num, count=len(records))
        return records

    async def extract_all(self, urls: List[str]) -> List[PropertyRecord]:
        """Scrape every search URL of this site and dedup the results by id.

        A URL that fails is logged and contributes no records; the batch
        carries on with the next URL.
        """
        all_records: List[PropertyRecord] = []

        for index, url in enumerate(urls):
            if index > 0:
                await self.url_delay.wait()
            try:
                records = await self.scrape_url(url)
            except Exception as e:
                self.logger.error("url_scrape_failed", url=url, error=str(e), exc_info=True)
                records = []
            all_records.extend(records)

        unique = deduplicate_properties(all_records)
        self.logger.info(
            "site_scraped",
            urls=len(urls),
            total=len(all_records),
            unique=len(unique),
        )
        return unique
