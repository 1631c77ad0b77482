"""R-STORE (www.r-store.jp) rental search adapter.

The markup of R-STORE result pages has changed several times, so cards are
located through a chain of selectors and fields are read with regular
expressions over each card's text.
"""

from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from rentwatch.scrapers.base import BaseScraperAdapter, PropertyRecord
from rentwatch.scrapers.utils.address import normalize_address
from rentwatch.scrapers.utils.extraction import (
    ADDRESS_RE,
    LAYOUT_RE,
    find_access,
    guess_title,
    regex_strategy,
    resolve_image_url,
)


# Tried in order; the first selector that matches anything wins
CARD_SELECTORS = (
    ".property-item, .item, .search-result-item, .property-card",
    'a[href*="/detail/"], a[href*="/property/"], a[href*="/room/"]',
    ".result-item, .listing-item, .bukken-item",
)

_PRICE = regex_strategy(r"(?<!\d)(\d{1,3}(?:,\d{3})*)\s*円", group=1, template="{}円")
_ADDRESS = regex_strategy(ADDRESS_RE)
_LAYOUT = regex_strategy(LAYOUT_RE)
_AREA = regex_strategy(r"(\d+\.?\d*)\s*[㎡m²]")

_TITLE_EXCLUDED = ("円", "㎡", "東京都", "徒歩")


class RStoreAdapter(BaseScraperAdapter):
    """R-STORE rental listings adapter."""

    site_slug = "rstore"
    site_name = "R-STORE"
    base_url = "https://www.r-store.jp"
    url_patterns = ("r-store.jp",)

    pagination_selectors = (
        'a[rel="next"]',
        "a.next",
        ".pagination a",
        ".pager a",
    )

    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        cards: List[Tag] = []
        for selector in CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                break
        self.logger.debug("rstore_cards_found", count=len(cards))
        return self.collect(cards, self._parse_card)

    def _parse_card(self, card: Tag) -> Optional[PropertyRecord]:
        href = card.get("href")
        if not href:
            first_link = card.find("a", href=True)
            href = first_link["href"] if first_link else ""
        url = self.absolute(href)
        if not url:
            return None

        text = card.get_text()
        price = _PRICE(text)
        address = normalize_address(_ADDRESS(text))
        layout = _LAYOUT(text)
        area = _AREA(text)

        title = guess_title(card.get_text("\n"), _TITLE_EXCLUDED)
        if not title:
            title = f"{address} {layout}".strip() if address else f"R-Store Property {layout}".strip()

        fields = {
            "url": url,
            "title": title,
            "price": price,
            "address": address,
            "layout": layout,
            "area": area,
            "access": find_access(text),
            "image_url": resolve_image_url(card, self.base_url),
        }
        if not self.is_viable(fields):
            return None
        return self.build_record(fields, (address, area, price))
