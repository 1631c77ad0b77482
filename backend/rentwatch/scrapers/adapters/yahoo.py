"""Yahoo!不動産 (realestate.yahoo.co.jp) rental search adapter.

Result page structure:
  .ListBukken__item         (one card per building/room)
  - first <a>               (detail link)
  - "24.8万円"              (rent)
  - "83m<sup>2</sup>"       (area, the superscript is markup)
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from rentwatch.scrapers.base import BaseScraperAdapter, PropertyRecord
from rentwatch.scrapers.utils.address import normalize_address
from rentwatch.scrapers.utils.extraction import (
    ADDRESS_RE,
    LAYOUT_RE,
    find_access,
    first_match,
    guess_title,
    regex_strategy,
    resolve_image_url,
)


# "24.8万円", then "248,000円"
_PRICE_STRATEGIES = [
    regex_strategy(r"(\d{1,3}(?:\.\d+)?)\s*万円"),
    regex_strategy(r"(?<!\d)(\d{1,3}(?:,\d{3})*)\s*円"),
]
_ADDRESS = regex_strategy(ADDRESS_RE)
_LAYOUT = regex_strategy(LAYOUT_RE)
_AREA_MARKUP_RE = re.compile(r"(\d+\.?\d*)m<sup>2</sup>")
_AREA_TEXT = regex_strategy(r"(\d+\.?\d*)\s*m²")

_TITLE_EXCLUDED = ("万円", "m²", "東京都", "徒歩")


class YahooAdapter(BaseScraperAdapter):
    """Yahoo!不動産 rental listings adapter."""

    site_slug = "yahoo"
    site_name = "Yahoo!不動産"
    base_url = "https://realestate.yahoo.co.jp"
    url_patterns = ("realestate.yahoo.co.jp",)

    pagination_selectors = (
        'a[rel="next"]',
        "a.next",
        ".Pager a",
        ".pagination a",
    )

    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        cards = soup.select(".ListBukken__item")
        self.logger.debug("yahoo_cards_found", count=len(cards))
        return self.collect(cards, self._parse_card)

    @staticmethod
    def _area(card: Tag, text: str) -> str:
        match = _AREA_MARKUP_RE.search(card.decode_contents())
        if match:
            return f"{match.group(1)}m²"
        return _AREA_TEXT(text)

    def _parse_card(self, card: Tag) -> Optional[PropertyRecord]:
        first_link = card.find("a", href=True)
        url = self.absolute(first_link["href"] if first_link else "")
        if not url:
            return None

        text = card.get_text()
        price = first_match(_PRICE_STRATEGIES, text)
        address = normalize_address(_ADDRESS(text))
        layout = _LAYOUT(text)
        area = self._area(card, text)

        title = guess_title(card.get_text("\n"), _TITLE_EXCLUDED)
        if not title:
            title = f"{address} {layout}".strip() if address else f"Yahoo Property {layout}".strip()

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
