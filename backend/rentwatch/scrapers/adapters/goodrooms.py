"""goodrooms (www.goodrooms.jp) rental search adapter.

Every listing is a single anchor pointing at ``/tokyo/detail/...`` whose
text holds rent, address, layout and area; fields are recovered with
regular expressions over that text.

The page ends with a "他にもこんなお部屋がオススメです" block of
recommended rooms that do not match the search. The raw markup is cut at
that marker before parsing.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from rentwatch.scrapers.base import BaseScraperAdapter, PropertyRecord
from rentwatch.scrapers.utils.address import normalize_address
from rentwatch.scrapers.utils.extraction import (
    LAYOUT_RE,
    first_match,
    guess_title,
    regex_strategy,
    resolve_image_url,
    truncate_at_marker,
)


RECOMMENDATION_MARKER = "他にもこんなお部屋がオススメです"

# "256,000円", then bare "256000円"
_PRICE_STRATEGIES = [
    regex_strategy(r"(?<!\d)(\d{1,3}(?:,\d{3})*)\s*円", group=1, template="{}円"),
    regex_strategy(r"(\d{5,7})\s*円", group=1, template="{}円"),
]
_ADDRESS = regex_strategy(r"東京都[^/\n]*?[区市]")
_LAYOUT = regex_strategy(LAYOUT_RE)
_AREA = regex_strategy(r"(\d+\.?\d*)\s*㎡")

_TITLE_EXCLUDED = ("円", "㎡", "東京都", "管理費")


class GoodroomsAdapter(BaseScraperAdapter):
    """goodrooms rental listings adapter."""

    site_slug = "goodrooms"
    site_name = "goodrooms"
    base_url = "https://www.goodrooms.jp"
    url_patterns = ("goodrooms.jp",)

    pagination_selectors = (
        'a[rel="next"]',
        "a.next",
        ".pagination a",
        ".pager a",
    )

    def preprocess_html(self, html: str) -> str:
        return truncate_at_marker(html, RECOMMENDATION_MARKER)

    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        links = soup.select('a[href*="/tokyo/detail/"]')
        if not links:
            links = soup.select('a[href*="/detail/"]')
        if not links:
            links = [a for a in soup.find_all("a", href=True) if "detail" in a["href"]]
        self.logger.debug("goodrooms_links_found", count=len(links))
        return self.collect(links, self._parse_link)

    def _parse_link(self, link: Tag) -> Optional[PropertyRecord]:
        url = self.absolute(link.get("href"))
        if not url:
            return None

        text = link.get_text()
        price = first_match(_PRICE_STRATEGIES, text)
        address = normalize_address(_ADDRESS(text))
        layout = _LAYOUT(text)
        area = _AREA(text)

        title = guess_title(link.get_text("\n"), _TITLE_EXCLUDED, min_length=3)
        if not title:
            title = f"{address} {layout}".strip() if address else f"Goodrooms Property {layout}".strip()

        access = []
        for node in link.find_all(True):
            node_text = node.get_text().strip()
            if "駅" in node_text and "分" in node_text and len(node_text) < 50:
                access.append(node_text)

        fields = {
            "url": url,
            "title": title,
            "price": price,
            "address": address,
            "layout": layout,
            "area": area,
            "access": access,
            "image_url": resolve_image_url(link, self.base_url),
        }
        if not self.is_viable(fields):
            return None
        return self.build_record(fields, (address, area, price))
