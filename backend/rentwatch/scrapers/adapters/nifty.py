"""Nifty不動産 (myhome.nifty.com) rental search adapter.

Result page structure:
  .result-bukken-list                 (one card per room)
  - .bukken-list-name a               (building name + detail link)
  - .rent                             (rent, e.g. "13.5万円")
  - table rows labelled 間取り / 専有面積 / 階 / 建物階
  - tr with svg.mapmarker-icon        (address, icon glyphs inline)
  - .bukken-list-station              (station access lines)

The pager is rendered client-side on some searches, so when no next link
is present the adapter guesses ``page=N+1`` and validates the guess.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from rentwatch.scrapers.base import BaseScraperAdapter, PropertyRecord
from rentwatch.scrapers.utils.address import normalize_address
from rentwatch.scrapers.utils.extraction import (
    attr_text,
    direct_text,
    find_descendant_text,
    first_match,
    has_area_unit,
    regex_strategy,
    resolve_image_url,
    select_attr,
    select_text,
)


_NON_PRICE_CHARS_RE = re.compile(r"[^\d.万円]")
_PRICE_RE = re.compile(r"\d+\.?\d*万円")
_AREA = regex_strategy(r"\d+\.?\d*(?:m²|㎡|m2)")

# Private-use glyphs of the site's icon font
_ICON_GLYPHS_RE = re.compile(r"[\ue002-\ue005]")

_THUMBNAIL_ALT_EXCLUDED = ("間取り図", "建物画像")
_IMAGE_EXCLUDED = ("icon_mansion_apart.svg", "lazy-load-pc.gif")


def _clean_price(text: str) -> str:
    return _NON_PRICE_CHARS_RE.sub("", text)


def _row_value(card: Tag, label: str) -> str:
    """Text of the last cell of the last table row mentioning ``label``."""
    cells = [
        td for row in card.find_all("tr") if label in row.get_text() for td in row.find_all("td")
    ]
    return cells[-1].get_text(strip=True) if cells else ""


class NiftyAdapter(BaseScraperAdapter):
    """Nifty不動産 rental listings adapter."""

    site_slug = "nifty"
    site_name = "Nifty不動産"
    base_url = "https://myhome.nifty.com"
    url_patterns = ("myhome.nifty.com",)

    pagination_selectors = (
        'a[href*="page="]',
        "a.next",
        ".pagination a",
        ".pager a",
        'a[rel="next"]',
    )
    guess_next_page = True

    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        cards = soup.select(".result-bukken-list")
        self.logger.debug("nifty_cards_found", count=len(cards))
        return self.collect(cards, self._parse_card)

    def _title(self, card: Tag) -> str:
        return first_match(
            [
                lambda el: select_text(el, ".bukken-list-name a"),
                self._thumbnail_alt,
                lambda el: select_text(el, 'h3 a, h2 a, a[href*="/detail_"]'),
            ],
            card,
        )

    @staticmethod
    def _thumbnail_alt(card: Tag) -> str:
        thumbnail = card.select_one("img.lazyload.thumbnail")
        alt = attr_text(thumbnail, "alt") if thumbnail else ""
        if not alt or alt == _THUMBNAIL_ALT_EXCLUDED[0] or _THUMBNAIL_ALT_EXCLUDED[1] in alt:
            return ""
        return alt

    @staticmethod
    def _price(card: Tag) -> str:
        price = _clean_price(select_text(card, ".rent"))
        if price:
            return price
        text = find_descendant_text(
            card, lambda t: "万円" in t and len(t) < 15 and bool(_PRICE_RE.search(t))
        )
        return _clean_price(text)

    @staticmethod
    def _address(card: Tag) -> str:
        address = ""
        for row in card.find_all("tr"):
            if row.select_one("svg.mapmarker-icon") is None:
                continue
            cell = row.select_one("td.bukken-attr-td")
            if cell is not None:
                address = _ICON_GLYPHS_RE.sub("", direct_text(cell)).strip()
        return normalize_address(address)

    @staticmethod
    def _area(card: Tag) -> str:
        area = _row_value(card, "専有面積")
        if area:
            return area
        text = find_descendant_text(
            card, lambda t: has_area_unit(t) and len(t) < 20 and bool(_AREA(t))
        )
        return _AREA(text)

    def _image(self, card: Tag) -> Optional[str]:
        # Lazy-loaded thumbnails carry the real URL in data-src
        for img in card.find_all("img"):
            data_src = attr_text(img, "data-src")
            if "lazyload" in (img.get("class") or []) and data_src.startswith("http"):
                if any(fragment in data_src for fragment in _IMAGE_EXCLUDED):
                    return None
                return data_src
        return resolve_image_url(card, self.base_url, exclude=_IMAGE_EXCLUDED)

    def _parse_card(self, card: Tag) -> Optional[PropertyRecord]:
        name = self._title(card)
        price = self._price(card)
        href = first_match(
            [
                lambda el: select_attr(el, ".bukken-list-name a", "href"),
                lambda el: select_attr(el, 'a[href*="/detail_"]', "href"),
            ],
            card,
        )
        address = self._address(card)
        layout = _row_value(card, "間取り")
        area = self._area(card)
        floor = _row_value(card, "階 / 建物階")

        access = [
            node.get_text(strip=True)
            for node in card.select(".bukken-list-station")
            if node.get_text(strip=True)
        ]

        fields = {
            "url": self.absolute(href),
            "title": " ".join(part for part in (name, floor, layout) if part) if name else "",
            "price": price,
            "address": address,
            "layout": layout,
            "area": area,
            "access": access,
            "image_url": self._image(card),
        }
        if not self.is_viable(fields):
            return None
        return self.build_record(fields, (address, area, price))
