"""SUUMO (スーモ) rental search adapter.

SUUMO serves two result layouts depending on the search's display mode:

Room-by-room display:
  div.property.property--highlight.js-property.js-cassetLink
  - .property_inner-title a       (building name)
  - .detailbox-property-point     (rent)
  - .detailbox-property-col       (address / layout+area / ...)
  - a[href*="/chintai/bc_"]       (detail link)

Building display (older, still served for some searches):
  .js-bukkenList > div > (cards)   or   .cassetteitem
  - .cassetteitem_content-title / h2 / h3   (building name)
  - .cassetteitem_detail-col1                (address)
  - .cassetteitem_detail-text                (station access)

Building cards without a name get a title synthesized from area and rent.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from rentwatch.scrapers.base import BaseScraperAdapter, PropertyRecord
from rentwatch.scrapers.utils.address import normalize_address
from rentwatch.scrapers.utils.extraction import (
    find_descendant_text,
    first_match,
    has_area_unit,
    regex_strategy,
    resolve_image_url,
    select_attr,
    select_text,
)


_ROOM_CARD_SELECTOR = ".property.property--highlight.js-property.js-cassetLink"

_ROOM_LAYOUT = regex_strategy(r"\d+[DLKR]+[KDL]*")
_ROOM_AREA = regex_strategy(r"\d+\.?\d*m[²2㎡]")

# SUUMO lazy-loads thumbnails through the rel attribute
_IMAGE_ATTRS = ("rel", "src", "data-src", "data-original")

_BUILDING_TITLE_SELECTORS = (
    ".cassetteitem_content-title",
    "h3",
    "h2",
    ".bukken-name",
    ".cassetteitem_detail-title",
    "h1",
)
_BUILDING_LAYOUT_RE = re.compile(r"\d+[DLKR]")


def _is_address_cell(text: str) -> bool:
    return ("区" in text or "市" in text) and "万円" not in text


class SuumoAdapter(BaseScraperAdapter):
    """SUUMO rental listings adapter."""

    site_slug = "suumo"
    site_name = "SUUMO"
    base_url = "https://suumo.jp"
    url_patterns = ("suumo.jp",)

    pagination_selectors = (
        'a[rel="next"]',
        ".pagination-parts a",
        ".pagination a",
    )

    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        """Parse the room layout first, falling back to building cards."""
        room_cards = soup.select(_ROOM_CARD_SELECTOR)
        self.logger.debug("suumo_room_cards_found", count=len(room_cards))
        if room_cards:
            return self.collect(room_cards, self._parse_room_card)

        building_cards = self._find_building_cards(soup)
        self.logger.debug("suumo_building_cards_found", count=len(building_cards))
        return self.collect(building_cards, self._parse_building_card)

    def _find_building_cards(self, soup: BeautifulSoup) -> List[Tag]:
        bukken_list = soup.select_one(".js-bukkenList")
        if bukken_list is not None:
            first_div = bukken_list.find("div", recursive=False)
            if first_div is not None:
                cards = first_div.find_all(True, recursive=False)
                if cards:
                    return cards
        return soup.select(".cassetteitem")

    def _parse_room_card(self, card: Tag) -> Optional[PropertyRecord]:
        """Parse a room-by-room card."""
        price = select_text(card, ".detailbox-property-point")
        name = select_text(card, ".property_inner-title a")
        url = self.absolute(select_attr(card, 'a[href*="/chintai/bc_"]', "href"))

        address = ""
        for col in card.select(".detailbox-property-col"):
            text = col.get_text(strip=True)
            if _is_address_cell(text):
                address = normalize_address(text)
                break

        layout_area = select_text(card, ".detailbox-property-col.detailbox-property--col3")
        layout = _ROOM_LAYOUT(layout_area)
        area = _ROOM_AREA(layout_area)

        access = [
            node.get_text(strip=True)
            for node in card.select(".detailbox-access div, .detailbox-access li")
            if node.get_text(strip=True)
        ]
        if not access and name:
            access = [name]

        fields = {
            "url": url,
            "title": f"{name} {layout}".strip() if name else "",
            "price": price,
            "address": address,
            "layout": layout,
            "area": area,
            "access": access,
            "image_url": resolve_image_url(card, self.base_url, attrs=_IMAGE_ATTRS),
        }
        if not self.is_viable(fields):
            return None
        return self.build_record(fields, (address, area, price))

    def _parse_building_card(self, card: Tag) -> Optional[PropertyRecord]:
        """Parse a building card; unnamed buildings get a synthesized title."""
        name = first_match(
            [lambda el, sel=sel: select_text(el, sel) for sel in _BUILDING_TITLE_SELECTORS],
            card,
        )

        address = first_match(
            [
                lambda el: select_text(el, ".cassetteitem_detail-col1"),
                lambda el: select_text(el, ".ui-text-detail"),
            ],
            card,
        )
        address = normalize_address(address)

        access = [
            node.get_text(strip=True)
            for node in card.select(".cassetteitem_detail-text, .ui-text-detail")
            if "駅" in node.get_text()
        ]

        price = find_descendant_text(card, lambda t: "万円" in t and len(t) < 20)
        area = find_descendant_text(card, lambda t: has_area_unit(t) and len(t) < 20)
        layout = find_descendant_text(
            card, lambda t: bool(_BUILDING_LAYOUT_RE.search(t)) and len(t) < 10
        )
        url = self.absolute(select_attr(card, 'a[href*="/chintai/"]', "href"))

        if name:
            title = f"{name} {layout}".strip()
        elif area and price:
            title = f"Property-{area}-{price}"
        else:
            title = ""

        fields = {
            "url": url,
            "title": title,
            "price": price,
            "address": address,
            "layout": layout,
            "area": area,
            "access": access,
            "image_url": resolve_image_url(card, self.base_url, attrs=_IMAGE_ATTRS),
        }
        if not self.is_viable(fields):
            return None
        return self.build_record(fields, (address, area, price))
