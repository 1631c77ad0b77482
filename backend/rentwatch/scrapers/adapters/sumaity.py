"""スマイティ (sumaity.com) rental search adapter.

Sumaity pages have no stable card markup. Listings are found through their
building links (``bldg_`` URLs) whose text looks like a building name; the
nearest enclosing row/cell is then scanned with regular expressions for
rent, layout, area, address and access.

Unlike the other sites, a listing is kept when only one of rent, layout or
area is found; the missing ones are filled with ``UNKNOWN_VALUE`` ("不明").
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from rentwatch.scrapers.base import UNKNOWN_VALUE, BaseScraperAdapter, PropertyRecord
from rentwatch.scrapers.utils.address import cleanup_address, normalize_address
from rentwatch.scrapers.utils.extraction import (
    find_access,
    first_match,
    regex_strategy,
)


# Link texts that belong to search/filter UI rather than listings
UI_WORDS = (
    "検索",
    "条件",
    "登録",
    "メール",
    "お気に入り",
    "お問い合わせ",
    "チェック",
    "変更",
    "絞り込み",
    "から探す",
)

_KATAKANA_RUN_RE = re.compile(r"[ァ-ヴー]{3,}")
_KANJI_RUN_RE = re.compile(r"[一-龯]{3,}")

_CONTAINER_TAGS = ("tr", "td")
_CONTAINER_CLASSES = ("property", "bukken")
_CONTAINER_FALLBACK_DEPTH = 4

# Fees quoted near a rent-like amount (敷金/礼金)
_DEPOSIT_MARKERS = ("敷", "礼")
_DEPOSIT_WINDOW = 20

_SPLIT_PRICE_RE = re.compile(r"(\d+)万(\d+)千円")

_LAYOUT_STRATEGIES = [
    regex_strategy(r"(\d+[SLDK]+)", group=1),
    regex_strategy(r"間取り[：:]\s*(\d+[SLDK]+)", group=1),
    regex_strategy(r"(ワンルーム)", group=1),
    regex_strategy(r"(1R)", group=1),
]

_AREA_STRATEGIES = [
    regex_strategy(r"専有面積[：:]\s*([\d.]+)m[²2]", group=1, template="{}m²"),
    regex_strategy(r"([\d.]+)m[²2]", group=1, template="{}m²"),
    regex_strategy(r"面積[：:]\s*([\d.]+)", group=1, template="{}m²"),
]

_PREFECTURES = "(東京都|神奈川県|埼玉県|千葉県)"
_ADDRESS_PATTERNS = [
    re.compile(_PREFECTURES + r"[^\n]*?[区市町村][^\n]*?[０-９0-9]+丁目"),
    re.compile(_PREFECTURES + r"[^\n]*?[区市町村][^\n]*?[０-９0-9]+丁"),
    re.compile(_PREFECTURES + r"[^\n]*?[区市町村][^\n]*?[０-９0-9]+[-−][０-９0-9]+"),
    re.compile(_PREFECTURES + r"[^\n]*?[区市町村][^\n]*"),
    re.compile(_PREFECTURES + r"[^。\n]*[区市町村]"),
]

_ACCESS_RE = re.compile(r"[^\n]*線[^\n]*駅[^\n]*徒歩\d+分")

_IMAGE_EXCLUDED = ("data:image", "loader.gif", "logo.svg")


def _not_deposit(match: re.Match, text: str) -> bool:
    """Reject amounts with 敷/礼 within a few characters on either side."""
    before = text[max(0, match.start() - _DEPOSIT_WINDOW):match.start()]
    after = text[match.end():match.end() + _DEPOSIT_WINDOW]
    return not any(marker in before or marker in after for marker in _DEPOSIT_MARKERS)


def _split_price(text: str) -> str:
    """Rent quoted as "25万8千円", returned as "25.8万円"."""
    match = _SPLIT_PRICE_RE.search(text)
    if not match:
        return ""
    amount = int(match.group(1)) + int(match.group(2)) / 10
    return f"{amount:g}万円"


_PRICE_STRATEGIES = [
    regex_strategy(r"(\d+(?:\.\d+)?)\s*万円", group=1, template="{}万円", accept=_not_deposit),
    _split_price,
    regex_strategy(
        r"賃料[：:\s]*(\d+(?:\.\d+)?)\s*万円", group=1, template="{}万円", accept=_not_deposit
    ),
    regex_strategy(
        r"家賃[：:\s]*(\d+(?:\.\d+)?)\s*万円", group=1, template="{}万円", accept=_not_deposit
    ),
]


def extract_price(text: str) -> str:
    return first_match(_PRICE_STRATEGIES, text)


def extract_layout(text: str) -> str:
    return first_match(_LAYOUT_STRATEGIES, text)


def extract_area(text: str) -> str:
    return first_match(_AREA_STRATEGIES, text)


def extract_address(text: str) -> str:
    """First prefecture address in ``text``, cleaned up and cut to chōme level."""
    for pattern in _ADDRESS_PATTERNS:
        match = pattern.search(text)
        if match:
            return normalize_address(cleanup_address(match.group(0).strip()))
    return ""


def is_listing_link(link: Tag) -> bool:
    """Whether an anchor looks like a building link rather than site UI."""
    href = link.get("href") or ""
    if not ("bldg_" in href or ("/chintai/" in href and "_bldg/" in href)):
        return False
    text = link.get_text(strip=True)
    if not 3 < len(text) < 100:
        return False
    if any(word in text for word in UI_WORDS):
        return False
    return (
        "マンション" in text
        or "アパート" in text
        or bool(_KATAKANA_RUN_RE.search(text))
        or bool(_KANJI_RUN_RE.search(text))
    )


def clean_title(title: str) -> str:
    title = title.removeprefix("マンション")
    if "新着あり" in title:
        title = title.replace("新着あり", "").strip()
    return title


class SumaityAdapter(BaseScraperAdapter):
    """スマイティ rental listings adapter."""

    site_slug = "sumaity"
    site_name = "スマイティ"
    base_url = "https://sumaity.com"
    url_patterns = ("sumaity.com",)

    required_fields = ("url", "title")
    any_of_fields = ("price", "layout", "area")

    pagination_selectors = (
        'a[rel="next"]',
        "a.next",
        ".pagination a",
        ".pager a",
    )

    def extract_from_soup(self, soup: BeautifulSoup) -> List[PropertyRecord]:
        links = [link for link in soup.find_all("a") if is_listing_link(link)]
        self.logger.debug("sumaity_links_found", count=len(links))

        seen_titles = set()
        unique_links = []
        for link in links:
            title = link.get_text(strip=True)
            if title in seen_titles:
                continue
            seen_titles.add(title)
            unique_links.append(link)

        records = self.collect(unique_links, self._parse_link)

        # The same building can be linked from several rows
        seen = set()
        unique_records = []
        for record in records:
            key = (record.title, record.address)
            if key in seen:
                continue
            seen.add(key)
            unique_records.append(record)
        return unique_records

    def is_viable(self, fields) -> bool:
        title = fields.get("title") or ""
        if len(title) <= 2 or "検索" in title or "条件" in title:
            return False
        return super().is_viable(fields)

    @staticmethod
    def _container(link: Tag) -> Tag:
        """Nearest row/cell/card around ``link`` (the link itself included)."""
        for node in [link, *link.parents]:
            if node.name == "[document]":
                break
            classes = node.get("class") or []
            if node.name in _CONTAINER_TAGS or any(c in classes for c in _CONTAINER_CLASSES):
                return node
        container = link
        for _ in range(_CONTAINER_FALLBACK_DEPTH):
            if container.parent is None or container.parent.name == "[document]":
                break
            container = container.parent
        return container

    def _image(self, container: Tag) -> Optional[str]:
        img = container.find("img")
        src = (img.get("src") or "").strip() if img is not None else ""
        if src.startswith("http") and not any(fragment in src for fragment in _IMAGE_EXCLUDED):
            return src
        if src.startswith("/"):
            return self.absolute(src)
        return None

    def _parse_link(self, link: Tag) -> Optional[PropertyRecord]:
        url = self.absolute(link.get("href"))
        if not url:
            return None

        title = clean_title(link.get_text(strip=True))
        container = self._container(link)
        text = container.get_text()

        price = extract_price(text)
        layout = extract_layout(text)
        area = extract_area(text)
        address = extract_address(text)

        fields = {
            "url": url,
            "title": title,
            "price": price,
            "address": address,
            "layout": layout,
            "area": area,
            "access": find_access(text, pattern=_ACCESS_RE),
            "image_url": self._image(container),
        }
        if not self.is_viable(fields):
            return None

        identity = (address, area or layout, price or title)
        for name in ("price", "layout", "area"):
            fields[name] = fields[name] or UNKNOWN_VALUE
        return self.build_record(fields, identity)
