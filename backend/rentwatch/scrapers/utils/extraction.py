"""HTML extraction helpers shared by the site adapters.

Field values are pulled through ordered *fallback chains*: a list of small
strategies (callables returning a string) tried in sequence until one
returns something non-empty. Keeping the chains as plain lists makes each
strategy testable on its own and keeps the adapters free of nested
if/else ladders.
"""

import re
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag

Strategy = Callable[..., str]

# Prefecture-prefixed address up to the ward/city/town/village
ADDRESS_RE = re.compile(r"(東京都|神奈川県|埼玉県|千葉県)[^/\n]*?[区市町村]")
LAYOUT_RE = re.compile(r"\d+[LDKS]+[DKS]*")
ACCESS_RE = re.compile(r"[^\n]*駅[^\n]*徒歩\d+分")
AREA_UNITS = ("m²", "㎡", "m2")

# Attribute order used when looking for an image URL on an <img>
DEFAULT_IMAGE_ATTRS = ("src", "data-src", "data-original")
LAZY_IMAGE_ATTRS = ("data-src", "data-original")

_BACKGROUND_URL_RE = re.compile(r"url\(['\"]?([^'\")]+)['\"]?\)")


def parse_html(html: Optional[str]) -> BeautifulSoup:
    """Parse markup leniently; unclosed tags and empty input are fine."""
    return BeautifulSoup(html or "", "html.parser")


def truncate_at_marker(html: str, marker: str) -> str:
    """Cut raw markup at the first occurrence of ``marker``.

    Used to drop "recommended listings" sections before parsing so that
    decoy cards never reach the extractor.
    """
    index = html.find(marker)
    if index == -1:
        return html
    return html[:index]


def first_match(strategies: Iterable[Strategy], *args) -> str:
    """Return the first non-empty result of ``strategies`` applied to ``args``."""
    for strategy in strategies:
        value = strategy(*args)
        if value:
            return value
    return ""


def regex_strategy(
    pattern: Union[str, Pattern[str]],
    group: int = 0,
    template: str = "{}",
    accept: Optional[Callable[[re.Match, str], bool]] = None,
) -> Strategy:
    """Build a text strategy from a regular expression.

    Args:
        pattern: Regex searched in the text
        group: Group whose value is returned
        template: Format string applied to the group value (e.g. "{}円")
        accept: Optional predicate ``(match, text) -> bool`` to reject a match
            and keep scanning for the next one

    Returns:
        Callable taking the text and returning the formatted value or ""
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    def strategy(text: str) -> str:
        for match in regex.finditer(text or ""):
            if accept is not None and not accept(match, text):
                continue
            value = match.group(group)
            if value:
                return template.format(value.strip())
        return ""

    strategy.__name__ = f"regex:{regex.pattern}"
    return strategy


def select_text(element: Tag, selector: str) -> str:
    """Stripped text of the first element matching ``selector``, or ""."""
    found = element.select_one(selector)
    return found.get_text(strip=True) if found else ""


def attr_text(element: Tag, attr: str) -> str:
    """Attribute value as a stripped string; multi-valued attributes are joined."""
    value = element.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip() if isinstance(value, str) else ""


def select_attr(element: Tag, selector: str, attr: str) -> str:
    """Attribute value of the first element matching ``selector``, or ""."""
    found = element.select_one(selector)
    return attr_text(found, attr) if found else ""


def find_descendant_text(element: Tag, predicate: Callable[[str], bool]) -> str:
    """Stripped text of the first descendant tag whose text satisfies ``predicate``."""
    for node in element.find_all(True):
        text = node.get_text().strip()
        if predicate(text):
            return text
    return ""


def direct_text(element: Tag) -> str:
    """Concatenated text of the element's own text nodes (children tags excluded)."""
    return "".join(
        str(child) for child in element.children if isinstance(child, NavigableString)
    ).strip()


def text_lines(text: str) -> List[str]:
    """Non-empty stripped lines of ``text``."""
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


def guess_title(
    text: str,
    exclude: Sequence[str],
    min_length: int = 5,
    max_length: int = 50,
) -> str:
    """Pick the first text line that looks like a building or room name.

    Lines that are too short or too long, or that contain any of the
    ``exclude`` tokens (prices, areas, prefectures...), are skipped.
    """
    for line in text_lines(text):
        if not (min_length < len(line) < max_length):
            continue
        if any(token in line for token in exclude):
            continue
        return line
    return ""


def find_access(text: str, pattern: Pattern[str] = ACCESS_RE, limit: int = 3) -> List[str]:
    """Station access lines such as "JR中央線/立川駅 徒歩10分", in page order."""
    return [match.strip() for match in pattern.findall(text or "")][:limit]


def absolute_url(href: Optional[str], base_url: str) -> str:
    """Resolve ``href`` against the site origin; "" when there is no href."""
    if not href:
        return ""
    href = href.strip()
    if href.startswith("//"):
        return "https:" + href
    return urljoin(base_url, href)


def background_image_url(element: Tag) -> str:
    """URL from the first inline ``background-image`` style under ``element``."""
    styled = element if "background-image" in (element.get("style") or "") else None
    if styled is None:
        styled = element.select_one('[style*="background-image"]')
    if styled is None:
        return ""
    match = _BACKGROUND_URL_RE.search(styled.get("style", ""))
    return match.group(1) if match else ""


def resolve_image_url(
    element: Tag,
    base_url: str,
    attrs: Sequence[str] = DEFAULT_IMAGE_ATTRS,
    exclude: Sequence[str] = (),
) -> Optional[str]:
    """Find a listing image for ``element``.

    Tries, in order: the given attributes of the first ``<img>``, the
    lazy-load attributes anywhere under the element, then an inline
    ``background-image`` style. Each candidate is resolved against
    ``base_url``; inline ``data:`` images and URLs containing any of the
    ``exclude`` fragments (placeholder icons, spinners) are skipped.

    Returns:
        Absolute image URL, or None when nothing usable is found
    """
    candidates: List[str] = []

    img = element if element.name == "img" else element.find("img")
    if img is not None:
        candidates.extend(attr_text(img, attr) for attr in attrs)

    for attr in LAZY_IMAGE_ATTRS:
        node = element.select_one(f"[{attr}]")
        if node is not None:
            candidates.append(attr_text(node, attr))

    candidates.append(background_image_url(element))

    for candidate in candidates:
        if not candidate or candidate.startswith("data:") or candidate == "undefined":
            continue
        url = absolute_url(candidate, base_url)
        if not url.startswith("http"):
            continue
        if any(fragment in url for fragment in exclude):
            continue
        return url
    return None


def has_area_unit(text: str) -> bool:
    """Whether ``text`` mentions a floor-area unit."""
    return any(unit in text for unit in AREA_UNITS)
