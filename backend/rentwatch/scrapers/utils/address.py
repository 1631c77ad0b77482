"""Japanese address normalization down to chōme (丁目) granularity.

Stored addresses are cut at the chōme level so that building names,
room numbers and lot numbers never end up in the identity key:

    >>> normalize_address("東京都立川市柴崎町２丁目2-3ハイツ101号室")
    '東京都立川市柴崎町２丁目'
    >>> normalize_address("世田谷区三軒茶屋2-1-1")
    '世田谷区三軒茶屋２丁目'
"""

import re

CHOME = "丁目"

# ASCII hyphen, full-width hyphen, minus sign, hyphen, half-width prolonged sound mark
_DASHES = "-－−‐ｰ"

_FULLWIDTH_OFFSET = 0xFEE0

# Scraped text keeps line breaks, so the prefix group must span them
_CHOME_RE = re.compile(r"(.*?)([0-9０-９]+)" + CHOME, re.S)
_BLOCK_LOT_RE = re.compile(r"(.*?)([0-9０-９]+)(?:[" + _DASHES + r"][0-9０-９]+)*$", re.S)
_DASH_RE = re.compile("[" + _DASHES[1:] + "]")
_WHITESPACE_RE = re.compile(r"[\s　]+")
_ANNOTATION_RE = re.compile(r"[、。]")


def to_full_width(text: str) -> str:
    """Convert ASCII digits to full-width digits, leaving everything else."""
    return "".join(
        chr(ord(ch) + _FULLWIDTH_OFFSET) if "0" <= ch <= "9" else ch for ch in text
    )


def to_half_width(text: str) -> str:
    """Convert full-width digits to ASCII digits, leaving everything else."""
    return "".join(
        chr(ord(ch) - _FULLWIDTH_OFFSET) if "０" <= ch <= "９" else ch for ch in text
    )


def normalize_address(address: str) -> str:
    """Normalize an address to chōme level.

    Args:
        address: Raw address text as scraped

    Returns:
        Address ending at the chōme marker with a full-width number, or the
        input unchanged when no locality number can be found
    """
    if not address:
        return ""

    match = _CHOME_RE.match(address)
    if match:
        return match.group(1) + to_full_width(match.group(2)) + CHOME

    match = _BLOCK_LOT_RE.match(address)
    if match:
        return match.group(1) + to_full_width(match.group(2)) + CHOME

    return address


def cleanup_address(address: str) -> str:
    """Strip whitespace and annotations from a free-text address.

    Whitespace (including the ideographic space) is removed, full-width
    digits become ASCII, dash variants become ``-`` and everything from the
    first ``、`` or ``。`` on is dropped.
    """
    cleaned = _WHITESPACE_RE.sub("", address)
    cleaned = to_half_width(cleaned)
    cleaned = _DASH_RE.sub("-", cleaned)
    return _ANNOTATION_RE.split(cleaned, maxsplit=1)[0]
