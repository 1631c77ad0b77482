"""Deterministic property identifiers and id-based deduplication."""

import hashlib
from typing import Iterable, List, TypeVar

# Separator that does not occur in addresses, areas or prices
ID_KEY_SEPARATOR = "|"
ID_LENGTH = 16

T = TypeVar("T")


def generate_property_id(key_a: str, key_b: str, key_c: str) -> str:
    """Build the stable identifier of a listing.

    The three keys are usually (normalized address, area, price). They are
    trimmed, joined and hashed with SHA-256; the first 16 hex characters are
    kept. Collisions are not handled: 64 bits of hash space is considered
    enough for the expected record volume.

    Args:
        key_a: First identity key (normalized address or title)
        key_b: Second identity key (area)
        key_c: Third identity key (price)

    Returns:
        16-character lowercase hex string
    """
    combined = ID_KEY_SEPARATOR.join(key.strip() for key in (key_a, key_b, key_c))
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:ID_LENGTH]


def deduplicate_properties(properties: Iterable[T]) -> List[T]:
    """Keep the first record for every ``id``, preserving order."""
    seen = set()
    unique: List[T] = []
    for prop in properties:
        if prop.id in seen:
            continue
        seen.add(prop.id)
        unique.append(prop)
    return unique
