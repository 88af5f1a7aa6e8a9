"""
Address Fragment Detector — emits the pieces the address consolidator joins.

Detected fragments:
    1. STREET_NAME + STREET_NUMBER ("Bahnhofstrasse 10", "Rue de Lausanne 12")
    2. POSTAL_CODE + CITY (Swiss 4-digit, DE/FR/IT 5-digit)
    3. CITY on its own for well-known Swiss cities
    4. COUNTRY names (DE/FR/IT/EN spellings)

Every fragment is a RULE entity flagged as an address component, so the
consolidation pass can group it regardless of the detector that produced it.
A span already claimed by an earlier fragment is never emitted twice.
"""
import logging
import re
from typing import List, Tuple

from pii_consolidation.config.constants import (
    ADDRESS_TYPES,
    COUNTRY_NAMES,
    DEFAULT_RULE_CONFIDENCE,
    STREET_PREFIXES,
    STREET_SUFFIXES,
    SWISS_CITY_NAMES,
)
from pii_consolidation.models.entity import Entity, EntityMetadata, EntitySource, EntityType

logger = logging.getLogger(__name__)

_UPPER = "A-ZÄÖÜÀ-Ý"
_LOWER = "a-zäöüßà-ÿ"
_NUMBER = r"(\d{1,4}[a-zA-Z]?)\b"
_CITY = rf"((?:St\.\s+)?[{_UPPER}][{_LOWER}]+(?:-[{_UPPER}{_LOWER}]+)*)"


def _alternation(words: List[str]) -> str:
    # Longest first so "strasse" is tried before "str."
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


# =============================================================================
# Patterns
# =============================================================================
_STREET_SUFFIX_RE = re.compile(
    rf"\b([A-ZÄÖÜ][{_LOWER}]+(?:{_alternation(STREET_SUFFIXES)}))\s+{_NUMBER}"
)
_STREET_PREFIX_RE = re.compile(
    rf"\b((?:{_alternation(STREET_PREFIXES)})\s+"
    rf"(?:(?:de\s+la|des|du|de|della|del|di)\s+|(?:de\s+)?l')?"
    rf"[{_UPPER}][{_LOWER}]+(?:[\s-][{_UPPER}][{_LOWER}]+)*)\s+{_NUMBER}"
)
_SWISS_POSTAL_CITY_RE = re.compile(rf"\b(?:CH[-\s]?)?([1-9]\d{{3}})\s+{_CITY}")
_EU_POSTAL_CITY_RE = re.compile(rf"\b(?:[DFI][-\s])?(\d{{5}})\s+{_CITY}")
_KNOWN_CITY_RE = re.compile(rf"\b(?:{_alternation(SWISS_CITY_NAMES)})\b")
_COUNTRY_RE = re.compile(rf"\b(?:{_alternation(COUNTRY_NAMES)})\b")


def _claim(found: List[Tuple[EntityType, int, int]], type_: EntityType, start: int, end: int) -> bool:
    """Record a fragment unless it overlaps one already found."""
    if start >= end:
        return False
    for _, other_start, other_end in found:
        if start < other_end and other_start < end:
            return False
    found.append((type_, start, end))
    return True


def detect_address_components(text: str) -> List[Entity]:
    """
    Find address fragments in a document.

    Args:
        text: Full document text.

    Returns:
        Fragment entities sorted by position, ids "frag-1", "frag-2", ...
        (source=RULE, metadata.isAddressComponent=True).
    """
    found: List[Tuple[EntityType, int, int]] = []

    # === Street name + number ===
    for regex in (_STREET_SUFFIX_RE, _STREET_PREFIX_RE):
        for match in regex.finditer(text):
            if _claim(found, EntityType.STREET_NAME, match.start(1), match.end(1)):
                _claim(found, EntityType.STREET_NUMBER, match.start(2), match.end(2))

    # === Postal code + city ===
    for regex in (_SWISS_POSTAL_CITY_RE, _EU_POSTAL_CITY_RE):
        for match in regex.finditer(text):
            if _claim(found, EntityType.POSTAL_CODE, match.start(1), match.end(1)):
                _claim(found, EntityType.CITY, match.start(2), match.end(2))

    # === Stand-alone cities and countries ===
    for match in _KNOWN_CITY_RE.finditer(text):
        _claim(found, EntityType.CITY, match.start(), match.end())
    for match in _COUNTRY_RE.finditer(text):
        _claim(found, EntityType.COUNTRY, match.start(), match.end())

    found.sort(key=lambda f: f[1])

    entities = [
        Entity(
            id=f"frag-{i}",
            type=type_,
            text=text[start:end],
            start=start,
            end=end,
            confidence=DEFAULT_RULE_CONFIDENCE,
            source=EntitySource.RULE,
            metadata=EntityMetadata(component_type=type_.value, is_address_component=True),
        )
        for i, (type_, start, end) in enumerate(found, start=1)
    ]

    logger.debug("Address fragment detection produced %d entities", len(entities))
    return entities


def drop_superseded_addresses(rule_entities: List[Entity], fragments: List[Entity]) -> List[Entity]:
    """
    Remove whole-address pattern matches that overlap detected fragments.

    The consolidation pass rebuilds those addresses from the fragments,
    with their component breakdown.
    """
    kept = [
        e for e in rule_entities
        if e.type.value not in ADDRESS_TYPES or not any(e.overlaps(f) for f in fragments)
    ]
    if len(kept) < len(rule_entities):
        logger.debug("Dropped %d pattern addresses covered by fragments", len(rule_entities) - len(kept))
    return kept
