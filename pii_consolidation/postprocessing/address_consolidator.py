"""
Address Consolidation — merges address fragments into structured addresses.

Flow:
    1. Partition: formed addresses (with components) | fragments | others
    2. Group fragments by proximity (gap doubled across a line break)
    3. Gate each group on size and mean confidence
    4. Build one consolidated entity per surviving group, classified as
       SWISS_ADDRESS / EU_ADDRESS / ADDRESS
    5. Hide absorbed fragments, or keep them annotated (show_components)

Malformed or sparse input never raises; it degrades to "nothing consolidated".
"""
import logging
import re
from dataclasses import replace
from typing import List, Sequence, Set, Tuple

import numpy as np

from pii_consolidation.config.constants import (
    ADDRESS_COMPONENT_TYPES,
    ADDRESS_TYPES,
    SWISS_COUNTRY_CODE,
    SWISS_COUNTRY_NAMES,
    SWISS_POSTAL_CODE_PATTERN,
)
from pii_consolidation.models.consolidation_io import ConsolidationConfig
from pii_consolidation.models.entity import (
    AddressComponent,
    Entity,
    EntityMetadata,
    EntitySource,
    EntityType,
    OriginalSpan,
)

logger = logging.getLogger(__name__)

_SWISS_POSTAL_RE = re.compile(SWISS_POSTAL_CODE_PATTERN)
_LINE_BREAK_RE = re.compile(r"[\r\n]")


def is_formed_address(entity: Entity) -> bool:
    """An address entity that already carries its own components."""
    return bool(entity.components) and entity.type.value in ADDRESS_TYPES


def is_address_fragment(entity: Entity) -> bool:
    return entity.metadata.is_address_component or entity.type.value in ADDRESS_COMPONENT_TYPES


def group_address_components(
    fragments: Sequence[Entity],
    text: str,
    max_gap: int,
    min_components: int,
) -> List[List[Entity]]:
    """
    Group fragments by proximity.

    Consecutive fragments (by start) stay in one group while the gap
    next.start - prev.end is in [0, max_gap], or [0, 2 * max_gap] when the
    text between them contains a line break. Groups smaller than
    min_components are discarded.
    """
    if not fragments:
        return []

    ordered = sorted(fragments, key=lambda e: e.start)
    groups: List[List[Entity]] = []
    current: List[Entity] = [ordered[0]]

    for previous, fragment in zip(ordered, ordered[1:]):
        gap = fragment.start - previous.end
        between = text[previous.end:fragment.start] if gap > 0 else ""
        threshold = max_gap * 2 if _LINE_BREAK_RE.search(between) else max_gap

        if 0 <= gap <= threshold:
            current.append(fragment)
        else:
            if len(current) >= min_components:
                groups.append(current)
            current = [fragment]

    if len(current) >= min_components:
        groups.append(current)

    return groups


def classify_address(components: Sequence[AddressComponent]) -> EntityType:
    """
    Jurisdiction of a consolidated address.

    SWISS_ADDRESS: 4-digit postal code starting 1-9, or a country fragment
                   naming Switzerland (any supported language) or "CH".
    EU_ADDRESS:    any other country fragment, or a non-Swiss postal code.
    ADDRESS:       otherwise.
    """
    postal = next((c for c in components if c.type == EntityType.POSTAL_CODE.value), None)
    country = next((c for c in components if c.type == EntityType.COUNTRY.value), None)

    is_swiss_postal = postal is not None and bool(_SWISS_POSTAL_RE.match(postal.text.strip()))
    country_text = country.text.strip().casefold() if country is not None else ""

    if (
        is_swiss_postal
        or any(name in country_text for name in SWISS_COUNTRY_NAMES)
        or country_text == SWISS_COUNTRY_CODE
    ):
        return EntityType.SWISS_ADDRESS

    if country is not None or (postal is not None and not is_swiss_postal):
        return EntityType.EU_ADDRESS

    return EntityType.ADDRESS


def build_consolidated_address(
    group: Sequence[Entity],
    text: str,
    confidence: float,
    preserve_original_spans: bool,
) -> Entity:
    """Create the consolidated entity for one accepted fragment group."""
    ordered = sorted(group, key=lambda e: e.start)
    first, last = ordered[0], ordered[-1]

    components = [
        AddressComponent(
            type=f.metadata.component_type or f.type.value,
            text=f.text,
            start=f.start,
            end=f.end,
            linked=True,
        )
        for f in ordered
    ]

    metadata = EntityMetadata(
        consolidated_from=[f.id for f in ordered],
        component_count=len(ordered),
    )
    if preserve_original_spans:
        metadata.original_spans = [OriginalSpan(f.start, f.end, f.type.value) for f in ordered]

    return Entity(
        id=f"consolidated-addr-{first.id}",
        type=classify_address(components),
        text=text[first.start:last.end],
        start=first.start,
        end=last.end,
        confidence=confidence,
        source=EntitySource.CONSOLIDATED,
        components=components,
        metadata=metadata,
    )


def consolidate_addresses(
    entities: List[Entity],
    text: str,
    config: ConsolidationConfig,
) -> Tuple[List[Entity], int]:
    """
    Consolidate address fragments into unified address entities.

    Args:
        entities: Overlap-resolved entities (not mutated).
        text: Original document text.
        config: Gap, size, confidence and output settings.

    Returns:
        (entities, consolidated_count). When nothing qualifies the input
        list is returned as-is with a count of 0.
    """
    fragments: List[Entity] = []
    others: List[Entity] = []

    for entity in entities:
        if is_formed_address(entity):
            others.append(entity)
        elif is_address_fragment(entity):
            fragments.append(entity)
        else:
            others.append(entity)

    if len(fragments) < config.min_address_components:
        return entities, 0

    groups = group_address_components(
        fragments,
        text,
        config.address_max_gap,
        config.min_address_components,
    )

    consolidated: List[Entity] = []
    used_ids: Set[str] = set()

    for group in groups:
        mean_confidence = float(np.mean([f.confidence for f in group]))
        if mean_confidence < config.min_consolidation_confidence:
            logger.debug(
                "Skipping address group of %d fragments: mean confidence %.2f < %.2f",
                len(group),
                mean_confidence,
                config.min_consolidation_confidence,
            )
            continue

        address = build_consolidated_address(
            group, text, mean_confidence, config.preserve_original_spans
        )
        consolidated.append(address)
        used_ids.update(f.id for f in group)

    if config.show_components:
        remaining = [
            replace(f, metadata=replace(f.metadata, linked_to_address=f.id in used_ids))
            for f in fragments
        ]
    else:
        remaining = [f for f in fragments if f.id not in used_ids]

    result = others + consolidated + remaining
    result.sort(key=lambda e: (e.start, -e.end))

    logger.debug("Consolidated %d addresses from %d fragments", len(consolidated), len(fragments))
    return result, len(consolidated)
