"""
Entity Linker — shared logical IDs for repeated mentions.

Mentions are grouped by "{baseType}:{key}" where the key depends on the
linking strategy:
    exact       raw text
    normalized  case-folded, whitespace-collapsed text
    fuzzy       normalized text with leading titles (Herr, Mme, Dr., ...) removed

Every group of two or more mentions receives "{baseType}_{n}". The counters
live inside link_entities() and restart at 1 on every call, so numbering never
leaks from one document to the next.
"""
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Tuple

from pii_consolidation.config.constants import TITLE_TOKENS
from pii_consolidation.models.entity import Entity, EntityType

logger = logging.getLogger(__name__)

_BASE_TYPES: Dict[EntityType, str] = {
    EntityType.SWISS_ADDRESS: "ADDRESS",
    EntityType.EU_ADDRESS: "ADDRESS",
    EntityType.PERSON_NAME: "PERSON",
}


def base_type(entity_type: EntityType) -> str:
    """SWISS_ADDRESS/EU_ADDRESS → ADDRESS, PERSON_NAME → PERSON, else unchanged."""
    return _BASE_TYPES.get(entity_type, entity_type.value)


def normalize_text(text: str) -> str:
    """Case-fold and collapse whitespace."""
    return " ".join(text.casefold().split())


def fuzzy_normalize_text(text: str) -> str:
    """Normalize, then drop leading title/salutation tokens ("herr dr. müller" → "müller")."""
    tokens = normalize_text(text).split(" ")
    while len(tokens) > 1 and tokens[0] in TITLE_TOKENS:
        tokens = tokens[1:]
    return " ".join(tokens)


def entity_group_key(entity: Entity, strategy: str = "normalized") -> str:
    """Grouping key for an entity under the given linking strategy."""
    prefix = base_type(entity.type)
    if strategy == "normalized":
        return f"{prefix}:{normalize_text(entity.text)}"
    if strategy == "fuzzy":
        return f"{prefix}:{fuzzy_normalize_text(entity.text)}"
    return f"{prefix}:{entity.text}"


def link_entities(
    entities: List[Entity],
    strategy: str = "normalized",
) -> Tuple[List[Entity], int]:
    """
    Assign logical IDs to repeated mentions.

    Args:
        entities: Consolidated entities (not mutated).
        strategy: "exact" | "normalized" | "fuzzy".

    Returns:
        (entities, group_count). Output order matches input order; mentions
        in singleton groups carry no logical ID.
    """
    groups: Dict[str, List[int]] = defaultdict(list)
    for i, entity in enumerate(entities):
        groups[entity_group_key(entity, strategy)].append(i)

    # Run-local counters: numbering starts at 1 per base type on every call.
    type_counters: Dict[str, int] = defaultdict(int)
    logical_ids: Dict[int, str] = {}
    group_count = 0

    # dict preserves first-mention order, so numbering follows the document.
    for members in groups.values():
        if len(members) < 2:
            continue
        prefix = base_type(entities[members[0]].type)
        type_counters[prefix] += 1
        logical_id = f"{prefix}_{type_counters[prefix]}"
        group_count += 1
        for i in members:
            logical_ids[i] = logical_id

    linked = [
        replace(entity, logical_id=logical_ids.get(i))
        for i, entity in enumerate(entities)
    ]

    logger.debug("Linked %d groups (strategy=%s)", group_count, strategy)
    return linked, group_count
