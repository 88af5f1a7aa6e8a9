"""
Overlap Resolver — one winner per contested text region.

Rules:
    1. Sort by start, then longest span first
    2. For each unconsumed pivot, collect the unconsumed entities overlapping it
    3. Score: priority ("priority-only") or priority × confidence
       ("confidence-weighted"); unknown types score 0
    4. Highest score wins; ties → longest span; remaining ties → first in order
    5. Winner and losers are all consumed

A candidate overlapping a winner kept from an earlier cluster is consumed as
a loser, so the output never contains two overlapping spans.
"""
import logging
from typing import Dict, List, Mapping, Optional, Set

from pii_consolidation.config.constants import DEFAULT_ENTITY_PRIORITY
from pii_consolidation.models.entity import Entity

logger = logging.getLogger(__name__)


def score_entity(
    entity: Entity,
    strategy: str,
    priority_table: Mapping[str, float],
) -> float:
    """Overlap score of a single entity."""
    priority = priority_table.get(entity.type.value, 0)
    if strategy == "priority-only":
        return float(priority)
    return priority * entity.confidence


def pick_overlap_winner(
    candidates: List[Entity],
    strategy: str,
    priority_table: Mapping[str, float],
) -> Entity:
    """
    Pick the winner among overlapping candidates.

    Candidates must be given in resolution order; on a full tie (score and
    span length) the first one wins.
    """
    best = candidates[0]
    best_score = score_entity(best, strategy, priority_table)

    for candidate in candidates[1:]:
        score = score_entity(candidate, strategy, priority_table)
        if score > best_score or (score == best_score and candidate.span_length() > best.span_length()):
            best, best_score = candidate, score

    return best


def resolve_overlaps(
    entities: List[Entity],
    strategy: str = "confidence-weighted",
    priority_table: Optional[Mapping[str, float]] = None,
) -> List[Entity]:
    """
    Remove span conflicts, keeping exactly one entity per contested region.

    Args:
        entities: Unordered entity list (not mutated).
        strategy: "priority-only" | "confidence-weighted".
        priority_table: Type name → priority. Defaults to DEFAULT_ENTITY_PRIORITY.

    Returns:
        Non-overlapping entities in resolution order. The number removed is
        len(entities) - len(result).
    """
    if not entities:
        return []
    if priority_table is None:
        priority_table = DEFAULT_ENTITY_PRIORITY

    order = sorted(
        range(len(entities)),
        key=lambda i: (entities[i].start, -entities[i].span_length()),
    )

    result: List[Entity] = []
    consumed: Set[int] = set()

    for i in order:
        if i in consumed:
            continue
        pivot = entities[i]

        cluster = [i] + [
            j for j in order
            if j != i and j not in consumed and pivot.overlaps(entities[j])
        ]
        consumed.update(cluster)

        # Earlier winners are final.
        eligible = [
            entities[j] for j in cluster
            if not any(entities[j].overlaps(kept) for kept in result)
        ]
        if not eligible:
            continue

        winner = pick_overlap_winner(eligible, strategy, priority_table)
        if len(cluster) > 1:
            logger.debug(
                "Overlap cluster of %d resolved in favour of %r", len(cluster), winner
            )
        result.append(winner)

    return result
