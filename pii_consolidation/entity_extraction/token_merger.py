"""
BIO Token Merger — turns token-level NER predictions into entities.

Transformer NER models emit one prediction per (sub)word token:
    B-XXX  beginning of an entity
    I-XXX  continuation of the current entity
    O      outside any entity

Consecutive B-/I- tokens of the same type are merged into a single span whose
text is re-read from the document, so subword artefacts ("##ller") never leak
into entity text.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from pii_consolidation.config.constants import (
    DEFAULT_ML_THRESHOLD,
    TOKEN_MERGE_MAX_GAP,
    TOKEN_MERGE_MIN_LENGTH,
)
from pii_consolidation.entity_extraction.label_normalizer import (
    is_inside_label,
    normalize_ml_label,
    strip_bio_prefix,
)
from pii_consolidation.models.entity import Entity, EntityMetadata, EntitySource

logger = logging.getLogger(__name__)


@dataclass
class MergedToken:
    """A merged run of BIO tokens."""

    word: str
    entity: str         # label without B-/I- prefix (PER, LOC, ...)
    score: float
    start: int
    end: int
    token_count: int


def _token_label(token: dict) -> str:
    # Pipelines with aggregation report "entity_group" instead of "entity".
    return token.get("entity", token.get("entity_group", "")) or ""


def merge_bio_tokens(
    tokens: List[dict],
    text: str,
    min_length: int = TOKEN_MERGE_MIN_LENGTH,
    max_gap: int = TOKEN_MERGE_MAX_GAP,
    weighted_confidence: bool = False,
) -> List[MergedToken]:
    """
    Merge consecutive subword tokens into complete entities.

    Args:
        tokens: Raw predictions, each {"word", "entity"|"entity_group",
                "score", "start", "end"}.
        text: Original document text.
        min_length: Drop merged entities shorter than this.
        max_gap: Max characters between an I- token and the current entity.
        weighted_confidence: Weight token scores by 1/(i+1) instead of a
                             plain mean.

    Returns:
        Merged entities in document order.
    """
    entity_tokens = [t for t in tokens if _token_label(t) not in ("", "O")]
    if not entity_tokens:
        return []

    entity_tokens.sort(key=lambda t: t["start"])

    merged: List[MergedToken] = []
    current: Optional[dict] = None

    def finalize() -> None:
        if current is None:
            return
        scores = np.asarray(current["scores"], dtype=float)
        if weighted_confidence and len(scores) > 1:
            weights = 1.0 / np.arange(1, len(scores) + 1)
            score = float(np.average(scores, weights=weights))
        else:
            score = float(np.mean(scores))
        merged.append(
            MergedToken(
                word=text[current["start"]:current["end"]],
                entity=current["entity"],
                score=score,
                start=current["start"],
                end=current["end"],
                token_count=len(current["scores"]),
            )
        )

    for token in entity_tokens:
        label = _token_label(token)
        entity_type = strip_bio_prefix(label)

        should_merge = (
            current is not None
            and is_inside_label(label)
            and current["entity"] == entity_type
            and token["start"] - current["end"] <= max_gap
        )

        if should_merge:
            current["end"] = token["end"]
            current["scores"].append(float(token["score"]))
        else:
            finalize()
            current = {
                "entity": entity_type,
                "start": token["start"],
                "end": token["end"],
                "scores": [float(token["score"])],
            }

    finalize()

    return [m for m in merged if len(m.word) >= min_length]


def ml_entities_from_tokens(
    tokens: List[dict],
    text: str,
    threshold: float = DEFAULT_ML_THRESHOLD,
) -> List[Entity]:
    """
    Convert raw BIO token predictions into ML entities.

    Merged entities scoring below `threshold` or carrying the outside tag
    are dropped.
    """
    entities: List[Entity] = []

    for merged in merge_bio_tokens(tokens, text):
        entity_type = normalize_ml_label(merged.entity)
        if entity_type is None:
            continue
        if merged.score < threshold:
            logger.debug("Dropping ML entity '%s' below threshold (%.2f)", merged.entity, merged.score)
            continue
        entities.append(
            Entity(
                id=f"ml-{len(entities) + 1}",
                type=entity_type,
                text=merged.word,
                start=merged.start,
                end=merged.end,
                confidence=merged.score,
                source=EntitySource.ML,
                metadata=EntityMetadata(token_count=merged.token_count),
            )
        )

    return entities
