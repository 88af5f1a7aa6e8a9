"""
Consolidation Orchestrator — main entry point for entity post-processing.

Executes the passes in fixed order, each independently toggleable:
    0. Span validation (degenerate / out-of-bounds spans rejected)
       + original span capture (preserveOriginalSpans)
    1. Overlap resolution
    2. Address consolidation
    3. Entity linking

consolidate() keeps no state between calls: every working set and logical-ID
counter is created inside the call, so documents processed one after another
(or concurrently) never influence each other.
"""
import logging
import time
from dataclasses import replace
from typing import List, Optional

from pii_consolidation.models.consolidation_io import (
    ConsolidationConfig,
    ConsolidationMetadata,
    ConsolidationResult,
)
from pii_consolidation.models.entity import Entity, OriginalSpan
from pii_consolidation.postprocessing.address_consolidator import consolidate_addresses
from pii_consolidation.postprocessing.entity_linker import link_entities
from pii_consolidation.postprocessing.metrics import record_run, timed_pass
from pii_consolidation.postprocessing.overlap_resolver import resolve_overlaps
from pii_consolidation.postprocessing.validation import partition_by_span_validity

logger = logging.getLogger(__name__)


def attach_original_spans(entities: List[Entity]) -> List[Entity]:
    """
    Copy each entity with the spans of every input entity overlapping it
    (itself included), so the winner of an overlap keeps a trace of what it beat.
    """
    return [
        replace(
            entity,
            metadata=replace(
                entity.metadata,
                original_spans=[
                    OriginalSpan(other.start, other.end, other.type.value)
                    for other in entities
                    if other.overlaps(entity)
                ],
            ),
        )
        for entity in entities
    ]


def consolidate(
    entities: List[Entity],
    text: str,
    config: Optional[ConsolidationConfig] = None,
) -> ConsolidationResult:
    """
    Consolidate a raw entity list into non-overlapping, linked entities.

    Args:
        entities: Raw detector output (not mutated).
        text: Full document text.
        config: ConsolidationConfig. Defaults to all built-in defaults.

    Returns:
        ConsolidationResult with the final entities and run metadata.
    """
    start_time = time.monotonic()

    if config is None:
        config = ConsolidationConfig()

    metadata = ConsolidationMetadata(original_entity_count=len(entities))

    # ==================================================================
    # Stage 0: Span validation + original span capture
    # ==================================================================
    result, rejected = partition_by_span_validity(list(entities), text)
    metadata.invalid_spans_dropped = len(rejected)

    if config.preserve_original_spans:
        result = attach_original_spans(result)

    # ==================================================================
    # Stage 1: Overlap resolution
    # ==================================================================
    if config.enable_overlap_resolution:
        with timed_pass("overlap"):
            resolved = resolve_overlaps(
                result,
                strategy=config.overlap_strategy,
                priority_table=config.priority_table(),
            )
        metadata.overlaps_resolved = len(result) - len(resolved)
        result = resolved

    # ==================================================================
    # Stage 2: Address consolidation
    # ==================================================================
    if config.enable_address_consolidation:
        with timed_pass("address"):
            result, metadata.addresses_consolidated = consolidate_addresses(result, text, config)

    # ==================================================================
    # Stage 3: Entity linking
    # ==================================================================
    if config.enable_entity_linking:
        with timed_pass("linking"):
            result, metadata.entities_linked = link_entities(result, config.linking_strategy)

    metadata.duration_ms = int((time.monotonic() - start_time) * 1000)
    record_run(metadata)

    logger.info(
        "Consolidated %d → %d entities (overlaps=%d, addresses=%d, linked=%d, rejected=%d) in %d ms",
        metadata.original_entity_count,
        len(result),
        metadata.overlaps_resolved,
        metadata.addresses_consolidated,
        metadata.entities_linked,
        metadata.invalid_spans_dropped,
        metadata.duration_ms,
    )

    return ConsolidationResult(entities=result, metadata=metadata)


def _with_overrides(config: ConsolidationConfig, overrides: dict) -> ConsolidationConfig:
    """Re-validate config with overrides given by field name or camelCase alias."""
    aliases = {
        name: field.alias or name for name, field in ConsolidationConfig.model_fields.items()
    }
    data = config.model_dump(by_alias=True)
    for key, value in overrides.items():
        data[aliases.get(key, key)] = value
    return ConsolidationConfig.model_validate(data)


class ConsolidationPass:
    """
    Configured consolidation pass for a detection pipeline.

    Holds only its configuration; each consolidate() call is independent.
    """

    def __init__(self, config: Optional[ConsolidationConfig] = None, **overrides):
        base = config if config is not None else ConsolidationConfig()
        self.config = _with_overrides(base, overrides) if overrides else base

    def consolidate(self, entities: List[Entity], text: str) -> ConsolidationResult:
        return consolidate(entities, text, self.config)

    def get_config(self) -> ConsolidationConfig:
        return self.config

    def configure(self, **overrides) -> None:
        """Update configuration; unknown or invalid values raise ValidationError."""
        self.config = _with_overrides(self.config, overrides)
