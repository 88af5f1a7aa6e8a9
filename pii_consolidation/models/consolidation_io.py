"""
Typed I/O contracts for the consolidation pass.

ConsolidationConfig is validated with Pydantic at the call boundary: an
unknown strategy name or an out-of-range threshold raises
pydantic.ValidationError instead of silently misbehaving later.
Both camelCase (wire) and snake_case field names are accepted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pii_consolidation.config.constants import DEFAULT_ENTITY_PRIORITY
from pii_consolidation.models.entity import Entity, EntityType

OverlapStrategy = Literal["priority-only", "confidence-weighted"]
LinkingStrategy = Literal["exact", "normalized", "fuzzy"]


class ConsolidationConfig(BaseModel):
    """Per-invocation configuration. Every field is optional and defaulted."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    address_max_gap: int = Field(50, ge=0, alias="addressMaxGap")
    enable_address_consolidation: bool = Field(True, alias="enableAddressConsolidation")
    enable_overlap_resolution: bool = Field(True, alias="enableOverlapResolution")
    enable_entity_linking: bool = Field(True, alias="enableEntityLinking")
    show_components: bool = Field(False, alias="showComponents")
    overlap_strategy: OverlapStrategy = Field("confidence-weighted", alias="overlapStrategy")
    linking_strategy: LinkingStrategy = Field("normalized", alias="linkingStrategy")
    min_consolidation_confidence: float = Field(0.5, ge=0.0, le=1.0, alias="minConsolidationConfidence")
    preserve_original_spans: bool = Field(True, alias="preserveOriginalSpans")
    min_address_components: int = Field(2, ge=1, alias="minAddressComponents")
    entity_type_priority: Optional[Dict[EntityType, float]] = Field(
        None,
        alias="entityTypePriority",
        description="Replaces the default priority table; types missing from it score 0.",
    )

    @field_validator("entity_type_priority")
    @classmethod
    def validate_priorities(cls, v: Optional[Dict[EntityType, float]]) -> Optional[Dict[EntityType, float]]:
        if v is not None:
            negative = sorted(t.value for t, p in v.items() if p < 0)
            if negative:
                raise ValueError(f"priorities must be non-negative, got negative values for {negative}")
        return v

    def priority_table(self) -> Dict[str, float]:
        """Priority lookup keyed by type name."""
        if self.entity_type_priority is None:
            return dict(DEFAULT_ENTITY_PRIORITY)
        return {t.value: p for t, p in self.entity_type_priority.items()}


@dataclass
class ConsolidationMetadata:
    """Run statistics reported next to the consolidated entities."""

    overlaps_resolved: int = 0
    addresses_consolidated: int = 0
    entities_linked: int = 0
    original_entity_count: int = 0
    duration_ms: int = 0
    invalid_spans_dropped: int = 0

    def to_dict(self) -> dict:
        return {
            "overlapsResolved": self.overlaps_resolved,
            "addressesConsolidated": self.addresses_consolidated,
            "entitiesLinked": self.entities_linked,
            "originalEntityCount": self.original_entity_count,
            "durationMs": self.duration_ms,
            "invalidSpansDropped": self.invalid_spans_dropped,
        }


@dataclass
class ConsolidationResult:
    """Final entity list plus run metadata."""

    entities: List[Entity] = field(default_factory=list)
    metadata: ConsolidationMetadata = field(default_factory=ConsolidationMetadata)
