"""
Output Normalization — ConsolidationResult → wire dict.

Produces the camelCase structure described by CONSOLIDATION_OUTPUT_SCHEMA,
consumed by the review UI, the pseudonymizer and the accuracy harness.
"""
from pii_consolidation.models.consolidation_io import ConsolidationResult


def build_consolidation_output(result: ConsolidationResult) -> dict:
    """
    Build the output dict for a consolidation run.

    Returns:
        {"entities": [...], "metadata": {overlapsResolved, addressesConsolidated,
         entitiesLinked, originalEntityCount, durationMs, invalidSpansDropped}}
    """
    return {
        "entities": [e.to_dict() for e in result.entities],
        "metadata": result.metadata.to_dict(),
    }


def group_by_logical_id(result: ConsolidationResult) -> dict:
    """
    Logical ID → mention texts, in document order.

    This is the view a pseudonymizer uses to assign one replacement per
    real-world entity; unlinked mentions are not included.
    """
    grouped: dict = {}
    for entity in result.entities:
        if entity.logical_id is not None:
            grouped.setdefault(entity.logical_id, []).append(entity.text)
    return grouped
