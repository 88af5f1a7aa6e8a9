"""
Detector Output Merger.

Combines the ML and rule-based detector outputs into one raw list:
an ML and a RULE detection with the identical span and type collapse into a
single BOTH entity with the higher confidence. An ML LOCATION on exactly the
span of an address fragment is folded into that fragment the same way, keeping
the fragment type. Every other detection passes through unchanged; competing
spans are left to the overlap resolver.
"""
from dataclasses import replace
from typing import Dict, List, Tuple

from pii_consolidation.models.entity import Entity, EntitySource, EntityType


def merge_detector_outputs(
    ml_entities: List[Entity],
    rule_entities: List[Entity],
) -> List[Entity]:
    """
    Merge ML and RULE detections.

    Args:
        ml_entities: Entities from the ML detector.
        rule_entities: Entities from the pattern library.

    Returns:
        Combined entities sorted by position (start, then longest first).
    """
    rule_by_span: Dict[Tuple[int, int, EntityType], int] = {}
    fragment_by_span: Dict[Tuple[int, int], int] = {}
    for i, entity in enumerate(rule_entities):
        rule_by_span.setdefault((entity.start, entity.end, entity.type), i)
        if entity.metadata.is_address_component:
            fragment_by_span.setdefault((entity.start, entity.end), i)

    merged: List[Entity] = []
    absorbed_rule: set = set()

    for ml in ml_entities:
        key = (ml.start, ml.end, ml.type)
        rule_index = rule_by_span.get(key)
        if rule_index is None and ml.type is EntityType.LOCATION:
            fragment_index = fragment_by_span.get((ml.start, ml.end))
            if fragment_index is not None and fragment_index not in absorbed_rule:
                absorbed_rule.add(fragment_index)
                fragment = rule_entities[fragment_index]
                merged.append(
                    replace(
                        fragment,
                        source=EntitySource.BOTH,
                        confidence=max(ml.confidence, fragment.confidence),
                    )
                )
                continue

        if rule_index is None or rule_index in absorbed_rule:
            merged.append(ml)
            continue

        rule = rule_entities[rule_index]
        absorbed_rule.add(rule_index)
        merged.append(
            replace(
                ml,
                source=EntitySource.BOTH,
                confidence=max(ml.confidence, rule.confidence),
                metadata=replace(ml.metadata, pattern_priority=rule.metadata.pattern_priority),
            )
        )

    merged.extend(e for i, e in enumerate(rule_entities) if i not in absorbed_rule)

    merged.sort(key=lambda e: (e.start, -e.end))
    return merged
