"""
Boundary Validation — raw detector payloads and consolidated output.

Implements:
- Schema conformance (jsonschema)
- Business rules (unique ids)
- Span checks: degenerate or out-of-bounds spans are rejected
- Confidence clamping to [0, 1]
- Output schema check for the consolidated result
"""
import logging
from typing import List, Tuple

import numpy as np
from jsonschema import ValidationError, validate

from pii_consolidation.config.schemas import CONSOLIDATION_OUTPUT_SCHEMA, RAW_ENTITIES_SCHEMA
from pii_consolidation.models.entity import Entity, EntityType
from pii_consolidation.models.validation import ValidationResult

logger = logging.getLogger(__name__)


def span_error(start: int, end: int, text_length: int) -> str:
    """Describe what is wrong with a span, or return "" when it is usable."""
    if start < 0:
        return f"start {start} is negative"
    if start >= end:
        return f"empty or inverted span [{start},{end})"
    if end > text_length:
        return f"end {end} exceeds text length {text_length}"
    return ""


def partition_by_span_validity(
    entities: List[Entity],
    text: str,
) -> Tuple[List[Entity], List[Entity]]:
    """
    Split entities into (usable, rejected) by span validity.

    Rejected entities are logged; the caller decides how to report them.
    """
    usable: List[Entity] = []
    rejected: List[Entity] = []

    for entity in entities:
        problem = span_error(entity.start, entity.end, len(text))
        if problem:
            logger.warning("Rejecting entity %s: %s", entity.id, problem)
            rejected.append(entity)
        else:
            usable.append(entity)

    return usable, rejected


def validate_raw_entities(payload: list, text: str) -> ValidationResult:
    """
    Multi-stage validation of a raw entity payload (wire form).

    Stages:
        1. Schema conformance
        2. Business rules (unique ids)
        3. Span checks (invalid spans rejected with a warning)
        4. Quality checks (confidence clamped, unknown types, text drift)

    Args:
        payload: List of camelCase entity dicts from the detectors.
        text: Full document text.

    Returns:
        ValidationResult with valid flag, errors, warnings, and parsed entities.
    """
    errors: List[str] = []
    warnings: List[str] = []

    # ------------------------------------------------------------------
    # Stage 1: Schema validation
    # ------------------------------------------------------------------
    try:
        validate(instance=payload, schema=RAW_ENTITIES_SCHEMA)
    except ValidationError as e:
        errors.append(f"Schema violation: {e.message}")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    # ------------------------------------------------------------------
    # Stage 2: Business rules
    # ------------------------------------------------------------------
    seen_ids = set()
    for item in payload:
        if item["id"] in seen_ids:
            errors.append(f"Duplicate entity id: '{item['id']}'")
        seen_ids.add(item["id"])

    if errors:
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    entities: List[Entity] = []
    for item in payload:
        # --------------------------------------------------------------
        # Stage 3: Span checks
        # --------------------------------------------------------------
        problem = span_error(item["start"], item["end"], len(text))
        if problem:
            warnings.append(f"Entity '{item['id']}' rejected: {problem}")
            continue

        # --------------------------------------------------------------
        # Stage 4: Quality checks
        # --------------------------------------------------------------
        try:
            entity = Entity.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            errors.append(f"Entity '{item['id']}' could not be parsed: {e!r}")
            continue

        confidence = item.get("confidence", 1.0)
        clipped = float(np.clip(confidence, 0.0, 1.0))
        if clipped != confidence:
            warnings.append(f"Entity '{item['id']}' confidence {confidence} clamped to {clipped}")
        entity.confidence = clipped

        if entity.type is EntityType.UNKNOWN and str(item["type"]).upper() != "UNKNOWN":
            warnings.append(f"Entity '{item['id']}' has unknown type '{item['type']}', mapped to UNKNOWN")

        if text[entity.start:entity.end] != entity.text:
            warnings.append(f"Entity '{item['id']}' text does not match document span")

        entities.append(entity)

    for w in warnings:
        logger.warning(w)

    if errors:
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    return ValidationResult(valid=True, errors=errors, warnings=warnings, data=entities)


def validate_consolidation_output(output: dict) -> ValidationResult:
    """Check a built output dict against CONSOLIDATION_OUTPUT_SCHEMA."""
    try:
        validate(instance=output, schema=CONSOLIDATION_OUTPUT_SCHEMA)
    except ValidationError as e:
        return ValidationResult(valid=False, errors=[f"Schema violation: {e.message}"])
    return ValidationResult(valid=True)
