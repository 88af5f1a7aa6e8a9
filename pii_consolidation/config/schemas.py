"""
JSON Schemas for the consolidation boundary.

Two schemas:
1. RAW_ENTITIES_SCHEMA          — entity list handed in by the detectors
2. CONSOLIDATION_OUTPUT_SCHEMA  — final consolidated result
"""
from pii_consolidation.models.entity import EntitySource, EntityType

ENTITY_TYPES = [t.value for t in EntityType]
ENTITY_SOURCES = [s.value for s in EntitySource]

_SPAN_SCHEMA: dict = {
    "type": "object",
    "required": ["start", "end", "type"],
    "properties": {
        "start": {"type": "integer"},
        "end": {"type": "integer"},
        "type": {"type": "string"},
    },
}

_COMPONENT_SCHEMA: dict = {
    "type": "object",
    "required": ["type", "text", "start", "end"],
    "properties": {
        "type": {"type": "string"},
        "text": {"type": "string"},
        "start": {"type": "integer", "minimum": 0},
        "end": {"type": "integer", "minimum": 0},
        "linked": {"type": "boolean"},
        "linkedToGroupId": {"type": "string"},
    },
}

# Known metadata keys are typed; unknown keys pass through untouched.
_RAW_METADATA_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "originalSpans": {"type": "array", "items": _SPAN_SCHEMA},
        "consolidatedFrom": {"type": "array", "items": {"type": "string"}},
        "componentCount": {"type": "integer"},
        "componentType": {"type": "string"},
        "isAddressComponent": {"type": "boolean"},
        "linkedToAddress": {"type": "boolean"},
        "patternPriority": {"type": "integer"},
        "tokenCount": {"type": "integer"},
    },
}


# =============================================================================
# 1. Raw entity list (detector output)
# =============================================================================
RAW_ENTITIES_SCHEMA: dict = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "type", "text", "start", "end"],
        "properties": {
            "id": {"type": "string", "minLength": 1},
            # Free string: unknown labels are mapped to UNKNOWN, not rejected.
            "type": {"type": "string"},
            "text": {"type": "string"},
            "start": {"type": "integer"},
            "end": {"type": "integer"},
            "confidence": {"type": "number"},
            "source": {"type": "string", "enum": ENTITY_SOURCES},
            "logicalId": {"type": "string"},
            "components": {"type": "array", "items": _COMPONENT_SCHEMA},
            "metadata": _RAW_METADATA_SCHEMA,
            "flaggedForReview": {"type": "boolean"},
            "validation": {"type": "object"},
            "context": {"type": "object"},
        },
    },
}


# =============================================================================
# 2. Consolidation output
# =============================================================================
CONSOLIDATION_OUTPUT_SCHEMA: dict = {
    "type": "object",
    "required": ["entities", "metadata"],
    "properties": {
        "entities": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "type", "text", "start", "end", "confidence", "source"],
                "properties": {
                    "id": {"type": "string"},
                    "type": {"type": "string", "enum": ENTITY_TYPES},
                    "text": {"type": "string"},
                    "start": {"type": "integer", "minimum": 0},
                    "end": {"type": "integer", "minimum": 0},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                    "source": {"type": "string", "enum": ENTITY_SOURCES},
                    "logicalId": {"type": "string", "pattern": r"^[A-Z_]+_\d+$"},
                    "components": {"type": "array", "items": _COMPONENT_SCHEMA},
                    "metadata": {
                        "type": "object",
                        "properties": {
                            "originalSpans": {"type": "array", "items": _SPAN_SCHEMA},
                            "consolidatedFrom": {"type": "array", "items": {"type": "string"}},
                            "componentCount": {"type": "integer", "minimum": 1},
                            "linkedToAddress": {"type": "boolean"},
                        },
                    },
                },
            },
        },
        "metadata": {
            "type": "object",
            "required": [
                "overlapsResolved",
                "addressesConsolidated",
                "entitiesLinked",
                "originalEntityCount",
                "durationMs",
            ],
            "properties": {
                "overlapsResolved": {"type": "integer", "minimum": 0},
                "addressesConsolidated": {"type": "integer", "minimum": 0},
                "entitiesLinked": {"type": "integer", "minimum": 0},
                "originalEntityCount": {"type": "integer", "minimum": 0},
                "durationMs": {"type": "integer", "minimum": 0},
                "invalidSpansDropped": {"type": "integer", "minimum": 0},
            },
        },
    },
}
