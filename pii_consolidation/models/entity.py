"""
Entity model shared by detectors and consolidation passes.

Entities are copied with dataclasses.replace() between passes; a pass never
mutates the objects it receives.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EntityType(str, Enum):
    """Closed PII taxonomy."""

    PERSON = "PERSON"
    PERSON_NAME = "PERSON_NAME"
    ORGANIZATION = "ORGANIZATION"
    LOCATION = "LOCATION"
    ADDRESS = "ADDRESS"
    SWISS_ADDRESS = "SWISS_ADDRESS"
    EU_ADDRESS = "EU_ADDRESS"
    SWISS_AVS = "SWISS_AVS"
    IBAN = "IBAN"
    PHONE = "PHONE"
    EMAIL = "EMAIL"
    DATE = "DATE"
    AMOUNT = "AMOUNT"
    VAT_NUMBER = "VAT_NUMBER"
    INVOICE_NUMBER = "INVOICE_NUMBER"
    PAYMENT_REF = "PAYMENT_REF"
    QR_REFERENCE = "QR_REFERENCE"
    SENDER = "SENDER"
    RECIPIENT = "RECIPIENT"
    SALUTATION_NAME = "SALUTATION_NAME"
    SIGNATURE = "SIGNATURE"
    LETTER_DATE = "LETTER_DATE"
    REFERENCE_LINE = "REFERENCE_LINE"
    PARTY = "PARTY"
    AUTHOR = "AUTHOR"
    VENDOR_NAME = "VENDOR_NAME"
    UNKNOWN = "UNKNOWN"
    # Address fragments
    STREET_NAME = "STREET_NAME"
    STREET_NUMBER = "STREET_NUMBER"
    POSTAL_CODE = "POSTAL_CODE"
    CITY = "CITY"
    REGION = "REGION"
    COUNTRY = "COUNTRY"

    @classmethod
    def parse(cls, value: str) -> "EntityType":
        """Map a type name onto the taxonomy; unrecognised names become UNKNOWN."""
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class EntitySource(str, Enum):
    """Provenance of an entity."""

    ML = "ML"
    RULE = "RULE"
    BOTH = "BOTH"
    MANUAL = "MANUAL"
    LINKED = "LINKED"
    CONSOLIDATED = "CONSOLIDATED"


@dataclass(frozen=True)
class OriginalSpan:
    """Pre-consolidation span kept for traceability."""

    start: int
    end: int
    type: str

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "type": self.type}


@dataclass
class AddressComponent:
    """A fragment absorbed into a consolidated entity."""

    type: str               # original sub-type, e.g. "POSTAL_CODE"
    text: str
    start: int
    end: int
    linked: bool = True
    linked_to_group_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.type,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "linked": self.linked,
        }
        if self.linked_to_group_id is not None:
            data["linkedToGroupId"] = self.linked_to_group_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "AddressComponent":
        return cls(
            type=str(data["type"]),
            text=data.get("text", ""),
            start=int(data["start"]),
            end=int(data["end"]),
            linked=bool(data.get("linked", True)),
            linked_to_group_id=data.get("linkedToGroupId"),
        )


# Wire keys of EntityMetadata fields; everything else is kept in `extra`.
_METADATA_KEYS = {
    "originalSpans": "original_spans",
    "consolidatedFrom": "consolidated_from",
    "componentCount": "component_count",
    "componentType": "component_type",
    "isAddressComponent": "is_address_component",
    "linkedToAddress": "linked_to_address",
    "patternPriority": "pattern_priority",
    "tokenCount": "token_count",
}


@dataclass
class EntityMetadata:
    """
    Typed traceability data attached to an entity.

    Keys the pipeline does not interpret survive untouched in `extra`.
    """

    original_spans: Optional[List[OriginalSpan]] = None
    consolidated_from: Optional[List[str]] = None
    component_count: Optional[int] = None
    component_type: Optional[str] = None
    is_address_component: bool = False
    linked_to_address: Optional[bool] = None
    pattern_priority: Optional[int] = None
    token_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data: Dict[str, Any] = dict(self.extra)
        if self.original_spans is not None:
            data["originalSpans"] = [s.to_dict() for s in self.original_spans]
        if self.consolidated_from is not None:
            data["consolidatedFrom"] = list(self.consolidated_from)
        if self.component_count is not None:
            data["componentCount"] = self.component_count
        if self.component_type is not None:
            data["componentType"] = self.component_type
        if self.is_address_component:
            data["isAddressComponent"] = True
        if self.linked_to_address is not None:
            data["linkedToAddress"] = self.linked_to_address
        if self.pattern_priority is not None:
            data["patternPriority"] = self.pattern_priority
        if self.token_count is not None:
            data["tokenCount"] = self.token_count
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EntityMetadata":
        if not data:
            return cls()
        known = {attr: data[key] for key, attr in _METADATA_KEYS.items() if key in data}
        extra = {k: v for k, v in data.items() if k not in _METADATA_KEYS}
        spans = known.pop("original_spans", None)
        if spans is not None:
            spans = [OriginalSpan(int(s["start"]), int(s["end"]), str(s["type"])) for s in spans]
        return cls(
            original_spans=spans,
            extra=extra,
            is_address_component=known.pop("is_address_component", False) is True,
            **known,
        )


@dataclass
class Entity:
    """A candidate PII span with provenance."""

    id: str
    type: EntityType
    text: str
    start: int
    end: int
    confidence: float
    source: EntitySource
    logical_id: Optional[str] = None
    components: Optional[List[AddressComponent]] = None
    metadata: EntityMetadata = field(default_factory=EntityMetadata)
    # Review fields: carried through, never interpreted here.
    flagged_for_review: Optional[bool] = None
    validation: Optional[dict] = None
    context: Optional[dict] = None

    def overlaps(self, other: "Entity") -> bool:
        """Check if two entities have overlapping spans."""
        return self.start < other.end and other.start < self.end

    def span_length(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
            "source": self.source.value,
        }
        if self.logical_id is not None:
            data["logicalId"] = self.logical_id
        if self.components is not None:
            data["components"] = [c.to_dict() for c in self.components]
        metadata = self.metadata.to_dict()
        if metadata:
            data["metadata"] = metadata
        if self.flagged_for_review is not None:
            data["flaggedForReview"] = self.flagged_for_review
        if self.validation is not None:
            data["validation"] = self.validation
        if self.context is not None:
            data["context"] = self.context
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Entity":
        components = data.get("components")
        return cls(
            id=str(data["id"]),
            type=EntityType.parse(data["type"]),
            text=data.get("text", ""),
            start=int(data["start"]),
            end=int(data["end"]),
            confidence=float(data.get("confidence", 1.0)),
            source=EntitySource(data.get("source", "ML")),
            logical_id=data.get("logicalId"),
            components=(
                [AddressComponent.from_dict(c) for c in components]
                if components is not None else None
            ),
            metadata=EntityMetadata.from_dict(data.get("metadata")),
            flagged_for_review=data.get("flaggedForReview"),
            validation=data.get("validation"),
            context=data.get("context"),
        )

    def __repr__(self) -> str:
        return f"Entity('{self.text}', {self.type.value}, [{self.start},{self.end}], {self.source.value})"
