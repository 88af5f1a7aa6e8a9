"""
ML label normalization.

Maps raw NER labels (PER, B-PER, I-ORG, GPE, ...) onto the closed taxonomy.
"""
import re
from typing import Optional

from pii_consolidation.config.constants import ML_ENTITY_MAPPING
from pii_consolidation.models.entity import EntityType

_BIO_PREFIX = re.compile(r"^[BI]-", re.IGNORECASE)


def strip_bio_prefix(label: str) -> str:
    """"B-PER" → "PER", "I-LOC" → "LOC", "PER" → "PER"."""
    return _BIO_PREFIX.sub("", label)


def is_inside_label(label: str) -> bool:
    return label[:2].upper() == "I-"


def normalize_ml_label(label: Optional[str]) -> Optional[EntityType]:
    """
    Map a raw ML label onto EntityType.

    Returns None for the outside tag ("O") and for empty labels; any label
    that is not in the mapping becomes UNKNOWN.
    """
    if label is None:
        return None
    clean = strip_bio_prefix(label.strip()).upper()
    if clean in ("", "O"):
        return None
    return EntityType(ML_ENTITY_MAPPING.get(clean, "UNKNOWN"))
