"""
RegEx Entity Matcher — rule-based detection of structured identifiers.

Patterns are ordered by type priority:
    1. High-confidence identifiers (AVS, IBAN, e-mail)
    2. Semi-structured identifiers (phone, VAT, payment references)
    3. Addresses (Swiss, German, French)
    4. Dates
    5. Amounts

Every match gets the fixed rule confidence (0.7).
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from pii_consolidation.config.constants import DEFAULT_RULE_CONFIDENCE, MIN_MATCH_LENGTH
from pii_consolidation.models.entity import Entity, EntityMetadata, EntitySource, EntityType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternDef:
    """A rule-based detector (lower priority number = evaluated first)."""

    type: EntityType
    pattern: Pattern[str]
    priority: int


def build_default_patterns() -> List[PatternDef]:
    """Build the Swiss/EU pattern library."""
    return [
        # === Priority 1: identifiers ===
        # Swiss AVS number (756.XXXX.XXXX.XX)
        PatternDef(EntityType.SWISS_AVS, re.compile(r"756[.\s]?\d{4}[.\s]?\d{4}[.\s]?\d{2}"), 1),
        PatternDef(EntityType.IBAN, re.compile(r"\b[A-Z]{2}\d{2}(?:\s?\d{4}){4,7}(?:\s?\d{1,2})?\b"), 1),
        PatternDef(EntityType.EMAIL, re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), 1),

        # === Priority 2: semi-structured ===
        # CH, DE, FR, IT, AT phone numbers
        PatternDef(
            EntityType.PHONE,
            re.compile(
                r"(?:\+|00)?(?:41|49|33|39|43)[\s.-]?(?:\(?\d{1,4}\)?[\s.-]?)?"
                r"\d{2,4}[\s.-]?\d{2,4}[\s.-]?\d{2,4}"
            ),
            2,
        ),
        PatternDef(
            EntityType.VAT_NUMBER,
            re.compile(r"\bCHE[-\s]?\d{3}[.\s]?\d{3}[.\s]?\d{3}(?:\s*(?:MWST|TVA|IVA))?\b", re.IGNORECASE),
            2,
        ),
        PatternDef(EntityType.VAT_NUMBER, re.compile(r"\b(?:DE|FR|IT|AT)\s?\d{8,11}\b"), 2),
        # Swiss QR reference (26-27 digits)
        PatternDef(
            EntityType.PAYMENT_REF,
            re.compile(r"\b\d{2}\s?\d{5}\s?\d{5}\s?\d{5}\s?\d{5}\s?\d{5,6}\b"),
            2,
        ),

        # === Priority 3: addresses ===
        PatternDef(
            EntityType.SWISS_ADDRESS,
            re.compile(r"\b(?:CH[-\s]?)?[1-9]\d{3}\s+[A-ZÄÖÜ][a-zäöüé]+(?:[-\s][A-Za-zäöüé]+)*"),
            3,
        ),
        PatternDef(
            EntityType.EU_ADDRESS,
            re.compile(r"\b(?:D[-\s]?|A[-\s]?)?\d{5}\s+[A-ZÄÖÜ][a-zäöüß]+(?:[-\s][A-Za-zäöüß]+)*"),
            3,
        ),
        PatternDef(
            EntityType.EU_ADDRESS,
            re.compile(
                r"\b(?:F[-\s]?)?\d{5}\s+[A-ZÀÂÆÉÈÊËÏÎÔŒÙÛÜ][a-zàâæéèêëïîôœùûüÿç]+"
                r"(?:[-\s][A-Za-zàâæéèêëïîôœùûüÿç]+)*"
            ),
            3,
        ),
        PatternDef(
            EntityType.ADDRESS,
            re.compile(r"\b[A-ZÄÖÜ][a-zäöüß]+(?:straße|strasse|gasse|weg|platz|allee)\s+\d+[a-z]?\b", re.IGNORECASE),
            3,
        ),
        PatternDef(
            EntityType.ADDRESS,
            re.compile(
                r"\b(?:rue|avenue|boulevard|chemin|place|allée)\s+(?:de\s+(?:la\s+)?|du\s+|des\s+)?"
                r"[A-ZÀ-Ÿ][a-zà-ÿ]+(?:[\s-][A-Za-zà-ÿ]+)*\s+\d+[a-z]?\b",
                re.IGNORECASE,
            ),
            3,
        ),

        # === Priority 4: dates ===
        PatternDef(
            EntityType.DATE,
            re.compile(r"\b(?:0?[1-9]|[12]\d|3[01])[\s./-](?:0?[1-9]|1[0-2])[\s./-](?:19|20)?\d{2}\b"),
            4,
        ),
        PatternDef(
            EntityType.DATE,
            re.compile(
                r"\b(?:0?[1-9]|[12]\d|3[01])\.?\s*(?:Januar|Februar|März|April|Mai|Juni|Juli|August"
                r"|September|Oktober|November|Dezember)\s*(?:19|20)?\d{2,4}\b",
                re.IGNORECASE,
            ),
            4,
        ),
        PatternDef(
            EntityType.DATE,
            re.compile(
                r"\b(?:0?[1-9]|[12]\d|3[01])\s*(?:janvier|février|mars|avril|mai|juin|juillet|août"
                r"|septembre|octobre|novembre|décembre)\s*(?:19|20)?\d{2,4}\b",
                re.IGNORECASE,
            ),
            4,
        ),

        # === Priority 5: amounts ===
        PatternDef(
            EntityType.AMOUNT,
            re.compile(r"\b(?:CHF|EUR|€|Fr\.?)\s*\d{1,3}(?:['\s.,]\d{3})*(?:[.,]\d{2})?\b", re.IGNORECASE),
            5,
        ),
    ]


def extract_entities_regex(
    text: str,
    patterns: Optional[List[PatternDef]] = None,
) -> List[Entity]:
    """
    Extract entities using the ordered pattern library.

    Args:
        text: Full document text.
        patterns: Pattern definitions. Defaults to build_default_patterns().

    Returns:
        List of Entity objects (source=RULE, confidence=0.7). Matches may
        overlap; the overlap resolver decides between them.
    """
    if patterns is None:
        patterns = build_default_patterns()

    entities: List[Entity] = []

    for pattern_def in sorted(patterns, key=lambda p: p.priority):
        for match in pattern_def.pattern.finditer(text):
            match_text = match.group(0)
            if len(match_text) < MIN_MATCH_LENGTH:
                continue
            entities.append(
                Entity(
                    id=f"rule-{len(entities) + 1}",
                    type=pattern_def.type,
                    text=match_text,
                    start=match.start(),
                    end=match.end(),
                    confidence=DEFAULT_RULE_CONFIDENCE,
                    source=EntitySource.RULE,
                    metadata=EntityMetadata(pattern_priority=pattern_def.priority),
                )
            )

    logger.debug("Rule detection produced %d entities", len(entities))
    return entities
