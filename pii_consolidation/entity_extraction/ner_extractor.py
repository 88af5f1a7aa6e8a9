"""
spaCy NER Entity Extractor.

Adapts a spaCy pipeline to ML entities; labels are mapped through
normalize_ml_label so the consolidation core only ever sees the closed taxonomy.
"""
import logging
from typing import List

from pii_consolidation.config.constants import DEFAULT_NER_CONFIDENCE
from pii_consolidation.config.settings import SPACY_MODEL
from pii_consolidation.entity_extraction.label_normalizer import normalize_ml_label
from pii_consolidation.models.entity import Entity, EntitySource

logger = logging.getLogger(__name__)

# Lazy-loaded spaCy model
_nlp_model = None


def _get_nlp_model():
    """Lazy-load spaCy model to avoid import-time cost."""
    global _nlp_model
    if _nlp_model is None:
        try:
            import spacy  # type: ignore[import-untyped]
            _nlp_model = spacy.load(SPACY_MODEL)
            logger.info("Loaded spaCy model: %s", SPACY_MODEL)
        except (OSError, ImportError):
            logger.warning(
                "spaCy model '%s' not found. "
                "Install with: pip install '.[ner]' && python -m spacy download %s",
                SPACY_MODEL,
                SPACY_MODEL,
            )
            _nlp_model = None
    return _nlp_model


def extract_entities_ner(text: str, nlp_model=None) -> List[Entity]:
    """
    Extract entities using spaCy NER.

    Args:
        text: Full document text.
        nlp_model: Optional pre-loaded spaCy model. If None, loads default.

    Returns:
        List of Entity objects (source=ML, confidence=0.75).
    """
    if nlp_model is None:
        nlp_model = _get_nlp_model()

    if nlp_model is None:
        logger.warning("No NER model available, returning empty entities")
        return []

    doc = nlp_model(text)
    entities: List[Entity] = []

    for ent in doc.ents:
        entity_type = normalize_ml_label(ent.label_)
        if entity_type is None:
            continue
        entities.append(
            Entity(
                id=f"ner-{len(entities) + 1}",
                type=entity_type,
                text=ent.text,
                start=ent.start_char,
                end=ent.end_char,
                source=EntitySource.ML,
                confidence=DEFAULT_NER_CONFIDENCE,
            )
        )

    return entities
