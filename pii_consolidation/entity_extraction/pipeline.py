"""
Entity Extraction Pipeline — produces the raw entity list for consolidation.

Pipeline:
    1. RegEx pattern library (confidence 0.7)
    2. Address fragments (street, number, postal code, city, country);
       whole-address pattern matches they overlap are dropped
    3. ML: token-level BIO predictions and/or a spaCy pipeline
    4. Detector merge (identical ML + RULE spans → BOTH)

The result may still overlap and be fragmented; cleaning it up is
the job of postprocessing.pipeline.consolidate().
"""
from typing import List, Optional

from pii_consolidation.entity_extraction.address_components import (
    detect_address_components,
    drop_superseded_addresses,
)
from pii_consolidation.entity_extraction.merger import merge_detector_outputs
from pii_consolidation.entity_extraction.ner_extractor import extract_entities_ner
from pii_consolidation.entity_extraction.regex_matcher import PatternDef, extract_entities_regex
from pii_consolidation.entity_extraction.token_merger import ml_entities_from_tokens
from pii_consolidation.models.entity import Entity


def extract_all_entities(
    text: str,
    patterns: Optional[List[PatternDef]] = None,
    nlp_model=None,
    ml_tokens: Optional[List[dict]] = None,
    address_components: bool = True,
) -> List[Entity]:
    """
    Full detection pipeline (document-level).

    Args:
        text: Full document text.
        patterns: Pattern library. Defaults to build_default_patterns().
        nlp_model: Pre-loaded spaCy model. Used only when ml_tokens is None;
                   if both are None the lazy-loaded default model is tried.
        ml_tokens: Token-level predictions from a transformer NER model.
        address_components: Emit address fragments for the consolidator
                            instead of whole-address pattern matches.

    Returns:
        Raw (possibly overlapping) list of Entity objects.
    """
    # 1. RegEx
    rule_entities = extract_entities_regex(text, patterns)

    # 2. Address fragments
    if address_components:
        fragments = detect_address_components(text)
        rule_entities = drop_superseded_addresses(rule_entities, fragments) + fragments

    # 3. ML
    if ml_tokens is not None:
        ml_entities = ml_entities_from_tokens(ml_tokens, text)
    else:
        ml_entities = extract_entities_ner(text, nlp_model)

    # 4. Merge
    return merge_detector_outputs(ml_entities, rule_entities)
