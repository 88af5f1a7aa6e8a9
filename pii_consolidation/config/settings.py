"""
Environment settings loaded from .env file.
"""
import os
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from pii_consolidation.models.consolidation_io import ConsolidationConfig

load_dotenv()


# --- Logging ---
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- NLP Models ---
SPACY_MODEL: str = os.getenv("SPACY_MODEL", "de_core_news_lg")

# --- Metrics ---
METRICS_ENABLED: bool = os.getenv("METRICS_ENABLED", "true").lower() == "true"

# --- Consolidation overrides ---
# Environment variable → ConsolidationConfig field. Unset variables keep the
# built-in defaults.
CONFIG_ENV_VARS: Dict[str, str] = {
    "CONSOLIDATION_ADDRESS_MAX_GAP": "address_max_gap",
    "CONSOLIDATION_ENABLE_ADDRESS": "enable_address_consolidation",
    "CONSOLIDATION_ENABLE_OVERLAP": "enable_overlap_resolution",
    "CONSOLIDATION_ENABLE_LINKING": "enable_entity_linking",
    "CONSOLIDATION_SHOW_COMPONENTS": "show_components",
    "CONSOLIDATION_OVERLAP_STRATEGY": "overlap_strategy",
    "CONSOLIDATION_LINKING_STRATEGY": "linking_strategy",
    "CONSOLIDATION_MIN_CONFIDENCE": "min_consolidation_confidence",
    "CONSOLIDATION_PRESERVE_SPANS": "preserve_original_spans",
    "CONSOLIDATION_MIN_ADDRESS_COMPONENTS": "min_address_components",
}


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> ConsolidationConfig:
    """
    Build a ConsolidationConfig from CONSOLIDATION_* environment variables.

    Values are passed to Pydantic as strings, so "false", "0.6" or "fuzzy"
    are coerced and validated exactly like any other config input.
    """
    if environ is None:
        environ = os.environ

    overrides = {
        field_name: environ[var]
        for var, field_name in CONFIG_ENV_VARS.items()
        if environ.get(var, "") != ""
    }
    return ConsolidationConfig(**overrides)
