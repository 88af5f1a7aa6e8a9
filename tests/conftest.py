"""
Shared test fixtures for the consolidation test suite.
"""
import pytest

from pii_consolidation.models.consolidation_io import ConsolidationConfig
from tests.helpers import make_entity


# ==========================================================================
# Sample document
# ==========================================================================

SAMPLE_TEXT = (
    "Herr Hans Müller wohnt an der Bahnhofstrasse 10, 8001 Zürich. "
    "Später kontaktierte Hans Müller erneut."
)


@pytest.fixture
def sample_text():
    return SAMPLE_TEXT


@pytest.fixture
def address_fragments():
    return [
        make_entity("f-street", "STREET_NAME", 30, 44, "Bahnhofstrasse", 0.9),
        make_entity("f-number", "STREET_NUMBER", 45, 47, "10", 0.8),
        make_entity("f-postal", "POSTAL_CODE", 49, 53, "8001", 0.95),
        make_entity("f-city", "CITY", 54, 60, "Zürich", 0.85),
    ]


@pytest.fixture
def person_mentions():
    return [
        make_entity("p-1", "PERSON_NAME", 5, 16, "Hans Müller", 0.92),
        make_entity("p-2", "PERSON_NAME", 82, 93, "Hans Müller", 0.88),
    ]


@pytest.fixture
def sample_entities(address_fragments, person_mentions):
    return person_mentions[:1] + address_fragments + person_mentions[1:]


# ==========================================================================
# Config
# ==========================================================================

@pytest.fixture
def default_config():
    return ConsolidationConfig()


@pytest.fixture
def raw_payload():
    """Detector output in wire form, matching SAMPLE_TEXT."""
    return [
        {
            "id": "p-1",
            "type": "PERSON_NAME",
            "text": "Hans Müller",
            "start": 5,
            "end": 16,
            "confidence": 0.92,
            "source": "ML",
        },
        {
            "id": "f-postal",
            "type": "POSTAL_CODE",
            "text": "8001",
            "start": 49,
            "end": 53,
            "confidence": 0.95,
            "source": "RULE",
            "metadata": {"patternPriority": 3, "reviewNote": "keep me"},
        },
    ]

