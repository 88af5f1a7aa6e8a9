"""
Constants used across the consolidation pipeline.
Versioned and pinned for determinism.
"""
from typing import Dict, FrozenSet, List

# =============================================================================
# Entity taxonomy (closed enum values, see models.entity.EntityType)
# =============================================================================
ADDRESS_TYPES: FrozenSet[str] = frozenset({"ADDRESS", "SWISS_ADDRESS", "EU_ADDRESS"})

ADDRESS_COMPONENT_TYPES: FrozenSet[str] = frozenset({
    "STREET_NAME",
    "STREET_NUMBER",
    "POSTAL_CODE",
    "CITY",
    "COUNTRY",
    "REGION",
})

# =============================================================================
# Overlap resolution priorities (higher wins)
# =============================================================================
DEFAULT_ENTITY_PRIORITY: Dict[str, int] = {
    # Specific identifiers
    "SWISS_AVS": 100,
    "IBAN": 95,
    "QR_REFERENCE": 90,
    "VAT_NUMBER": 85,
    # Structured formats
    "EMAIL": 80,
    "PHONE": 75,
    "PAYMENT_REF": 70,
    "INVOICE_NUMBER": 65,
    # Addresses
    "SWISS_ADDRESS": 60,
    "EU_ADDRESS": 58,
    "ADDRESS": 55,
    # Persons / organizations
    "PERSON_NAME": 50,
    "PERSON": 48,
    "ORGANIZATION": 45,
    "VENDOR_NAME": 43,
    # Letter roles
    "SENDER": 40,
    "RECIPIENT": 38,
    "SALUTATION_NAME": 35,
    "SIGNATURE": 33,
    "AUTHOR": 30,
    "PARTY": 28,
    "REFERENCE_LINE": 25,
    "LETTER_DATE": 22,
    # Generic
    "DATE": 20,
    "AMOUNT": 18,
    "LOCATION": 15,
    "UNKNOWN": 0,
}

# =============================================================================
# ML label mapping (BIO prefix stripped before lookup)
# =============================================================================
ML_ENTITY_MAPPING: Dict[str, str] = {
    "PER": "PERSON",
    "PERSON": "PERSON",
    "ORG": "ORGANIZATION",
    "ORGANIZATION": "ORGANIZATION",
    "LOC": "LOCATION",
    "LOCATION": "LOCATION",
    "GPE": "LOCATION",
    "DATE": "DATE",
    "PHONE": "PHONE",
    "EMAIL": "EMAIL",
    "ADDRESS": "ADDRESS",
    "MISC": "UNKNOWN",
}

# =============================================================================
# Detector defaults
# =============================================================================
DEFAULT_RULE_CONFIDENCE: float = 0.7
DEFAULT_NER_CONFIDENCE: float = 0.75
DEFAULT_ML_THRESHOLD: float = 0.3
MIN_MATCH_LENGTH: int = 3

TOKEN_MERGE_MIN_LENGTH: int = 2
TOKEN_MERGE_MAX_GAP: int = 5

# =============================================================================
# Entity linking
# =============================================================================
# Leading titles / salutations stripped by the fuzzy linking strategy.
TITLE_VARIATIONS: Dict[str, List[str]] = {
    "mr": ["mr", "mr.", "herr", "m.", "monsieur", "mister"],
    "mrs": ["mrs", "mrs.", "frau", "mme", "mme.", "madame"],
    "ms": ["ms", "ms.", "fräulein", "mlle", "mademoiselle"],
    "dr": ["dr", "dr.", "doktor", "docteur"],
    "prof": ["prof", "prof.", "professor", "professeur"],
}

TITLE_TOKENS: FrozenSet[str] = frozenset(
    title for variants in TITLE_VARIATIONS.values() for title in variants
)

# =============================================================================
# Address classification
# =============================================================================
SWISS_POSTAL_CODE_PATTERN: str = r"^[1-9]\d{3}$"

SWISS_COUNTRY_NAMES: List[str] = [
    "schweiz",
    "suisse",
    "svizzera",
    "svizra",
    "switzerland",
    "helvetia",
]

SWISS_COUNTRY_CODE: str = "ch"

# =============================================================================
# Address fragment detection
# =============================================================================
# German suffixes close the street name ("Bahnhofstrasse"); French and
# Italian words open it ("Rue de Lausanne", "Via Nassa").
STREET_SUFFIXES: List[str] = [
    "strasse", "straße", "str.", "gasse", "weg", "platz", "allee", "ring", "damm",
]
STREET_PREFIXES: List[str] = [
    "Rue", "Avenue", "Boulevard", "Chemin", "Place", "Route", "Allée", "Impasse", "Quai",
    "Via", "Viale", "Piazza", "Corso",
]

# Recognised without a postal code in front of them.
SWISS_CITY_NAMES: List[str] = [
    "Zürich", "Zurich", "Genève", "Geneva", "Genf", "Basel", "Bâle", "Bern", "Berne",
    "Lausanne", "Winterthur", "Luzern", "Lucerne", "St. Gallen", "Lugano", "Biel",
    "Bienne", "Thun", "Fribourg", "Freiburg", "Neuchâtel", "Sion", "Sitten", "Chur",
    "Montreux", "Zug",
]

COUNTRY_NAMES: List[str] = [
    "Schweiz", "Suisse", "Svizzera", "Switzerland", "Deutschland", "Germany", "Allemagne",
    "France", "Frankreich", "Italia", "Italy", "Italien", "Österreich", "Austria",
    "Liechtenstein", "Belgique", "Belgien", "Belgium", "Niederlande", "Netherlands",
    "Luxembourg", "Luxemburg",
]

# =============================================================================
# Evaluation harness
# =============================================================================
FUZZY_MATCH_THRESHOLD: float = 0.5
CONFIDENCE_TOLERANCE: float = 0.05

EVALUATION_TYPE_MAP: Dict[str, str] = {
    "PERSON": "PERSON_NAME",
    "PER": "PERSON_NAME",
    "PERSON_NAME": "PERSON_NAME",
    "NAME": "PERSON_NAME",
    "ORG": "ORGANIZATION",
    "ORGANIZATION": "ORGANIZATION",
    "COMPANY": "ORGANIZATION",
    "LOC": "LOCATION",
    "LOCATION": "LOCATION",
    "ADDRESS": "ADDRESS",
    "SWISS_ADDRESS": "ADDRESS",
    "EU_ADDRESS": "ADDRESS",
    "PHONE": "PHONE_NUMBER",
    "PHONE_NUMBER": "PHONE_NUMBER",
    "TEL": "PHONE_NUMBER",
    "TELEPHONE": "PHONE_NUMBER",
    "EMAIL": "EMAIL",
    "EMAIL_ADDRESS": "EMAIL",
    "IBAN": "IBAN",
    "BANK_ACCOUNT": "IBAN",
    "SWISS_AVS": "SWISS_AVS",
    "AVS": "SWISS_AVS",
    "AHV": "SWISS_AVS",
    "DATE": "DATE",
    "DATETIME": "DATE",
    "VAT_NUMBER": "SWISS_UID",
    "UID": "SWISS_UID",
    "SWISS_UID": "SWISS_UID",
}
