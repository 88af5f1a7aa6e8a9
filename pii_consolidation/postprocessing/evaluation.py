"""
Accuracy Evaluation — precision / recall against a hand-labelled golden list.

Matching is greedy and two-pass:
    1. exact: same normalized type, same case-insensitive trimmed text
    2. fuzzy: same normalized type, span overlap ≥ threshold, measured on the
       shorter of the two spans

Types are normalized before comparison (PERSON ≡ PERSON_NAME, SWISS_ADDRESS ≡
ADDRESS, ...), so a consolidated SWISS_ADDRESS matches a golden ADDRESS.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pii_consolidation.config.constants import (
    CONFIDENCE_TOLERANCE,
    EVALUATION_TYPE_MAP,
    FUZZY_MATCH_THRESHOLD,
)
from pii_consolidation.models.entity import Entity


@dataclass
class EntityMatch:
    detected: Entity
    expected: Optional[Entity]
    match_type: str         # "exact" | "fuzzy" | "none"
    overlap_ratio: float


@dataclass
class TypeMetrics:
    precision: float
    recall: float
    f1: float
    true_positives: int
    false_positives: int
    false_negatives: int


@dataclass
class AccuracyMetrics(TypeMetrics):
    per_entity_type: Dict[str, TypeMetrics] = field(default_factory=dict)


@dataclass
class SnapshotDifference:
    kind: str               # "missing" | "extra" | "mismatch"
    actual: Optional[Entity] = None
    expected: Optional[Entity] = None
    reason: str = ""


def normalize_evaluation_type(entity_type: str) -> str:
    normalized = entity_type.strip().upper()
    return EVALUATION_TYPE_MAP.get(normalized, normalized)


def _type_of(entity: Entity) -> str:
    return normalize_evaluation_type(entity.type.value)


def _text_key(entity: Entity) -> str:
    return entity.text.strip().lower()


def calculate_overlap(a: Entity, b: Entity) -> float:
    """Overlap length divided by the shorter span length (0 when disjoint)."""
    overlap = min(a.end, b.end) - max(a.start, b.start)
    if overlap <= 0:
        return 0.0
    shorter = min(a.span_length(), b.span_length())
    return overlap / shorter if shorter > 0 else 0.0


def match_entities(
    detected: List[Entity],
    expected: List[Entity],
    fuzzy_threshold: float = FUZZY_MATCH_THRESHOLD,
    span_overlap: bool = True,
    require_type_match: bool = True,
) -> List[EntityMatch]:
    """Match detected entities against the golden list (see module docstring)."""
    matched_expected = set()
    matched_detected = set()
    matches: List[EntityMatch] = []

    def type_ok(det: Entity, exp: Entity) -> bool:
        return not require_type_match or _type_of(det) == _type_of(exp)

    # Pass 1: exact text
    for d_index, det in enumerate(detected):
        for e_index, exp in enumerate(expected):
            if e_index in matched_expected or not type_ok(det, exp):
                continue
            if _text_key(det) == _text_key(exp):
                matched_expected.add(e_index)
                matched_detected.add(d_index)
                matches.append(EntityMatch(det, exp, "exact", 1.0))
                break

    # Pass 2: span overlap
    for d_index, det in enumerate(detected):
        if d_index in matched_detected:
            continue

        best_index, best_overlap = None, 0.0
        if span_overlap:
            for e_index, exp in enumerate(expected):
                if e_index in matched_expected or not type_ok(det, exp):
                    continue
                overlap = calculate_overlap(det, exp)
                if overlap >= fuzzy_threshold and overlap > best_overlap:
                    best_index, best_overlap = e_index, overlap

        if best_index is None:
            matches.append(EntityMatch(det, None, "none", 0.0))
        else:
            matched_expected.add(best_index)
            matches.append(EntityMatch(det, expected[best_index], "fuzzy", best_overlap))

    return matches


def _metrics(tp: int, fp: int, fn: int) -> TypeMetrics:
    precision = tp / (tp + fp) if tp + fp > 0 else 0.0
    recall = tp / (tp + fn) if tp + fn > 0 else 0.0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0
    return TypeMetrics(precision, recall, f1, tp, fp, fn)


def _counts(detected: List[Entity], expected: List[Entity], **options) -> TypeMetrics:
    matches = match_entities(detected, expected, **options)
    tp = sum(1 for m in matches if m.match_type != "none")
    fp = len(matches) - tp
    fn = len(expected) - tp
    return _metrics(tp, fp, fn)


def calculate_precision_recall(
    detected: List[Entity],
    expected: List[Entity],
    **options,
) -> AccuracyMetrics:
    """
    Overall and per-type precision, recall and F1.

    Keyword options are forwarded to match_entities().
    """
    overall = _counts(detected, expected, **options)

    per_type: Dict[str, TypeMetrics] = {}
    all_types = sorted({_type_of(e) for e in detected} | {_type_of(e) for e in expected})
    for entity_type in all_types:
        per_type[entity_type] = _counts(
            [e for e in detected if _type_of(e) == entity_type],
            [e for e in expected if _type_of(e) == entity_type],
            **options,
        )

    return AccuracyMetrics(
        precision=overall.precision,
        recall=overall.recall,
        f1=overall.f1,
        true_positives=overall.true_positives,
        false_positives=overall.false_positives,
        false_negatives=overall.false_negatives,
        per_entity_type=per_type,
    )


def compare_with_golden_snapshot(
    actual: List[Entity],
    golden: List[Entity],
    confidence_tolerance: float = CONFIDENCE_TOLERANCE,
) -> List[SnapshotDifference]:
    """
    Compare a run against a golden snapshot.

    Entities are paired by span and normalized type; unpaired golden entities
    are "missing", unpaired actual ones "extra", and pairs whose text or
    confidence (beyond the tolerance) differ are "mismatch".
    """
    differences: List[SnapshotDifference] = []
    remaining = list(range(len(golden)))

    for act in actual:
        pair = next(
            (
                i for i in remaining
                if golden[i].start == act.start
                and golden[i].end == act.end
                and _type_of(golden[i]) == _type_of(act)
            ),
            None,
        )
        if pair is None:
            differences.append(SnapshotDifference("extra", actual=act, reason="not in golden snapshot"))
            continue

        remaining.remove(pair)
        exp = golden[pair]
        if act.text != exp.text:
            differences.append(
                SnapshotDifference("mismatch", act, exp, f"text '{act.text}' != '{exp.text}'")
            )
        elif abs(act.confidence - exp.confidence) > confidence_tolerance:
            differences.append(
                SnapshotDifference(
                    "mismatch",
                    act,
                    exp,
                    f"confidence {act.confidence:.2f} != {exp.confidence:.2f}",
                )
            )

    for i in remaining:
        differences.append(SnapshotDifference("missing", expected=golden[i], reason="not detected"))

    return differences
