"""
Integration tests — detector output through the full consolidation pass.
"""
import itertools
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from pii_consolidation.entity_extraction.pipeline import extract_all_entities
from pii_consolidation.models.consolidation_io import ConsolidationConfig
from pii_consolidation.models.entity import EntitySource, EntityType
from pii_consolidation.postprocessing.output_builder import build_consolidation_output
from pii_consolidation.postprocessing.pipeline import ConsolidationPass, consolidate
from pii_consolidation.postprocessing.validation import (
    validate_consolidation_output,
    validate_raw_entities,
)
from tests.helpers import make_entity


class TestConsolidationE2E:
    """The reference scenario: one Swiss address, one person mentioned twice."""

    def test_address_and_person_linking(self, sample_text, sample_entities):
        result = consolidate(sample_entities, sample_text)

        addresses = [e for e in result.entities if e.type == EntityType.SWISS_ADDRESS]
        assert len(addresses) == 1
        assert addresses[0].text == "Bahnhofstrasse 10, 8001 Zürich"
        assert (addresses[0].start, addresses[0].end) == (30, 60)

        persons = [e for e in result.entities if e.type == EntityType.PERSON_NAME]
        assert len(persons) == 2
        assert {p.logical_id for p in persons} == {"PERSON_1"}

        assert result.metadata.original_entity_count == 6
        assert result.metadata.overlaps_resolved == 0
        assert result.metadata.addresses_consolidated == 1
        assert result.metadata.entities_linked == 1
        assert result.metadata.duration_ms >= 0

    def test_output_conforms_to_schema(self, sample_text, sample_entities):
        output = build_consolidation_output(consolidate(sample_entities, sample_text))
        check = validate_consolidation_output(output)
        assert check.valid is True, check.errors

    def test_from_wire_payload(self, sample_text, sample_entities):
        payload = [e.to_dict() for e in sample_entities]
        validation = validate_raw_entities(payload, sample_text)
        assert validation.valid is True

        result = consolidate(validation.data, sample_text)
        assert result.metadata.addresses_consolidated == 1

    def test_input_not_mutated(self, sample_text, sample_entities):
        before = [e.to_dict() for e in sample_entities]
        consolidate(sample_entities, sample_text)
        assert [e.to_dict() for e in sample_entities] == before


class TestDetectorToConsolidation:
    """Raw, overlapping detector output is cleaned up end to end."""

    @pytest.fixture
    def ml_tokens(self):
        return [
            {"word": "Hans", "entity": "B-PER", "score": 0.95, "start": 5, "end": 9},
            {"word": "Müller", "entity": "I-PER", "score": 0.9, "start": 10, "end": 16},
            {"word": "Zürich", "entity": "B-LOC", "score": 0.95, "start": 54, "end": 60},
            {"word": "Hans", "entity": "B-PER", "score": 0.9, "start": 82, "end": 86},
            {"word": "Müller", "entity": "I-PER", "score": 0.9, "start": 87, "end": 93},
        ]

    def test_pattern_addresses_without_fragment_detection(self, sample_text, ml_tokens):
        raw = extract_all_entities(sample_text, ml_tokens=ml_tokens, address_components=False)
        result = consolidate(raw, sample_text)

        for a, b in itertools.combinations(result.entities, 2):
            assert not a.overlaps(b)

        assert result.metadata.overlaps_resolved == len(raw) - len(result.entities)
        assert result.metadata.overlaps_resolved == 1

        swiss = [e for e in result.entities if e.type == EntityType.SWISS_ADDRESS]
        assert [e.text for e in swiss] == ["8001 Zürich"]
        assert (54, 60, "LOCATION") in [
            (s.start, s.end, s.type) for s in swiss[0].metadata.original_spans
        ]

        persons = [e for e in result.entities if e.type == EntityType.PERSON]
        assert [p.logical_id for p in persons] == ["PERSON_1", "PERSON_1"]
        assert all(p.source == EntitySource.ML for p in persons)

    def test_detected_fragments_consolidated(self, sample_text, ml_tokens):
        raw = extract_all_entities(sample_text, ml_tokens=ml_tokens)
        assert not [e for e in raw if e.type in (EntityType.ADDRESS, EntityType.SWISS_ADDRESS)]

        result = consolidate(raw, sample_text)

        addresses = [e for e in result.entities if e.type == EntityType.SWISS_ADDRESS]
        assert [(a.text, a.start, a.end) for a in addresses] == [
            ("Bahnhofstrasse 10, 8001 Zürich", 30, 60)
        ]
        assert [c.type for c in addresses[0].components] == [
            "STREET_NAME", "STREET_NUMBER", "POSTAL_CODE", "CITY",
        ]
        assert addresses[0].source == EntitySource.CONSOLIDATED
        assert not any(e.metadata.is_address_component for e in result.entities)

        assert result.metadata.overlaps_resolved == 0
        assert result.metadata.addresses_consolidated == 1

        persons = [e for e in result.entities if e.type == EntityType.PERSON]
        assert [p.logical_id for p in persons] == ["PERSON_1", "PERSON_1"]

        output = build_consolidation_output(result)
        assert validate_consolidation_output(output).valid is True


class TestRunIsolation:

    def test_numbering_independent_between_runs(self):
        first_text = "Anna Anna Tom Tom"
        first = consolidate(
            [
                make_entity("a1", "PERSON", 0, 4, "Anna"),
                make_entity("a2", "PERSON", 5, 9, "Anna"),
                make_entity("t1", "PERSON", 10, 13, "Tom"),
                make_entity("t2", "PERSON", 14, 17, "Tom"),
            ],
            first_text,
        )
        assert [e.logical_id for e in first.entities] == ["PERSON_1", "PERSON_1", "PERSON_2", "PERSON_2"]

        second_text = "Eva Eva"
        second = consolidate(
            [
                make_entity("e1", "PERSON", 0, 3, "Eva"),
                make_entity("e2", "PERSON", 4, 7, "Eva"),
            ],
            second_text,
        )
        assert [e.logical_id for e in second.entities] == ["PERSON_1", "PERSON_1"]

    def test_numbering_independent_between_concurrent_runs(self):
        two_people = [
            make_entity("a1", "PERSON", 0, 4, "Anna"),
            make_entity("a2", "PERSON", 5, 9, "Anna"),
            make_entity("t1", "PERSON", 10, 13, "Tom"),
            make_entity("t2", "PERSON", 14, 17, "Tom"),
        ]
        one_person = [
            make_entity("e1", "PERSON", 0, 3, "Eva"),
            make_entity("e2", "PERSON", 4, 7, "Eva"),
        ]
        person_and_address = [
            make_entity("m1", "PERSON", 0, 3, "Eva"),
            make_entity("m2", "SWISS_ADDRESS", 5, 16, "8001 Zürich"),
            make_entity("m3", "PERSON", 18, 21, "Eva"),
            make_entity("m4", "SWISS_ADDRESS", 23, 34, "8001 Zürich"),
        ]
        documents = [
            (two_people, "Anna Anna Tom Tom", ["PERSON_1", "PERSON_1", "PERSON_2", "PERSON_2"]),
            (one_person, "Eva Eva", ["PERSON_1", "PERSON_1"]),
            (
                person_and_address,
                "Eva, 8001 Zürich. Eva, 8001 Zürich.",
                ["PERSON_1", "ADDRESS_1", "PERSON_1", "ADDRESS_1"],
            ),
        ]

        def run(i):
            entities, text, _ = documents[i % len(documents)]
            return consolidate(entities, text)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(run, range(40)))

        for i, result in enumerate(results):
            expected = documents[i % len(documents)][2]
            assert [e.logical_id for e in result.entities] == expected
            assert result.metadata.entities_linked == len(set(expected))

    def test_same_input_same_output(self, sample_text, sample_entities):
        first = build_consolidation_output(consolidate(sample_entities, sample_text))
        second = build_consolidation_output(consolidate(sample_entities, sample_text))
        first["metadata"].pop("durationMs")
        second["metadata"].pop("durationMs")
        assert first == second


class TestPassToggles:

    def test_all_passes_disabled_returns_input(self, sample_text, sample_entities):
        config = ConsolidationConfig(
            enable_overlap_resolution=False,
            enable_address_consolidation=False,
            enable_entity_linking=False,
            preserve_original_spans=False,
        )
        result = consolidate(sample_entities, sample_text, config)
        assert result.entities == sample_entities
        assert result.metadata.overlaps_resolved == 0
        assert result.metadata.addresses_consolidated == 0
        assert result.metadata.entities_linked == 0

    def test_linking_disabled(self, sample_text, sample_entities):
        config = ConsolidationConfig(enable_entity_linking=False)
        result = consolidate(sample_entities, sample_text, config)
        assert all(e.logical_id is None for e in result.entities)

    def test_empty_input(self, sample_text):
        result = consolidate([], sample_text)
        assert result.entities == []
        assert result.metadata.original_entity_count == 0

    def test_invalid_spans_dropped(self, sample_text, person_mentions):
        broken = make_entity("bad", "PERSON", 90, 500, "Müller erneut...")
        result = consolidate(person_mentions + [broken], sample_text)

        assert "bad" not in [e.id for e in result.entities]
        assert result.metadata.invalid_spans_dropped == 1
        assert result.metadata.original_entity_count == 3


class TestConsolidationPass:

    def test_defaults(self):
        assert ConsolidationPass().get_config() == ConsolidationConfig()

    def test_overrides_by_alias_and_name(self):
        pass_ = ConsolidationPass(linkingStrategy="fuzzy", address_max_gap=10)
        config = pass_.get_config()
        assert config.linking_strategy == "fuzzy"
        assert config.address_max_gap == 10

    def test_configure_merges(self):
        pass_ = ConsolidationPass(showComponents=True)
        pass_.configure(min_address_components=3)
        config = pass_.get_config()
        assert config.show_components is True
        assert config.min_address_components == 3

    def test_invalid_override_raises(self):
        with pytest.raises(ValidationError):
            ConsolidationPass(overlapStrategy="biggest")
        with pytest.raises(ValidationError):
            ConsolidationPass().configure(noSuchOption=True)

    def test_fuzzy_linking_through_pass(self):
        text = "Herr Müller schrieb. Müller rief an."
        entities = [
            make_entity("a", "PERSON", 0, 11, "Herr Müller"),
            make_entity("b", "PERSON", 21, 27, "Müller"),
        ]
        result = ConsolidationPass(linking_strategy="fuzzy").consolidate(entities, text)
        assert [e.logical_id for e in result.entities] == ["PERSON_1", "PERSON_1"]

    def test_show_components_through_pass(self, sample_text, sample_entities):
        result = ConsolidationPass(show_components=True).consolidate(sample_entities, sample_text)
        fragments = [e for e in result.entities if e.type == EntityType.CITY]
        assert fragments[0].metadata.linked_to_address is True
