"""
Unit tests for entity linking.
Tests: base_type, text normalization, group keys, link_entities.
"""
from pii_consolidation.models.entity import EntityType
from pii_consolidation.postprocessing.entity_linker import (
    base_type,
    entity_group_key,
    fuzzy_normalize_text,
    link_entities,
    normalize_text,
)
from tests.helpers import make_entity


class TestBaseType:

    def test_address_variants_collapse(self):
        assert base_type(EntityType.SWISS_ADDRESS) == "ADDRESS"
        assert base_type(EntityType.EU_ADDRESS) == "ADDRESS"
        assert base_type(EntityType.ADDRESS) == "ADDRESS"

    def test_person_name_collapses(self):
        assert base_type(EntityType.PERSON_NAME) == "PERSON"
        assert base_type(EntityType.PERSON) == "PERSON"

    def test_other_types_unchanged(self):
        assert base_type(EntityType.IBAN) == "IBAN"


class TestNormalization:

    def test_normalize_case_and_whitespace(self):
        assert normalize_text("  Hans   MÜLLER\n") == "hans müller"

    def test_fuzzy_strips_titles(self):
        assert fuzzy_normalize_text("Herr Müller") == "müller"
        assert fuzzy_normalize_text("Herr Dr. Müller") == "müller"
        assert fuzzy_normalize_text("Mme Dupont") == "dupont"

    def test_fuzzy_keeps_lone_title(self):
        assert fuzzy_normalize_text("Herr") == "herr"

    def test_group_key_strategies(self):
        e = make_entity("a", "PERSON_NAME", 0, 11, "Herr  Müller")
        assert entity_group_key(e, "exact") == "PERSON:Herr  Müller"
        assert entity_group_key(e, "normalized") == "PERSON:herr müller"
        assert entity_group_key(e, "fuzzy") == "PERSON:müller"


class TestLinkEntities:

    def test_exact_repeats_share_id(self):
        entities = [
            make_entity("a", "PERSON", 0, 11, "Hans Müller"),
            make_entity("b", "PERSON", 20, 31, "Hans Müller"),
            make_entity("c", "PERSON", 40, 51, "Anna Keller"),
            make_entity("d", "PERSON", 60, 71, "Anna Keller"),
        ]
        linked, count = link_entities(entities, "exact")

        assert count == 2
        assert [e.logical_id for e in linked] == ["PERSON_1", "PERSON_1", "PERSON_2", "PERSON_2"]

    def test_singletons_get_no_id(self):
        entities = [
            make_entity("a", "PERSON", 0, 11, "Hans Müller"),
            make_entity("b", "PERSON", 20, 31, "Hans Müller"),
            make_entity("c", "PERSON", 40, 51, "Anna Keller"),
        ]
        linked, count = link_entities(entities, "exact")
        assert count == 1
        assert linked[2].logical_id is None

    def test_exact_is_case_sensitive(self):
        entities = [
            make_entity("a", "PERSON", 0, 11, "Hans Müller"),
            make_entity("b", "PERSON", 20, 31, "hans müller"),
        ]
        _, count = link_entities(entities, "exact")
        assert count == 0

    def test_normalized_ignores_case(self):
        entities = [
            make_entity("a", "PERSON", 0, 11, "Hans Müller"),
            make_entity("b", "PERSON", 20, 31, "HANS  müller"),
        ]
        linked, count = link_entities(entities, "normalized")
        assert count == 1
        assert linked[0].logical_id == linked[1].logical_id == "PERSON_1"

    def test_fuzzy_strips_titles(self):
        entities = [
            make_entity("a", "PERSON", 0, 11, "Herr Müller"),
            make_entity("b", "PERSON", 20, 26, "Müller"),
        ]
        linked, count = link_entities(entities, "fuzzy")
        assert count == 1
        assert {e.logical_id for e in linked} == {"PERSON_1"}

    def test_types_collapse_to_base_type(self):
        entities = [
            make_entity("a", "PERSON_NAME", 0, 11, "Hans Müller"),
            make_entity("b", "PERSON", 20, 31, "Hans Müller"),
            make_entity("c", "SWISS_ADDRESS", 40, 51, "8001 Zürich"),
            make_entity("d", "ADDRESS", 60, 71, "8001 Zürich"),
        ]
        linked, count = link_entities(entities)
        assert count == 2
        assert [e.logical_id for e in linked] == ["PERSON_1", "PERSON_1", "ADDRESS_1", "ADDRESS_1"]

    def test_same_text_different_base_type_not_linked(self):
        entities = [
            make_entity("a", "PERSON", 0, 6, "Zürich"),
            make_entity("b", "LOCATION", 20, 26, "Zürich"),
        ]
        _, count = link_entities(entities)
        assert count == 0

    def test_numbering_restarts_per_call(self):
        entities = [
            make_entity("a", "PERSON", 0, 4, "Anna"),
            make_entity("b", "PERSON", 10, 14, "Anna"),
        ]
        first, _ = link_entities(entities)
        second, _ = link_entities(entities)
        assert first[0].logical_id == second[0].logical_id == "PERSON_1"

    def test_stale_logical_ids_cleared(self):
        entities = [
            make_entity("a", "PERSON", 0, 4, "Anna", logical_id="PERSON_7"),
            make_entity("b", "PERSON", 10, 13, "Tom", logical_id="PERSON_7"),
        ]
        linked, count = link_entities(entities)
        assert count == 0
        assert all(e.logical_id is None for e in linked)

    def test_input_not_mutated(self):
        entities = [
            make_entity("a", "PERSON", 0, 4, "Anna"),
            make_entity("b", "PERSON", 10, 14, "Anna"),
        ]
        link_entities(entities)
        assert all(e.logical_id is None for e in entities)

    def test_empty(self):
        assert link_entities([]) == ([], 0)
