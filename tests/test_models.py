"""
Tests for the record types and their boundary validation.

Tests cover:
- Input records rejecting malformed data with typed errors
- Optional fields taking neutral defaults
- Serialized shapes the outer surfaces rely on
"""

import pytest

from core.exceptions import (
    DataFormatError,
    InputValidationError,
    SchemaValidationError,
    create_error_summary,
    ConfigurationError,
)
from core.run_context import RunContext
from models import (
    AssessmentRequest,
    Entity,
    EntityType,
    EvidenceItem,
    ExtractionMethod,
    GraphNode,
    NetworkGraph,
    RawMention,
    RoleMention,
    SanctionsCheck,
    SeedEntity,
    TextSource,
    UNREACHABLE_HOP,
    pair_key,
)


# =============================================================================
# INPUT RECORDS
# =============================================================================

class TestRawMention:

    def test_camel_case_fields(self):
        mention = RawMention.from_dict({"name": " Ahmed ", "type": "person", "extractedBy": "nlp"})
        assert mention.name == "Ahmed"
        assert mention.extracted_by == ExtractionMethod.NLP

    def test_pattern_aliases(self):
        assert RawMention.from_dict({"name": "Acme", "extracted_by": "pattern"}).extracted_by == ExtractionMethod.PATTERN
        assert RawMention.from_dict({"name": "Acme", "extracted_by": "regex"}).extracted_by == ExtractionMethod.PATTERN

    def test_missing_name(self):
        with pytest.raises(InputValidationError):
            RawMention.from_dict({"type": "person"})

    def test_blank_name(self):
        with pytest.raises(InputValidationError):
            RawMention.from_dict({"name": "   "})

    def test_unknown_type(self):
        with pytest.raises(DataFormatError):
            RawMention.from_dict({"name": "Acme", "type": "vessel"})

    def test_not_a_mapping(self):
        with pytest.raises(DataFormatError):
            RawMention.from_dict(["Acme"])

    def test_org_shorthand(self):
        assert RawMention.from_dict({"name": "Acme", "type": "org"}).type == EntityType.ORGANIZATION


class TestRoleMention:

    @pytest.mark.parametrize("index", [-1, "12", 1.5, True])
    def test_bad_offsets(self, index):
        with pytest.raises(DataFormatError):
            RoleMention.from_dict({"role": "CEO", "index": index})

    def test_valid(self):
        assert RoleMention.from_dict({"role": "CEO", "index": 0}).index == 0


class TestTextSource:

    def test_defaults(self):
        source = TextSource.from_dict({"text": "hello"})
        assert source.source == "unknown"
        assert source.mentions == []
        assert source.roles == []

    def test_text_must_be_string(self):
        with pytest.raises(DataFormatError):
            TextSource.from_dict({"text": 42})


class TestSeedEntity:

    def test_from_cli(self):
        seed = SeedEntity.from_cli("Ahmed Al-Rashid, CEO")
        assert seed.name == "Ahmed Al-Rashid"
        assert seed.role == "CEO"
        assert seed.type == EntityType.PERSON

    def test_from_cli_without_role(self):
        assert SeedEntity.from_cli("Ahmed").role is None

    def test_from_cli_needs_name(self):
        with pytest.raises(InputValidationError):
            SeedEntity.from_cli(", CEO")


class TestEntity:

    def test_confidence_out_of_range(self):
        with pytest.raises(DataFormatError):
            Entity.from_dict({"id": "e1", "name": "Ahmed", "confidence": 1.2})

    def test_missing_confidence_defaults(self):
        entity = Entity.from_dict({"id": "e1", "name": "Ahmed"})
        assert entity.confidence == 0.3
        assert entity.roles == []

    def test_alias_never_equals_name(self):
        entity = Entity(id="e1", name="Ahmed", normalized_name="ahmed", type=EntityType.PERSON)
        entity.add_alias("Ahmed")
        entity.add_alias("Ahmad")
        entity.add_alias("Ahmad")
        assert entity.aliases == ["Ahmad"]


class TestEvidenceItem:

    def test_neutral_defaults(self):
        item = EvidenceItem.from_dict({"description": "something"})
        assert item.source_type == "unknown"
        assert item.status == "unverified"
        assert item.matched_name is None

    def test_lowercases_enums(self):
        item = EvidenceItem.from_dict({"sourceType": "COURT", "severity": "High", "matchedName": " Acme "})
        assert item.source_type == "court"
        assert item.severity == "high"
        assert item.matched_name == "Acme"

    def test_matched_name_type(self):
        with pytest.raises(DataFormatError):
            EvidenceItem.from_dict({"matchedName": 5})


class TestSanctionsCheck:

    def test_none_is_empty(self):
        check = SanctionsCheck.from_dict(None)
        assert check.sanctioned is False
        assert check.results == [] and check.errors == []

    def test_lists_required(self):
        with pytest.raises(DataFormatError):
            SanctionsCheck.from_dict({"results": "EU"})


class TestAssessmentRequest:

    def test_minimal(self):
        request = AssessmentRequest.from_dict({"subject": " Acme Corp "})
        assert request.subject == "Acme Corp"
        assert request.texts == [] and request.evidence == []

    def test_legacy_subject_key(self):
        assert AssessmentRequest.from_dict({"orgName": "Acme"}).subject == "Acme"

    def test_missing_subject(self):
        with pytest.raises(InputValidationError) as exc_info:
            AssessmentRequest.from_dict({"texts": []})
        assert exc_info.value.missing_fields == ["subject"]

    def test_not_a_mapping(self):
        with pytest.raises(SchemaValidationError):
            AssessmentRequest.from_dict("Acme")

    def test_list_fields(self):
        with pytest.raises(SchemaValidationError):
            AssessmentRequest.from_dict({"subject": "Acme", "texts": "not a list"})

    def test_nested_error_is_tagged(self):
        with pytest.raises(InputValidationError) as exc_info:
            AssessmentRequest.from_dict({"subject": "Acme", "texts": [{"source": "x"}]})
        assert exc_info.value.stage_name == "request_validation"


# =============================================================================
# GRAPH RECORDS
# =============================================================================

class TestGraphRecords:

    def test_pair_key_is_order_independent(self):
        assert pair_key("b", "a") == pair_key("a", "b") == ("a", "b")

    def test_unreachable_serialization(self):
        node = GraphNode(id="n", label="N", type="person", hop_distance=None, decay_factor=0.05)
        assert node.to_dict()["metadata"]["hop_distance"] == UNREACHABLE_HOP
        assert not node.is_reachable

    def test_undecorated_node_has_no_hop(self):
        assert "hop_distance" not in GraphNode(id="n", label="N", type="person").to_dict()["metadata"]

    def test_metadata_is_read_only(self):
        graph = NetworkGraph(metadata={"total_nodes": 0})
        with pytest.raises(TypeError):
            graph.metadata["total_nodes"] = 5


# =============================================================================
# RUN CONTEXT AND ERRORS
# =============================================================================

class TestRunContext:

    def test_ids_are_run_scoped(self):
        first, second = RunContext(), RunContext()
        assert first.next_entity_id("Ahmed Al-Rashid") == "entity-1-ahmeda"
        assert first.next_entity_id("Acme") == "entity-2-acme"
        assert second.next_entity_id("Acme") == "entity-1-acme"

    def test_padded_ids(self):
        context = RunContext()
        assert context.next_hypothesis_id() == "hyp-001"
        assert context.next_suggestion_id() == "sug-001"
        assert context.next_suggestion_id() == "sug-002"


class TestErrorHelpers:

    def test_error_summary(self):
        summary = create_error_summary([ConfigurationError("a"), InputValidationError("b")])
        assert summary["total_errors"] == 2
        assert summary["error_type_breakdown"] == {"ConfigurationError": 1, "InputValidationError": 1}
        assert summary["has_critical_errors"]

    def test_empty_summary(self):
        assert create_error_summary([]) == {"total_errors": 0, "summary": "No errors"}
