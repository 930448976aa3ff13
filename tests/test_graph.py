"""
Tests for graph construction, snapshot updates, centrality and visual export.
"""

import pytest

from core.exceptions import GraphConstructionError
from core.state import AssessmentState
from models.entity import ResolutionResult
from models.enums import EntityType, RelationshipType
from models.graph import NetworkGraph
from models.relationship import CrossReferenceResult, Relationship, RelationshipEvidence
from stages.network_graph.builder import (
    GraphBuilder,
    add_edge,
    add_node,
    calculate_centrality,
    get_connections,
)
from stages.network_graph.export import export_edge, export_for_visualization, export_node


@pytest.fixture
def builder(config, logger):
    return GraphBuilder(config.graph, logger)


def relationship(source, target, rel_type=RelationshipType.CO_MENTION, confidence=0.4, label="", note="seen"):
    return Relationship(
        source_id=source, target_id=target, source_name=source, target_name=target,
        type=rel_type, label=label, confidence=confidence,
        evidence=[RelationshipEvidence(description=note)],
    )


@pytest.fixture
def entities(make_entity):
    return [
        make_entity("e1", "Ahmed Al-Rashid", roles=["CEO"], confidence=0.9, mention_count=3),
        make_entity("e2", "Nordic Trading", EntityType.ORGANIZATION, confidence=0.5),
        make_entity("e3", "Lena Holm"),
    ]


# =============================================================================
# BUILD
# =============================================================================

class TestBuild:

    def test_subject_node_first(self, builder, entities):
        graph = builder.build("Acme Corp", entities, [])
        subject = graph.nodes[0]
        assert subject.id == "org-target"
        assert subject.is_target
        assert subject.label == "Acme Corp"
        assert graph.metadata["total_nodes"] == 4
        assert graph.metadata["total_edges"] == 0
        assert "generated_at" in graph.metadata

    def test_parallel_relationships_collapse(self, builder, entities):
        graph = builder.build("Acme", entities, [
            relationship("e1", "e2", confidence=0.4, note="first"),
            relationship("e2", "e1", RelationshipType.FINANCIAL, confidence=0.7, label="payment", note="second"),
        ])
        assert len(graph.edges) == 1
        edge = graph.edges[0]
        assert edge.type == RelationshipType.FINANCIAL
        assert edge.label == "payment"
        assert edge.confidence == 0.7
        assert [e.description for e in edge.evidence] == ["first", "second"]

    def test_specific_type_not_downgraded(self, builder, entities):
        graph = builder.build("Acme", entities, [
            relationship("e1", "org-target", RelationshipType.ORGANIZATIONAL, 0.9, "CEO"),
            relationship("e1", "org-target", RelationshipType.CO_MENTION, 0.3),
        ])
        assert graph.edges[0].type == RelationshipType.ORGANIZATIONAL
        assert graph.edges[0].label == "CEO"

    def test_at_most_one_edge_per_pair(self, builder, entities):
        rels = [relationship("e1", "e2"), relationship("e2", "e3"), relationship("e3", "e2"),
                relationship("e1", "e2", RelationshipType.EVENT_BASED), relationship("e1", "org-target")]
        graph = builder.build("Acme", entities, rels)
        keys = [edge.key for edge in graph.edges]
        assert len(keys) == len(set(keys)) == 3

    def test_unknown_endpoint_dropped(self, builder, entities):
        graph = builder.build("Acme", entities, [relationship("e1", "ghost")])
        assert graph.edges == ()

    def test_self_loop_rejected(self, builder, entities):
        with pytest.raises(GraphConstructionError):
            builder.build("Acme", entities, [relationship("e1", "e1")])

    def test_duplicate_entity_ids_skipped(self, builder, make_entity):
        graph = builder.build("Acme", [make_entity("e1", "Lena Holm"), make_entity("e1", "Lena Holm")], [])
        assert len(graph.nodes) == 2

    def test_edge_breakdown(self, builder, entities):
        graph = builder.build("Acme", entities, [
            relationship("e1", "e2", RelationshipType.FINANCIAL),
            relationship("e1", "org-target", RelationshipType.ORGANIZATIONAL),
            relationship("e2", "e3"),
        ])
        assert graph.metadata["edge_type_breakdown"] == {"financial": 1, "organizational": 1, "co-mention": 1}

    def test_stage_sets_graph_and_centrality(self, builder, entities):
        state = AssessmentState(
            subject_name="Acme Corp",
            resolution=ResolutionResult(entities=entities),
            cross_reference=CrossReferenceResult(relationships=[relationship("e1", "org-target")]),
        )
        builder.run(state)
        assert len(state.graph.nodes) == 4
        assert state.centrality[0].degree == 1


# =============================================================================
# SNAPSHOTS
# =============================================================================

class TestSnapshots:

    def test_add_node_returns_new_graph(self, entities):
        empty = NetworkGraph()
        graph = add_node(empty, entities[0])
        assert empty.nodes == ()
        assert graph.node_ids == ["e1"]
        assert graph.metadata["total_nodes"] == 1

    def test_add_node_ignores_existing_id(self, entities):
        graph = add_node(NetworkGraph(), entities[0])
        assert add_node(graph, entities[0]) is graph

    def test_add_edge_merges(self, entities):
        graph = NetworkGraph()
        for entity in entities:
            graph = add_node(graph, entity)
        graph = add_edge(graph, relationship("e1", "e2", confidence=0.3))
        merged = add_edge(graph, relationship("e2", "e1", RelationshipType.FINANCIAL, confidence=0.6))
        assert len(merged.edges) == 1
        assert merged.edges[0].type == RelationshipType.FINANCIAL
        assert graph.edges[0].type == RelationshipType.CO_MENTION

    def test_get_connections(self, builder, entities):
        graph = builder.build("Acme", entities, [relationship("e1", "e2"), relationship("e1", "org-target")])
        assert len(get_connections(graph, "e1")) == 2
        assert len(get_connections(graph, "e3")) == 0


# =============================================================================
# CENTRALITY
# =============================================================================

class TestCentrality:

    def test_degree_sum_is_twice_edge_count(self, builder, entities):
        graph = builder.build("Acme", entities, [
            relationship("e1", "e2"), relationship("e1", "org-target"),
            relationship("e2", "e3"), relationship("e3", "org-target"),
        ])
        entries = calculate_centrality(graph)
        assert sum(entry.degree for entry in entries) == 2 * len(graph.edges)

    def test_sorted_descending(self, builder, entities):
        graph = builder.build("Acme", entities, [
            relationship("e1", "e2"), relationship("e1", "org-target"), relationship("e1", "e3"),
        ])
        entries = calculate_centrality(graph)
        assert entries[0].node_id == "e1"
        assert entries[0].degree == 3
        assert [e.degree for e in entries] == sorted((e.degree for e in entries), reverse=True)

    def test_isolated_nodes_have_zero_degree(self, builder, entities):
        entries = calculate_centrality(builder.build("Acme", entities, []))
        assert all(entry.degree == 0 for entry in entries)


# =============================================================================
# EXPORT
# =============================================================================

class TestExport:

    def test_node_attributes(self, builder, entities):
        graph = builder.build("Acme", entities, [])
        target, ahmed, nordic = (export_node(node) for node in graph.nodes[:3])
        assert target["group"] == "target"
        assert target["size"] == 30
        assert target["font"]["size"] == 16
        assert ahmed["shape"] == "dot"
        assert ahmed["size"] == 21
        assert "Roles: CEO" in ahmed["title"]
        assert nordic["shape"] == "diamond"
        assert nordic["group"] == "organization"

    def test_edge_attributes(self):
        co_mention = export_edge_for(RelationshipType.CO_MENTION, 0.1)
        assert co_mention["dashes"] is True
        assert co_mention["width"] == 1
        assert co_mention["arrows"] == {"to": {"enabled": False}}

        financial = export_edge_for(RelationshipType.FINANCIAL, 0.75)
        assert financial["dashes"] is False
        assert financial["width"] == 3.0
        assert financial["color"]["color"] == "#F44336"

    def test_full_export(self, builder, entities):
        graph = builder.build("Acme", entities, [relationship("e1", "org-target")])
        exported = export_for_visualization(graph)
        assert len(exported["nodes"]) == 4
        assert exported["edges"][0]["from"] == "e1"


def export_edge_for(rel_type, confidence):
    graph = NetworkGraph()
    graph = add_edge(graph, relationship("a", "b", rel_type, confidence))
    return export_edge(graph.edges[0])
