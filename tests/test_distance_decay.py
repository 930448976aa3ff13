"""Tests for hop distance and confidence decay."""

import pytest

from config.settings import GraphConfig
from core.exceptions import GraphConstructionError, StateValidationError
from core.state import AssessmentState, StageStatus
from models.enums import EntityType, RelationshipType
from models.graph import NetworkGraph
from models.relationship import Relationship
from stages.network_graph.builder import GraphBuilder
from stages.network_graph.distance_decay import DistanceDecayEngine


def link(source, target, confidence=0.8):
    return Relationship(source_id=source, target_id=target, source_name=source, target_name=target,
                        type=RelationshipType.CO_MENTION, confidence=confidence)


@pytest.fixture
def engine(config, logger):
    return DistanceDecayEngine(config.graph, logger)


@pytest.fixture
def chain_graph(config, logger, make_entity):
    """org-target - e1 - e2 - e3 - e4 - e5, plus an island pair e6 - e7."""
    entities = [make_entity(f"e{i}", f"Person Number{i}") for i in range(1, 8)]
    relationships = [link("org-target", "e1"), link("e1", "e2"), link("e2", "e3"),
                     link("e3", "e4"), link("e4", "e5"), link("e6", "e7", confidence=0.6)]
    return GraphBuilder(config.graph, logger).build("Acme", entities, relationships)


class TestDecayFactor:

    @pytest.mark.parametrize("hops,expected", [
        (0, 1.0), (1, 1.0), (2, 0.5), (3, 0.25), (4, 0.1), (9, 0.1), (None, 0.05),
    ])
    def test_table(self, engine, hops, expected):
        assert engine.decay_factor(hops) == expected

    def test_monotonic(self, engine):
        factors = [engine.decay_factor(h) for h in range(8)] + [engine.decay_factor(None)]
        assert all(later <= earlier for earlier, later in zip(factors, factors[1:]))

    def test_custom_table(self, config, logger):
        custom = DistanceDecayEngine(
            config.build_stage_config(GraphConfig, hop_decay_factors={0: 1.0, 1: 0.8}), logger
        )
        assert custom.decay_factor(1) == 0.8
        assert custom.decay_factor(2) == 0.1


class TestApply:

    def test_hop_distances(self, engine, chain_graph):
        graph = engine.apply(chain_graph)
        hops = {node.id: node.hop_distance for node in graph.nodes}
        assert hops["org-target"] == 0
        assert hops["e1"] == 1
        assert hops["e3"] == 3
        assert hops["e5"] == 5
        assert hops["e6"] is None

    def test_edges_use_farther_endpoint(self, engine, chain_graph):
        graph = engine.apply(chain_graph)
        edge = graph.get_edge("e2", "e3")
        assert edge.max_hop_distance == 3
        assert edge.decay_factor == 0.25
        assert edge.adjusted_confidence == pytest.approx(0.8 * 0.25)
        assert edge.confidence == 0.8

    def test_direct_edge_keeps_confidence(self, engine, chain_graph):
        edge = engine.apply(chain_graph).get_edge("org-target", "e1")
        assert edge.adjusted_confidence == pytest.approx(0.8)

    def test_unreachable_island(self, engine, chain_graph):
        graph = engine.apply(chain_graph)
        island = graph.get_node("e6")
        assert island.decay_factor == 0.05
        assert island.to_dict()["metadata"]["hop_distance"] == -1

        edge = graph.get_edge("e6", "e7")
        assert edge.max_hop_distance is None
        assert edge.adjusted_confidence == pytest.approx(0.6 * 0.05)
        assert edge.to_dict()["max_hop_distance"] == -1

    def test_adjusted_never_exceeds_original(self, engine, chain_graph):
        for edge in engine.apply(chain_graph).edges:
            assert edge.adjusted_confidence <= edge.confidence

    def test_hop_distribution(self, engine, chain_graph):
        distribution = engine.apply(chain_graph).metadata["hop_distribution"]
        assert distribution == {"hop-0": 1, "hop-1": 1, "hop-2": 1, "hop-3": 1,
                                "hop-4": 1, "hop-5": 1, "disconnected": 2}

    def test_input_snapshot_untouched(self, engine, chain_graph):
        engine.apply(chain_graph)
        assert all(node.decay_factor is None for node in chain_graph.nodes)
        assert all(edge.adjusted_confidence is None for edge in chain_graph.edges)

    def test_missing_subject(self, engine):
        with pytest.raises(GraphConstructionError):
            engine.apply(NetworkGraph())

    def test_stage(self, engine, chain_graph):
        state = AssessmentState(graph=chain_graph)
        engine.run(state)
        assert state.graph is not chain_graph
        assert state.stage_results["distance_decay"].status == StageStatus.COMPLETED
        assert state.stage_results["distance_decay"].metrics["hop_distribution"]["disconnected"] == 2

    def test_stage_without_graph_fails(self, engine):
        state = AssessmentState()
        with pytest.raises(StateValidationError):
            engine.run(state)
        assert state.get_failed_stages() == ["distance_decay"]


class TestSubjectOnly:

    def test_lone_subject(self, config, logger):
        graph = GraphBuilder(config.graph, logger).build("Acme", [], [])
        decorated = DistanceDecayEngine(config.graph, logger).apply(graph)
        assert decorated.nodes[0].hop_distance == 0
        assert decorated.metadata["hop_distribution"] == {"hop-0": 1}

    def test_organization_types_are_irrelevant(self, config, logger, make_entity):
        org = make_entity("e1", "Nordic Trading", EntityType.ORGANIZATION)
        graph = GraphBuilder(config.graph, logger).build("Acme", [org], [link("e1", "org-target")])
        assert DistanceDecayEngine(config.graph, logger).apply(graph).get_node("e1").hop_distance == 1
