# koppla/stages/network_graph/distance_decay.py

import logging
from dataclasses import replace
from typing import Dict, Any, Optional

import networkx as nx

from config.settings import GraphConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError, GraphConstructionError
from core.state import AssessmentState
from models.graph import NetworkGraph
from stages.network_graph.builder import to_networkx, with_counts


class DistanceDecayEngine(BaseStage):
    """
    Hop distance from the subject (breadth-first over undirected edges) and
    confidence attenuation by distance. Each edge is decayed by the factor of
    its more distant endpoint; the original confidence is kept alongside.
    """

    stage_name = "distance_decay"

    def __init__(self, config: GraphConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, GraphConfig):
            raise ConfigurationError(
                f"Config must be GraphConfig, got {type(config)}",
                config_key="graph",
                stage_name=self.stage_name,
            )
        self.graph_config = config

    def decay_factor(self, hops: Optional[int]) -> float:
        """None means unreachable."""
        if hops is None:
            return self.graph_config.unreachable_decay_factor
        return self.graph_config.hop_decay_factors.get(hops, self.graph_config.distant_decay_factor)

    def hop_distances(self, graph: NetworkGraph) -> Dict[str, int]:
        subject_id = self.config.subject_node_id
        if graph.get_node(subject_id) is None:
            raise GraphConstructionError("Graph has no subject node", node_id=subject_id,
                                         stage_name=self.stage_name)
        return nx.single_source_shortest_path_length(to_networkx(graph), subject_id)

    def apply(self, graph: NetworkGraph) -> NetworkGraph:
        """Return a new snapshot with hop distance and decay attached to nodes and edges."""
        distances = self.hop_distances(graph)

        nodes = tuple(
            replace(node, hop_distance=distances.get(node.id), decay_factor=self.decay_factor(distances.get(node.id)))
            for node in graph.nodes
        )

        edges = []
        for edge in graph.edges:
            hop_a = distances.get(edge.source)
            hop_b = distances.get(edge.target)
            # Unreachable dominates; otherwise the farther endpoint decides
            max_hop = None if hop_a is None or hop_b is None else max(hop_a, hop_b)
            factor = self.decay_factor(max_hop)
            edges.append(replace(
                edge,
                adjusted_confidence=edge.confidence * factor,
                decay_factor=factor,
                max_hop_distance=max_hop,
            ))

        hop_distribution: Dict[str, int] = {}
        for node in nodes:
            label = f"hop-{node.hop_distance}" if node.hop_distance is not None else "disconnected"
            hop_distribution[label] = hop_distribution.get(label, 0) + 1

        return with_counts(replace(graph, nodes=nodes, edges=tuple(edges)), hop_distribution=hop_distribution)

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        graph = self._require(state, "graph")
        decorated = self.apply(graph)
        state.graph = decorated

        distribution = decorated.metadata["hop_distribution"]
        unreachable = distribution.get("disconnected", 0)
        self._update_stage_status(state, f"Hop distribution: {distribution}")
        if unreachable:
            self._update_stage_status(state, f"{unreachable} node(s) unreachable from the subject", level="DEBUG")
        return {"hop_distribution": dict(distribution)}
