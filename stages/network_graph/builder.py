# koppla/stages/network_graph/builder.py

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Dict, Any, Tuple

import networkx as nx

from config.settings import GraphConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError, GraphConstructionError
from core.state import AssessmentState
from models.entity import Entity
from models.enums import EntityType, RelationshipType
from models.graph import GraphNode, GraphEdge, NetworkGraph, CentralityEntry
from models.relationship import Relationship

TARGET_GROUP = "target"


def node_from_entity(entity: Entity) -> GraphNode:
    return GraphNode(
        id=entity.id,
        label=entity.name,
        type=entity.type.value,
        roles=tuple(entity.roles),
        aliases=tuple(entity.aliases),
        mention_count=entity.mention_count or 1,
        confidence=entity.confidence,
        sources=(entity.source,) if entity.source else (),
        language=entity.language,
    )


def edge_from_relationship(edge_id: str, relationship: Relationship) -> GraphEdge:
    return GraphEdge(
        id=edge_id,
        source=relationship.source_id,
        target=relationship.target_id,
        source_name=relationship.source_name,
        target_name=relationship.target_name,
        type=relationship.type,
        label=relationship.label,
        confidence=relationship.confidence,
        evidence=tuple(relationship.evidence),
        detection_method=relationship.detection_method,
    )


def merge_edge(existing: GraphEdge, relationship: Relationship) -> GraphEdge:
    """
    Collapse a parallel relationship into an edge: evidence concatenates,
    confidence takes the max, and a co-mention edge takes the more specific type.
    """
    changes: Dict[str, Any] = {
        "evidence": existing.evidence + tuple(relationship.evidence),
        "confidence": max(existing.confidence, relationship.confidence),
    }
    if existing.type == RelationshipType.CO_MENTION and relationship.type.is_specific:
        changes["type"] = relationship.type
        changes["label"] = relationship.label
    return replace(existing, **changes)


def edge_type_breakdown(edges) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for edge in edges:
        counts[edge.type.value] = counts.get(edge.type.value, 0) + 1
    return counts


def with_counts(graph: NetworkGraph, **extra) -> NetworkGraph:
    """Return the graph with node/edge totals (and any extra metadata) refreshed."""
    metadata = dict(graph.metadata)
    metadata.update({
        "total_nodes": len(graph.nodes),
        "total_edges": len(graph.edges),
        "edge_type_breakdown": edge_type_breakdown(graph.edges),
    })
    metadata.update(extra)
    return replace(graph, metadata=metadata)


def add_node(graph: NetworkGraph, entity: Entity) -> NetworkGraph:
    """New snapshot with the entity's node added; unchanged if the id already exists."""
    if graph.get_node(entity.id) is not None:
        return graph
    return with_counts(replace(graph, nodes=graph.nodes + (node_from_entity(entity),)))


def add_edge(graph: NetworkGraph, relationship: Relationship) -> NetworkGraph:
    """New snapshot with the relationship added, merged into any edge on the same pair."""
    existing = graph.get_edge(relationship.source_id, relationship.target_id)
    if existing is None:
        edge = edge_from_relationship(f"edge-{len(graph.edges) + 1}", relationship)
        return with_counts(replace(graph, edges=graph.edges + (edge,)))
    edges = tuple(merge_edge(e, relationship) if e.id == existing.id else e for e in graph.edges)
    return with_counts(replace(graph, edges=edges))


def get_connections(graph: NetworkGraph, node_id: str) -> List[GraphEdge]:
    return [edge for edge in graph.edges if edge.touches(node_id)]


def to_networkx(graph: NetworkGraph) -> nx.Graph:
    """Undirected adjacency view; every edge counts in both directions."""
    view = nx.Graph()
    view.add_nodes_from(node.id for node in graph.nodes)
    view.add_edges_from((edge.source, edge.target) for edge in graph.edges)
    return view


def calculate_centrality(graph: NetworkGraph) -> List[CentralityEntry]:
    """Degree (edges touching each node), highest first; ties keep node order."""
    degrees = dict(to_networkx(graph).degree())
    entries = [CentralityEntry(node_id=node.id, label=node.label, degree=degrees.get(node.id, 0))
               for node in graph.nodes]
    return sorted(entries, key=lambda entry: entry.degree, reverse=True)


class GraphBuilder(BaseStage):
    """Assembles entities and relationships into a subject-centred graph."""

    stage_name = "graph_construction"

    def __init__(self, config: GraphConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, GraphConfig):
            raise ConfigurationError(
                f"Config must be GraphConfig, got {type(config)}",
                config_key="graph",
                stage_name=self.stage_name,
            )

    def subject_node(self, subject: str) -> GraphNode:
        return GraphNode(
            id=self.config.subject_node_id,
            label=subject,
            type=EntityType.ORGANIZATION.value,
            is_target=True,
        )

    def build(self, subject: str, entities: List[Entity], relationships: List[Relationship]) -> NetworkGraph:
        nodes: List[GraphNode] = [self.subject_node(subject)]
        node_ids = {self.config.subject_node_id}
        for entity in entities:
            if entity.id in node_ids:
                self.logger.debug(f"[{self.stage_name}] Skipping duplicate node id {entity.id}")
                continue
            nodes.append(node_from_entity(entity))
            node_ids.add(entity.id)

        edges: Dict[Tuple[str, str], GraphEdge] = {}
        for relationship in relationships:
            if relationship.source_id not in node_ids or relationship.target_id not in node_ids:
                self.logger.debug(
                    f"[{self.stage_name}] Dropping relationship {relationship.source_id}->{relationship.target_id}: unknown endpoint"
                )
                continue
            if relationship.source_id == relationship.target_id:
                raise GraphConstructionError(
                    "Relationship connects a node to itself",
                    node_id=relationship.source_id,
                    stage_name=self.stage_name,
                )
            key = relationship.key
            if key in edges:
                edges[key] = merge_edge(edges[key], relationship)
            else:
                edges[key] = edge_from_relationship(f"edge-{len(edges) + 1}", relationship)

        graph = NetworkGraph(nodes=tuple(nodes), edges=tuple(edges.values()))
        return with_counts(graph, generated_at=datetime.now().isoformat())

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        resolution = self._require(state, "resolution")
        cross_reference = self._require(state, "cross_reference")

        graph = self.build(state.subject_name, resolution.entities, cross_reference.relationships)
        state.graph = graph
        state.centrality = calculate_centrality(graph)

        self._update_stage_status(state, f"Graph built: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
        return {"total_nodes": len(graph.nodes), "total_edges": len(graph.edges)}
