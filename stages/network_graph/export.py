# koppla/stages/network_graph/export.py

from typing import List, Dict, Any

from config.constants import EDGE_COLORS
from models.enums import EntityType, RelationshipType
from models.graph import NetworkGraph, GraphNode, GraphEdge

DEFAULT_EDGE_COLOR = {"color": "#999", "highlight": "#666"}


def _node_group(node: GraphNode) -> str:
    if node.is_target:
        return "target"
    return node.type


def _node_tooltip(node: GraphNode) -> str:
    lines = [node.label]
    if node.roles:
        lines.append(f"Roles: {', '.join(node.roles)}")
    if node.aliases:
        lines.append(f"Also known as: {', '.join(node.aliases)}")
    if not node.is_target:
        lines.append(f"Mentions: {node.mention_count}")
        lines.append(f"Confidence: {round(node.confidence * 100)}%")
    if node.decay_factor is not None:
        hops = node.hop_distance if node.hop_distance is not None else "unreachable"
        lines.append(f"Hops from subject: {hops}")
    return "\n".join(lines)


def _edge_tooltip(edge: GraphEdge) -> str:
    lines = [
        f"Type: {edge.type.value}",
        f"Confidence: {round(edge.confidence * 100)}%",
    ]
    if edge.adjusted_confidence is not None:
        lines.append(f"Adjusted confidence: {round(edge.adjusted_confidence * 100)}%")
    if edge.evidence:
        lines.append(f"Evidence: {edge.evidence[0].description}")
    return "\n".join(lines)


def export_node(node: GraphNode) -> Dict[str, Any]:
    is_person = node.type == EntityType.PERSON.value
    return {
        "id": node.id,
        "label": node.label,
        "group": _node_group(node),
        "shape": "dot" if is_person else "diamond",
        "size": 30 if node.is_target else 15 + node.mention_count * 2,
        "title": _node_tooltip(node),
        "font": {"size": 16 if node.is_target else 12},
    }


def export_edge(edge: GraphEdge) -> Dict[str, Any]:
    return {
        "from": edge.source,
        "to": edge.target,
        "label": edge.label,
        "title": _edge_tooltip(edge),
        "width": max(1, edge.confidence * 4),
        "dashes": edge.type == RelationshipType.CO_MENTION,
        "color": dict(EDGE_COLORS.get(edge.type.value, DEFAULT_EDGE_COLOR)),
        "arrows": {"to": {"enabled": False}},
    }


def export_for_visualization(graph: NetworkGraph) -> Dict[str, List[Dict[str, Any]]]:
    """Generic node/edge records with visual attributes for any rendering layer."""
    return {
        "nodes": [export_node(node) for node in graph.nodes],
        "edges": [export_edge(edge) for edge in graph.edges],
    }
