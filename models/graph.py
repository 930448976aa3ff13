# koppla/models/graph.py
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, List, Dict, Any, Tuple, Mapping

from models.enums import RelationshipType, DetectionMethod
from models.relationship import RelationshipEvidence, pair_key

# Serialized form of an unreachable hop distance
UNREACHABLE_HOP = -1


@dataclass(frozen=True)
class GraphNode:
    """
    A graph view of an entity (or of the subject organization).
    hop_distance/decay_factor stay None until distance decay has run;
    after decay a None hop_distance means the node is unreachable.
    """
    id: str
    label: str
    type: str
    is_target: bool = False
    roles: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    mention_count: int = 0
    confidence: float = 0.0
    sources: Tuple[str, ...] = ()
    language: str = "en"
    hop_distance: Optional[int] = None
    decay_factor: Optional[float] = None

    @property
    def is_reachable(self) -> bool:
        return self.hop_distance is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "is_target": self.is_target,
            "metadata": {
                "roles": list(self.roles),
                "aliases": list(self.aliases),
                "mention_count": self.mention_count,
                "confidence": self.confidence,
                "sources": list(self.sources),
                "language": self.language,
            },
        }
        if self.decay_factor is not None:
            data["metadata"]["hop_distance"] = (
                self.hop_distance if self.hop_distance is not None else UNREACHABLE_HOP
            )
            data["metadata"]["decay_factor"] = self.decay_factor
        return data


@dataclass(frozen=True)
class GraphEdge:
    """One undirected edge; source/target order is the first relationship's order."""
    id: str
    source: str
    target: str
    source_name: str
    target_name: str
    type: RelationshipType = RelationshipType.CO_MENTION
    label: str = ""
    confidence: float = 0.3
    evidence: Tuple[RelationshipEvidence, ...] = ()
    detection_method: DetectionMethod = DetectionMethod.UNKNOWN
    adjusted_confidence: Optional[float] = None
    decay_factor: Optional[float] = None
    max_hop_distance: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str]:
        return pair_key(self.source, self.target)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def other_end(self, node_id: str) -> str:
        return self.target if self.source == node_id else self.source

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "from": self.source,
            "to": self.target,
            "from_name": self.source_name,
            "to_name": self.target_name,
            "type": self.type.value,
            "label": self.label,
            "confidence": self.confidence,
            "evidence": [e.to_dict() for e in self.evidence],
            "detected_via": self.detection_method.value,
        }
        if self.adjusted_confidence is not None:
            data["original_confidence"] = self.confidence
            data["adjusted_confidence"] = self.adjusted_confidence
            data["hop_decay_applied"] = self.decay_factor
            data["max_hop_distance"] = (
                self.max_hop_distance if self.max_hop_distance is not None else UNREACHABLE_HOP
            )
        return data


@dataclass(frozen=True)
class NetworkGraph:
    """Immutable node/edge snapshot. Decoration produces a new instance."""
    nodes: Tuple[GraphNode, ...] = ()
    edges: Tuple[GraphEdge, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        # Freeze whatever mapping the caller passed in
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, a: str, b: str) -> Optional[GraphEdge]:
        key = pair_key(a, b)
        for edge in self.edges:
            if edge.key == key:
                return edge
        return None

    def edges_of_type(self, relationship_type: RelationshipType) -> List[GraphEdge]:
        return [edge for edge in self.edges if edge.type == relationship_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "graph_metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class CentralityEntry:
    node_id: str
    label: str
    degree: int

    def to_dict(self) -> Dict[str, Any]:
        return {"node_id": self.node_id, "label": self.label, "degree": self.degree}
