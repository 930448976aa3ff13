# koppla/models/relationship.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

from models.enums import RelationshipType, DetectionMethod, AnomalyType


@dataclass(frozen=True)
class RelationshipEvidence:
    """One snippet backing a relationship."""
    description: str
    source: str = "text analysis"
    context: str = ""
    source_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "source": self.source,
            "context": self.context,
            "source_url": self.source_url,
        }


def pair_key(a: str, b: str) -> Tuple[str, str]:
    """Order-independent key so (A, B) and (B, A) collapse together."""
    return (a, b) if a <= b else (b, a)


@dataclass
class Relationship:
    """An undirected, typed connection between two node ids."""
    source_id: str
    target_id: str
    source_name: str
    target_name: str
    type: RelationshipType = RelationshipType.CO_MENTION
    label: str = ""
    confidence: float = 0.3
    evidence: List[RelationshipEvidence] = field(default_factory=list)
    detection_method: DetectionMethod = DetectionMethod.UNKNOWN

    @property
    def key(self) -> Tuple[str, str]:
        return pair_key(self.source_id, self.target_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source_id,
            "to": self.target_id,
            "from_name": self.source_name,
            "to_name": self.target_name,
            "type": self.type.value,
            "label": self.label,
            "confidence": self.confidence,
            "evidence": [e.to_dict() for e in self.evidence],
            "detected_via": self.detection_method.value,
        }


@dataclass
class CoMention:
    """Two entities found within the co-mention window, aggregated over all sources."""
    entity_a_id: str
    entity_b_id: str
    entity_a_name: str
    entity_b_name: str
    count: int = 0
    contexts: List[str] = field(default_factory=list)
    source: str = "unknown"

    @property
    def context(self) -> str:
        return self.contexts[0] if self.contexts else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_a": {"id": self.entity_a_id, "name": self.entity_a_name},
            "entity_b": {"id": self.entity_b_id, "name": self.entity_b_name},
            "count": self.count,
            "context": self.context,
            "all_contexts": list(self.contexts),
            "source": self.source,
        }


@dataclass
class Anomaly:
    type: AnomalyType
    entity_id: str
    entity_name: str
    description: str
    severity: str = "medium"
    value: Optional[float] = None
    threshold: Optional[float] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "description": self.description,
            "severity": self.severity,
            "value": self.value,
            "threshold": self.threshold,
            "source": self.source,
        }


@dataclass
class ProximityMatch:
    context: str
    distance: int

    def to_dict(self) -> Dict[str, Any]:
        return {"context": self.context, "distance": self.distance}


@dataclass
class CrossReferenceResult:
    """Bundle produced by the RelationshipDetector."""
    relationships: List[Relationship] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    co_mentions: List[CoMention] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, Any]:
        type_counts: Dict[str, int] = {}
        for rel in self.relationships:
            type_counts[rel.type.value] = type_counts.get(rel.type.value, 0) + 1
        return {
            "total_relationships": len(self.relationships),
            "total_anomalies": len(self.anomalies),
            "relationship_types": type_counts,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relationships": [r.to_dict() for r in self.relationships],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "co_mentions": [c.to_dict() for c in self.co_mentions],
            "summary": self.summary,
        }
