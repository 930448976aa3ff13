# koppla/models/hypothesis.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any

from models.enums import HypothesisType, ConfidenceLevel


@dataclass(frozen=True)
class SupportingEvidence:
    description: str
    source: str = "analysis"
    relevance: str = "supporting"  # direct | supporting | circumstantial

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "source": self.source, "relevance": self.relevance}


@dataclass
class Hypothesis:
    """A narrative claim about the subject. Only `warnings` changes after creation."""
    id: str
    type: HypothesisType
    description: str
    confidence_score: float
    confidence: ConfidenceLevel
    supporting_evidence: List[SupportingEvidence] = field(default_factory=list)
    related_entities: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    def add_warning(self, warning: str):
        if warning and warning not in self.warnings:
            self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "description": self.description,
            "confidence": self.confidence.value,
            "confidence_score": self.confidence_score,
            "supporting_evidence": [e.to_dict() for e in self.supporting_evidence],
            "related_entities": list(self.related_entities),
            "warnings": list(self.warnings),
            "generated_at": self.generated_at.isoformat(),
        }
