# koppla/models/results.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from config.constants import ENGINE_VERSION, EVIDENCE_CATEGORIES
from models.entity import ResolutionResult, CommonNameWarning
from models.evidence import ScoringResult, SanctionsCheck
from models.graph import NetworkGraph, CentralityEntry
from models.hypothesis import Hypothesis
from models.relationship import CrossReferenceResult
from models.suggestion import SuggestionResult
from models.verdict import Verdict


@dataclass
class AssessmentReport:
    """
    The finished assessment handed to the outer surfaces (CLI output, storage, UI).
    Built from the final AssessmentState; every container is present even when empty.
    """
    workflow_id: str
    subject: str
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    verdict: Optional[Verdict] = None
    sanctions: SanctionsCheck = field(default_factory=SanctionsCheck)
    scoring: ScoringResult = field(default_factory=ScoringResult)
    resolution: ResolutionResult = field(default_factory=ResolutionResult)
    cross_reference: CrossReferenceResult = field(default_factory=CrossReferenceResult)
    graph: NetworkGraph = field(default_factory=NetworkGraph)
    centrality: List[CentralityEntry] = field(default_factory=list)
    hypotheses: List[Hypothesis] = field(default_factory=list)
    confidence_warnings: List[CommonNameWarning] = field(default_factory=list)
    suggestions: SuggestionResult = field(default_factory=SuggestionResult)
    logs: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_state(cls, state: Any) -> 'AssessmentReport':
        request = state.request
        return cls(
            workflow_id=state.workflow_id,
            subject=state.subject_name,
            status=state.status.value,
            started_at=state.processing_start_time,
            completed_at=state.processing_end_time,
            verdict=state.verdict,
            sanctions=request.sanctions if request else SanctionsCheck(),
            scoring=state.scoring or ScoringResult(),
            resolution=state.resolution or ResolutionResult(),
            cross_reference=state.cross_reference or CrossReferenceResult(),
            graph=state.graph or NetworkGraph(),
            centrality=list(state.centrality),
            hypotheses=list(state.hypotheses),
            confidence_warnings=list(state.name_warnings),
            suggestions=state.suggestions or SuggestionResult(),
            logs=list(state.logs),
            errors=[entry.to_dict() for entry in state.stage_errors],
        )

    @property
    def flag(self) -> Optional[str]:
        return self.verdict.flag.value if self.verdict else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "subject": self.subject,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "verdict": self.verdict.to_dict() if self.verdict else None,
            "sanctions": self.sanctions.to_dict(),
            "scoring": self.scoring.to_dict(),
            "entities": self.resolution.to_dict(),
            "cross_reference": self.cross_reference.to_dict(),
            "network_graph": self.graph.to_dict(),
            "centrality": [c.to_dict() for c in self.centrality],
            "hypotheses": [h.to_dict() for h in self.hypotheses],
            "confidence_warnings": [w.to_dict() for w in self.confidence_warnings],
            "suggestions": self.suggestions.to_dict(),
            "logs": self.logs,
            "errors": self.errors,
            "metadata": {
                "version": ENGINE_VERSION,
                "evidence_categories": list(EVIDENCE_CATEGORIES),
            },
        }
