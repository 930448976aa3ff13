# koppla/core/state.py
from typing import List, Optional, Dict, Any, Set
from dataclasses import dataclass, field, fields
from datetime import datetime
import uuid
from enum import Enum

from core.exceptions import BaseAssessmentException, ErrorSeverity
from core.run_context import RunContext
from models.entity import ResolutionResult, CommonNameWarning
from models.evidence import ScoringResult
from models.graph import NetworkGraph, CentralityEntry
from models.hypothesis import Hypothesis
from models.relationship import CrossReferenceResult
from models.request import AssessmentRequest
from models.suggestion import SuggestionResult
from models.verdict import Verdict


class StageStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessingStatus(Enum):
    INITIALIZED = "initialized"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


def _iso(value: Any) -> Optional[str]:
    # Safe timestamp conversion
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@dataclass
class StageLogEntry:
    stage_name: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    level: str = "INFO"
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "stage_name": self.stage_name,
            "message": self.message,
            "level": self.level,
            "context": self.context,
        }


@dataclass
class StageErrorEntry:
    stage_name: str
    error: BaseAssessmentException
    timestamp: datetime = field(default_factory=datetime.now)
    item_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "stage_name": self.stage_name,
            "error_type": self.error.__class__.__name__,
            "message": self.error.message,
            "severity": getattr(self.error.severity, "value", "unknown"),
            "item_id": self.item_id,
            "context": getattr(self.error, "context", {}),
        }


@dataclass
class StageResult:
    stage_name: str
    status: StageStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    error: Optional[BaseAssessmentException] = None
    metrics: Optional[Dict[str, Any]] = None

    @property
    def execution_time(self) -> Optional[float]:
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def mark_completed(self, metrics: Optional[Dict[str, Any]] = None):
        self.status = StageStatus.COMPLETED
        self.end_time = datetime.now()
        if metrics:
            self.metrics = metrics

    def mark_failed(self, error: BaseAssessmentException):
        self.status = StageStatus.FAILED
        self.end_time = datetime.now()
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "execution_time": self.execution_time,
            "error": self.error.to_dict() if self.error else None,
            "metrics": self.metrics,
        }


@dataclass
class AssessmentState:
    # Core identification
    workflow_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    subject_name: str = ""

    # Overall processing state
    status: ProcessingStatus = ProcessingStatus.INITIALIZED
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    processing_start_time: Optional[datetime] = None
    processing_end_time: Optional[datetime] = None

    # Inputs
    request: Optional[AssessmentRequest] = None
    raw_request: Optional[Dict[str, Any]] = None
    run_context: RunContext = field(default_factory=RunContext)

    # Stage outputs, in pipeline order
    resolution: Optional[ResolutionResult] = None
    name_warnings: List[CommonNameWarning] = field(default_factory=list)
    cross_reference: Optional[CrossReferenceResult] = None
    graph: Optional[NetworkGraph] = None
    centrality: List[CentralityEntry] = field(default_factory=list)
    scoring: Optional[ScoringResult] = None
    hypotheses: List[Hypothesis] = field(default_factory=list)
    verdict: Optional[Verdict] = None
    suggestions: Optional[SuggestionResult] = None

    # Stage execution tracking
    stage_results: Dict[str, StageResult] = field(default_factory=dict)
    execution_order: List[str] = field(default_factory=list)
    current_stage: Optional[str] = None
    completed_stages: Set[str] = field(default_factory=set)

    # Logging and error tracking
    logs: List[str] = field(default_factory=list)
    stage_logs: List[StageLogEntry] = field(default_factory=list)
    stage_errors: List[StageErrorEntry] = field(default_factory=list)

    @classmethod
    def from_workflow_dict(cls, data: Dict[str, Any]) -> 'AssessmentState':
        """Rebuild the state from the langgraph dict (values are kept as-is)."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_workflow_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def start_processing(self):
        """Initialize processing state"""
        self.status = ProcessingStatus.IN_PROGRESS
        self.processing_start_time = datetime.now()
        self.update_timestamp()

    def complete_processing(self, status: ProcessingStatus = ProcessingStatus.COMPLETED):
        """Mark overall processing as complete"""
        self.status = status
        self.processing_end_time = datetime.now()
        self.current_stage = None
        self.update_timestamp()

    def start_stage(self, stage_name: str):
        self.current_stage = stage_name
        self.stage_results[stage_name] = StageResult(
            stage_name=stage_name,
            status=StageStatus.IN_PROGRESS,
            start_time=datetime.now(),
        )
        if stage_name not in self.execution_order:
            self.execution_order.append(stage_name)
        if self.status == ProcessingStatus.INITIALIZED:
            self.start_processing()
        self.update_timestamp()

    def complete_stage(self, stage_name: str, metrics: Optional[Dict[str, Any]] = None):
        if stage_name in self.stage_results:
            self.stage_results[stage_name].mark_completed(metrics)
        self.completed_stages.add(stage_name)
        if self.current_stage == stage_name:
            self.current_stage = None
        self.update_timestamp()

    def fail_stage(self, stage_name: str, error: BaseAssessmentException):
        """Mark stage as failed and record the error"""
        if stage_name not in self.stage_results:
            self.stage_results[stage_name] = StageResult(stage_name, StageStatus.IN_PROGRESS, datetime.now())
        self.stage_results[stage_name].mark_failed(error)
        self.add_error(stage_name, error)
        self.status = ProcessingStatus.FAILED
        self.update_timestamp()

    def is_stage_completed(self, stage_name: str) -> bool:
        return stage_name in self.completed_stages

    def get_failed_stages(self) -> List[str]:
        return [name for name, result in self.stage_results.items()
                if result.status == StageStatus.FAILED]

    def update_timestamp(self):
        self.updated_at = datetime.now()

    def add_log(self, stage_name: str, message: str, level: str = "INFO",
                context: Optional[Dict[str, Any]] = None):
        """Add a log entry from a stage"""
        self.logs.append(f"[{stage_name}] {message}")
        self.stage_logs.append(StageLogEntry(
            stage_name=stage_name,
            message=message,
            level=level,
            context=context or {},
        ))
        self.update_timestamp()

    def add_error(self, stage_name: str, error: BaseAssessmentException, item_id: Optional[str] = None):
        """Add an error entry from a stage"""
        self.stage_errors.append(StageErrorEntry(stage_name=stage_name, error=error, item_id=item_id))
        self.logs.append(f"[{stage_name}] ERROR: {error.message}")
        self.update_timestamp()

    def get_processing_duration(self) -> Optional[float]:
        """Get total processing duration in seconds"""
        if self.processing_start_time is None:
            return None
        end_time = self.processing_end_time or datetime.now()
        return (end_time - self.processing_start_time).total_seconds()

    def has_errors(self) -> bool:
        return len(self.stage_errors) > 0

    def has_critical_errors(self) -> bool:
        return any(entry.error.severity == ErrorSeverity.CRITICAL for entry in self.stage_errors)

    def get_execution_summary(self) -> Dict[str, Any]:
        return {
            "total_stages": len(self.stage_results),
            "completed": len(self.completed_stages),
            "failed": len(self.get_failed_stages()),
            "execution_times": {
                name: result.execution_time
                for name, result in self.stage_results.items()
                if result.execution_time is not None
            },
            "execution_order": self.execution_order.copy(),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert state to dictionary for serialization"""
        return {
            "workflow_id": self.workflow_id,
            "subject_name": self.subject_name,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "processing_start_time": _iso(self.processing_start_time),
            "processing_end_time": _iso(self.processing_end_time),
            "run_context": self.run_context.to_dict(),

            "resolution": self.resolution.to_dict() if self.resolution else None,
            "name_warnings": [w.to_dict() for w in self.name_warnings],
            "cross_reference": self.cross_reference.to_dict() if self.cross_reference else None,
            "graph": self.graph.to_dict() if self.graph else None,
            "centrality": [c.to_dict() for c in self.centrality],
            "scoring": self.scoring.to_dict() if self.scoring else None,
            "hypotheses": [h.to_dict() for h in self.hypotheses],
            "verdict": self.verdict.to_dict() if self.verdict else None,
            "suggestions": self.suggestions.to_dict() if self.suggestions else None,

            "stage_results": {k: v.to_dict() for k, v in self.stage_results.items()},
            "execution_order": self.execution_order,
            "current_stage": self.current_stage,
            "completed_stages": sorted(self.completed_stages),

            "logs": self.logs,
            "stage_logs": [log.to_dict() for log in self.stage_logs],
            "stage_errors": [error.to_dict() for error in self.stage_errors],
        }

    def __str__(self) -> str:
        duration = self.get_processing_duration()
        duration_str = f"{duration:.2f}s" if duration else "N/A"
        flag = self.verdict.flag.value if self.verdict else "none"
        return (f"AssessmentState(subject='{self.subject_name}', "
                f"status={self.status.value}, "
                f"flag={flag}, "
                f"duration={duration_str}, "
                f"stages_completed={len(self.completed_stages)}, "
                f"errors={len(self.stage_errors)})")

    def __repr__(self) -> str:
        return self.__str__()
