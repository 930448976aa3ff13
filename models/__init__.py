"""Data models for the Koppla assessment engine."""

# Expose all model classes for easier imports
from .enums import (
    EntityType, ExtractionMethod, RelationshipType, DetectionMethod, AnomalyType,
    SourceType, EvidenceStatus, HypothesisType, ConfidenceLevel, FlagColor,
    FlagSeverity, FrequencyEstimate, SuggestionType, Priority,
)
from .entity import (
    RawMention, RoleMention, TextSource, SeedEntity, Entity, ExtractionSummary,
    ResolutionResult, NameCommonalityResult, CommonNameWarning,
)
from .relationship import (
    RelationshipEvidence, Relationship, CoMention, Anomaly, ProximityMatch,
    CrossReferenceResult, pair_key,
)
from .graph import GraphNode, GraphEdge, NetworkGraph, CentralityEntry, UNREACHABLE_HOP
from .evidence import (
    EvidenceItem, ScoredEvidence, CategoryTotal, ScoringResult, SanctionsCheck,
    LanguageProcessingSummary,
)
from .verdict import ThresholdInfo, Verdict
from .hypothesis import SupportingEvidence, Hypothesis
from .suggestion import Suggestion, SuggestionResult
from .request import AssessmentRequest
from .results import AssessmentReport

# Now you can do: from models import Entity, NetworkGraph
