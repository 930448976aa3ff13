# koppla/models/enums.py
from enum import Enum
from typing import Optional


class EntityType(Enum):
    """Kind of resolved entity."""
    PERSON = "person"
    ORGANIZATION = "organization"


class ExtractionMethod(Enum):
    """
    How a raw name mention was found upstream.
    NLP is the grammar-aware, higher-trust method; PATTERN is regex matching;
    SEED marks entities supplied by the analyst.
    """
    NLP = "nlp"
    PATTERN = "regex"
    SEED = "seed"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ExtractionMethod"]:
        if value is None:
            return None
        lowered = str(value).strip().lower()
        if lowered in ("pattern", "regex"):
            return cls.PATTERN
        for member in cls:
            if member.value == lowered:
                return member
        return None


class RelationshipType(Enum):
    """
    Typed connection between two graph nodes.
    CO_MENTION is the generic default; every other type counts as more specific.
    """
    ORGANIZATIONAL = "organizational"
    FINANCIAL = "financial"
    EVENT_BASED = "event-based"
    SANCTIONS_LINK = "sanctions-link"
    CO_MENTION = "co-mention"

    @property
    def is_specific(self) -> bool:
        return self is not RelationshipType.CO_MENTION


class DetectionMethod(Enum):
    """Which detector produced a relationship."""
    CO_MENTION = "co-mention"
    ENTITY_EXTRACTION = "entity-extraction"
    SANCTIONS_MATCH = "sanctions-match"
    UNKNOWN = "unknown"


class AnomalyType(Enum):
    FREQUENCY_SPIKE = "frequency-spike"
    CROSS_LIST_PRESENCE = "cross-list-presence"


class SourceType(Enum):
    """Evidence source tiers, ordered roughly by credibility."""
    GOVERNMENT = "government"
    COURT = "court"
    NEWS = "news"
    NGO = "ngo"
    SOCIAL = "social"
    FORUM = "forum"
    UNKNOWN = "unknown"


class EvidenceStatus(Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    UNVERIFIED = "unverified"


class HypothesisType(Enum):
    SANCTIONS_PROXIMITY = "sanctions-proximity"
    ORGANIZATIONAL_LINK = "organizational-link"
    FINANCIAL_TRAIL = "financial-trail"
    PATTERN_ANOMALY = "pattern-anomaly"


class ConfidenceLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FlagColor(Enum):
    """The four verdicts of the decision engine."""
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"
    GREY = "GREY"


class FlagSeverity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    NONE = "none"
    UNKNOWN = "unknown"


class FrequencyEstimate(Enum):
    """How common a personal name is across the curated name sets."""
    LOW = "low"
    HIGH = "high"
    VERY_HIGH = "very-high"
    UNKNOWN = "unknown"


class SuggestionType(Enum):
    SOURCE_ERROR = "source-error"
    MISSING_ROLE = "missing-role"
    NEAR_THRESHOLD = "near-threshold"
    LOW_CONFIDENCE = "low-confidence"
    UNEXPLORED = "unexplored"
    COMMON_NAME = "common-name"
    TRANSLATION_GAP = "translation-gap"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]
