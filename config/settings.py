# koppla/config/settings.py
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, Tuple
import os

from dotenv import load_dotenv

from config.constants import (
    SUBJECT_NODE_ID,
    LEGAL_SUFFIXES,
    CONFIDENCE_TABLE,
    CREDIBILITY_WEIGHTS,
    SEVERITY_MULTIPLIERS,
    DEFAULT_SEVERITY_MULTIPLIER,
    CREDIBLE_WEIGHT_THRESHOLD,
    HOP_DECAY_FACTORS,
    DISTANT_DECAY_FACTOR,
    UNREACHABLE_DECAY_FACTOR,
    PRIMARY_LANGUAGES,
)
from core.exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be numeric, got {value!r}")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


def _check_unit_interval(name: str, value: float):
    if value < 0 or value > 1:
        raise ValueError(f"{name} must be between 0 and 1")


@dataclass
class BaseEngineConfig:
    """Base configuration shared by every assessment stage."""
    logging_level: str = field(default_factory=lambda: os.getenv("KOPPLA_LOG_LEVEL", "INFO"))
    debug_mode: bool = field(default_factory=lambda: _env_bool("KOPPLA_DEBUG"))
    enable_metrics: bool = True
    subject_node_id: str = SUBJECT_NODE_ID

    def __post_init__(self):
        """Perform validation after initialization."""
        if self.logging_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid logging_level: {self.logging_level}. Must be one of {VALID_LOG_LEVELS}")
        self.logging_level = self.logging_level.upper()
        if not self.subject_node_id:
            raise ValueError("subject_node_id must not be empty")


@dataclass
class EntityResolutionConfig(BaseEngineConfig):
    """Configuration specific to the EntityResolver."""
    similarity_threshold: float = field(
        default_factory=lambda: _env_float("KOPPLA_SIMILARITY_THRESHOLD", 0.85)
    )
    min_confidence: float = 0.3
    max_entities_per_text: int = 50
    role_proximity_chars: int = 100
    default_confidence: float = 0.3
    seed_confidence: float = 1.0
    mention_context_radius: int = 50
    max_mention_contexts: int = 3
    min_name_length: int = 3
    legal_suffixes: Tuple[str, ...] = LEGAL_SUFFIXES
    confidence_table: Dict[str, float] = field(default_factory=lambda: dict(CONFIDENCE_TABLE))

    def __post_init__(self):
        super().__post_init__()
        _check_unit_interval("similarity_threshold", self.similarity_threshold)
        _check_unit_interval("min_confidence", self.min_confidence)
        _check_unit_interval("default_confidence", self.default_confidence)
        _check_unit_interval("seed_confidence", self.seed_confidence)
        if self.max_entities_per_text < 1:
            raise ValueError("max_entities_per_text must be at least 1")
        if self.role_proximity_chars < 1:
            raise ValueError("role_proximity_chars must be at least 1")
        missing = set(CONFIDENCE_TABLE) - set(self.confidence_table)
        if missing:
            raise ValueError(f"confidence_table is missing keys: {sorted(missing)}")
        for key, value in self.confidence_table.items():
            _check_unit_interval(f"confidence_table[{key}]", value)


@dataclass
class RelationshipDetectionConfig(BaseEngineConfig):
    """Configuration specific to the RelationshipDetector."""
    co_mention_window_chars: int = field(default_factory=lambda: _env_int("KOPPLA_CO_MENTION_WINDOW", 200))
    min_co_mentions: int = 2
    proximity_window_words: int = 30
    anomaly_threshold_multiplier: float = 3.0
    anomaly_high_multiplier: float = 5.0
    anomaly_min_mentions: int = 3
    base_confidence: float = 0.3
    # Checked from the largest count down; the first match applies
    count_boosts: Dict[int, float] = field(default_factory=lambda: {5: 0.3, 3: 0.2, 2: 0.1})
    specific_type_boost: float = 0.2
    role_link_default_confidence: float = 0.3
    sanctions_link_confidence: float = 0.9
    context_padding_chars: int = 20
    max_contexts: int = 3

    def __post_init__(self):
        super().__post_init__()
        if self.co_mention_window_chars < 1:
            raise ValueError("co_mention_window_chars must be at least 1")
        if self.min_co_mentions < 1:
            raise ValueError("min_co_mentions must be at least 1")
        if self.anomaly_high_multiplier < self.anomaly_threshold_multiplier:
            raise ValueError("anomaly_high_multiplier must not be below anomaly_threshold_multiplier")
        _check_unit_interval("base_confidence", self.base_confidence)
        _check_unit_interval("sanctions_link_confidence", self.sanctions_link_confidence)
        _check_unit_interval("role_link_default_confidence", self.role_link_default_confidence)


@dataclass
class GraphConfig(BaseEngineConfig):
    """Configuration for graph construction and distance decay."""
    hop_decay_factors: Dict[int, float] = field(default_factory=lambda: dict(HOP_DECAY_FACTORS))
    distant_decay_factor: float = DISTANT_DECAY_FACTOR
    unreachable_decay_factor: float = UNREACHABLE_DECAY_FACTOR

    def __post_init__(self):
        super().__post_init__()
        if 0 not in self.hop_decay_factors:
            raise ValueError("hop_decay_factors must define hop 0")
        hops = sorted(self.hop_decay_factors)
        if hops != list(range(len(hops))):
            raise ValueError("hop_decay_factors must cover consecutive hops starting at 0")
        factors = [self.hop_decay_factors[hop] for hop in hops] + [
            self.distant_decay_factor,
            self.unreachable_decay_factor,
        ]
        for factor in factors:
            _check_unit_interval("decay factor", factor)
        if any(later > earlier for earlier, later in zip(factors, factors[1:])):
            raise ValueError("decay factors must not increase with hop distance")


@dataclass
class ScoringConfig(BaseEngineConfig):
    """Configuration for the EvidenceScorer."""
    credibility_weights: Dict[str, float] = field(default_factory=lambda: dict(CREDIBILITY_WEIGHTS))
    severity_multipliers: Dict[str, float] = field(default_factory=lambda: dict(SEVERITY_MULTIPLIERS))
    default_severity_multiplier: float = DEFAULT_SEVERITY_MULTIPLIER
    credible_weight_threshold: float = CREDIBLE_WEIGHT_THRESHOLD

    def __post_init__(self):
        super().__post_init__()
        if "unknown" not in self.credibility_weights:
            raise ValueError("credibility_weights must define an 'unknown' weight")
        if any(weight <= 0 for weight in self.credibility_weights.values()):
            raise ValueError("credibility weights must be positive")
        if any(multiplier < 0 for multiplier in self.severity_multipliers.values()):
            raise ValueError("severity multipliers must not be negative")


@dataclass
class FlagDecisionConfig(BaseEngineConfig):
    """Configuration for the FlagDecisionEngine."""
    min_credible_sources: int = field(default_factory=lambda: _env_int("KOPPLA_MIN_CREDIBLE_SOURCES", 3))
    min_yellow_indicators: int = 2
    high_confidence_label: str = "high"

    def __post_init__(self):
        super().__post_init__()
        if self.min_credible_sources < 1:
            raise ValueError("min_credible_sources must be at least 1")
        if self.min_yellow_indicators < 1:
            raise ValueError("min_yellow_indicators must be at least 1")


@dataclass
class HypothesisConfig(BaseEngineConfig):
    """Configuration for the HypothesisGenerator."""
    min_confidence: float = 0.2
    organizational_base: float = 0.5
    organizational_factor: float = 0.3
    organizational_cap: float = 0.9
    financial_base: float = 0.4
    financial_factor: float = 0.3
    financial_cap: float = 0.85
    cross_list_confidence: float = 0.8
    spike_high_confidence: float = 0.6
    spike_other_confidence: float = 0.4
    anomaly_default_confidence: float = 0.3
    high_label_threshold: float = 0.8
    medium_label_threshold: float = 0.5
    # Supporting-evidence count -> boost, checked from the largest count down
    sanctions_evidence_boosts: Dict[int, float] = field(default_factory=lambda: {3: 0.3, 2: 0.2, 1: 0.1})

    def __post_init__(self):
        super().__post_init__()
        _check_unit_interval("min_confidence", self.min_confidence)
        if self.medium_label_threshold > self.high_label_threshold:
            raise ValueError("medium_label_threshold must not exceed high_label_threshold")


@dataclass
class SuggestionConfig(BaseEngineConfig):
    """Configuration for the SuggestionEngine."""
    missing_role_min_confidence: float = 0.5
    unexplored_min_mentions: int = 3
    low_confidence_threshold: float = 0.5
    description_preview_chars: int = 80
    near_threshold_distance: int = 1
    primary_languages: Tuple[str, ...] = PRIMARY_LANGUAGES

    def __post_init__(self):
        super().__post_init__()
        if self.unexplored_min_mentions < 1:
            raise ValueError("unexplored_min_mentions must be at least 1")
        if self.description_preview_chars < 10:
            raise ValueError("description_preview_chars must be at least 10")


@dataclass
class AssessmentConfig(BaseEngineConfig):
    """Aggregate configuration: one instance per stage."""
    entity_resolution: Optional[EntityResolutionConfig] = None
    relationship_detection: Optional[RelationshipDetectionConfig] = None
    graph: Optional[GraphConfig] = None
    scoring: Optional[ScoringConfig] = None
    flag_decision: Optional[FlagDecisionConfig] = None
    hypotheses: Optional[HypothesisConfig] = None
    suggestions: Optional[SuggestionConfig] = None

    def __post_init__(self):
        super().__post_init__()
        self.entity_resolution = self.entity_resolution or self.build_stage_config(EntityResolutionConfig)
        self.relationship_detection = self.relationship_detection or self.build_stage_config(RelationshipDetectionConfig)
        self.graph = self.graph or self.build_stage_config(GraphConfig)
        self.scoring = self.scoring or self.build_stage_config(ScoringConfig)
        self.flag_decision = self.flag_decision or self.build_stage_config(FlagDecisionConfig)
        self.hypotheses = self.hypotheses or self.build_stage_config(HypothesisConfig)
        self.suggestions = self.suggestions or self.build_stage_config(SuggestionConfig)

    def base_fields(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(BaseEngineConfig)}

    def build_stage_config(self, config_class: type, **overrides):
        """Create a stage config that inherits this config's base fields."""
        kwargs = self.base_fields()
        kwargs.update(overrides)
        return config_class(**kwargs)


def load_config(env_file: Optional[str] = None, **overrides) -> AssessmentConfig:
    """Load .env (if present) and build a validated AssessmentConfig."""
    load_dotenv(env_file) if env_file else load_dotenv()
    try:
        return AssessmentConfig(**overrides)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
