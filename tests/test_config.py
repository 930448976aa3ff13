"""Tests for configuration loading and validation."""

import os

import pytest

from config.settings import (
    AssessmentConfig,
    BaseEngineConfig,
    EntityResolutionConfig,
    FlagDecisionConfig,
    GraphConfig,
    RelationshipDetectionConfig,
    load_config,
)
from core.exceptions import ConfigurationError


class TestBaseEngineConfig:

    def test_defaults(self, config):
        assert config.logging_level == "INFO"
        assert config.subject_node_id == "org-target"
        assert config.enable_metrics is True

    def test_log_level_is_uppercased(self):
        assert BaseEngineConfig(logging_level="debug").logging_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            BaseEngineConfig(logging_level="LOUD")

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("KOPPLA_LOG_LEVEL", "WARNING")
        assert BaseEngineConfig().logging_level == "WARNING"


class TestStageConfigs:

    def test_stage_configs_inherit_base_fields(self):
        config = AssessmentConfig(logging_level="DEBUG", subject_node_id="subject")
        assert config.entity_resolution.logging_level == "DEBUG"
        assert config.graph.subject_node_id == "subject"
        assert config.suggestions.subject_node_id == "subject"

    def test_similarity_threshold_must_be_unit_interval(self):
        with pytest.raises(ValueError):
            EntityResolutionConfig(similarity_threshold=1.5)

    def test_confidence_table_needs_every_key(self):
        with pytest.raises(ValueError):
            EntityResolutionConfig(confidence_table={"nlp": 0.75})

    def test_similarity_threshold_from_env(self, monkeypatch):
        monkeypatch.setenv("KOPPLA_SIMILARITY_THRESHOLD", "0.9")
        assert EntityResolutionConfig().similarity_threshold == 0.9

    def test_non_numeric_env_rejected(self, monkeypatch):
        monkeypatch.setenv("KOPPLA_CO_MENTION_WINDOW", "wide")
        with pytest.raises(ValueError):
            RelationshipDetectionConfig()

    def test_decay_factors_must_not_increase(self):
        with pytest.raises(ValueError):
            GraphConfig(hop_decay_factors={0: 1.0, 1: 0.5, 2: 0.9})

    def test_decay_hops_must_be_consecutive(self):
        with pytest.raises(ValueError):
            GraphConfig(hop_decay_factors={0: 1.0, 2: 0.5})

    def test_min_credible_sources_positive(self):
        with pytest.raises(ValueError):
            FlagDecisionConfig(min_credible_sources=0)


class TestLoadConfig:

    def test_load_config_builds_every_stage(self, monkeypatch):
        monkeypatch.delenv("KOPPLA_LOG_LEVEL", raising=False)
        config = load_config()
        assert config.flag_decision.min_yellow_indicators == 2
        assert config.graph.hop_decay_factors[2] == 0.5
        assert config.scoring.credibility_weights["court"] == 10

    def test_invalid_config_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_config(logging_level="LOUD")

    def test_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("KOPPLA_MIN_CREDIBLE_SOURCES", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("KOPPLA_MIN_CREDIBLE_SOURCES=4\n")
        try:
            config = load_config(str(env_file))
            assert config.flag_decision.min_credible_sources == 4
        finally:
            os.environ.pop("KOPPLA_MIN_CREDIBLE_SOURCES", None)
