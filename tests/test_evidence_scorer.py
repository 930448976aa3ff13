"""Tests for credibility-weighted evidence scoring."""

import logging

import pytest

from config.settings import ScoringConfig
from core.state import AssessmentState
from models.enums import EvidenceStatus, SourceType
from models.evidence import EvidenceItem
from models.request import AssessmentRequest
from stages.scoring.evidence_scorer import EvidenceScorer


@pytest.fixture
def scorer(config, logger):
    return EvidenceScorer(config.scoring, logger)


def item(source_type="news", severity="medium", category="racism", status=None, **extra):
    data = {"sourceType": source_type, "severity": severity, "category": category,
            "description": f"{source_type} report", **extra}
    if status is not None:
        data["status"] = status
    return EvidenceItem.from_dict(data)


class TestScoreEvidence:

    def test_government_high(self, scorer):
        scored = scorer.score_evidence(item("government", "high"))
        assert scored.credibility_weight == 10
        assert scored.severity_multiplier == 1.0
        assert scored.score == 10

    @pytest.mark.parametrize("source_type,severity,expected", [
        ("court", "low", 4.0),
        ("news", "medium", 4.9),
        ("ngo", "high", 6.0),
        ("social", "medium", 2.8),
        ("forum", "low", 0.8),
    ])
    def test_weights_times_multipliers(self, scorer, source_type, severity, expected):
        assert scorer.score_evidence(item(source_type, severity)).score == pytest.approx(expected)

    def test_unknown_source_type_falls_back(self, scorer, caplog):
        with caplog.at_level(logging.WARNING):
            scored = scorer.score_evidence(item("blog", "high"))
        assert scored.source_type == SourceType.UNKNOWN
        assert scored.score == 1
        assert "Unknown source type 'blog'" in caplog.text

    def test_unknown_severity_uses_default(self, scorer, caplog):
        with caplog.at_level(logging.WARNING):
            scored = scorer.score_evidence(item("news", "catastrophic"))
        assert scored.severity_multiplier == 0.5
        assert scored.score == pytest.approx(3.5)
        assert "Unrecognized severity" in caplog.text

    def test_missing_severity_uses_default(self, scorer):
        scored = scorer.score_evidence(EvidenceItem.from_dict({"sourceType": "court"}))
        assert scored.score == 5.0

    @pytest.mark.parametrize("raw,expected", [
        (None, EvidenceStatus.UNVERIFIED),
        ("Pending", EvidenceStatus.PENDING),
        ("confirmed", EvidenceStatus.CONFIRMED),
        ("rumoured", EvidenceStatus.UNVERIFIED),
    ])
    def test_status(self, scorer, raw, expected):
        assert scorer.score_evidence(item(status=raw)).status == expected

    def test_weight_table_without_a_type(self, config, logger):
        weights = {"court": 10, "unknown": 2}
        narrow = EvidenceScorer(config.build_stage_config(ScoringConfig, credibility_weights=weights), logger)
        scored = narrow.score_evidence(item("news", "high"))
        assert scored.source_type == SourceType.UNKNOWN
        assert scored.score == 2


class TestScoreAll:

    def test_ten_government_items(self, scorer):
        result = scorer.score_all([item("government", "high") for _ in range(10)])
        assert result.overall_score == 100
        assert result.credible_source_count == 10
        assert result.total_items == 10

    def test_categories(self, scorer):
        result = scorer.score_all([
            item("news", "high", "racism"),
            item("ngo", "high", "racism"),
            item("forum", "low", ""),
        ])
        assert set(result.by_category) == {"racism", "uncategorized"}
        assert result.by_category["racism"].count == 2
        assert result.by_category["racism"].total_score == pytest.approx(13.0)
        assert result.by_category["uncategorized"].total_score == pytest.approx(0.8)
        assert result.overall_score == pytest.approx(13.8)

    def test_credible_threshold(self, scorer):
        result = scorer.score_all([item("ngo"), item("social"), item("forum"), item("unknown")])
        assert result.credible_source_count == 1

    def test_empty(self, scorer):
        result = scorer.score_all([])
        assert result.overall_score == 0
        assert result.credible_source_count == 0
        assert result.by_category == {}

    def test_stage(self, scorer, sample_request):
        state = AssessmentState(request=AssessmentRequest.from_dict(sample_request))
        scorer.run(state)
        assert state.scoring.credible_source_count == 2
        assert state.scoring.overall_score == pytest.approx(4.9 + 6.0)
        assert state.stage_results["evidence_scoring"].metrics["total_items"] == 2
