"""
Tests for FlagDecisionEngine.

Tests cover:
- RED precedence and reason order
- YELLOW indicator counting, hypotheses included
- GREY for unverifiable subjects, GREEN otherwise
- Threshold explanations and determinism
"""

import pytest

from core.state import AssessmentState
from models.entity import CommonNameWarning
from models.enums import ConfidenceLevel, FlagColor, FlagSeverity, FrequencyEstimate, HypothesisType
from models.evidence import EvidenceItem, SanctionsCheck
from models.hypothesis import Hypothesis
from models.request import AssessmentRequest
from stages.scoring.evidence_scorer import EvidenceScorer
from stages.scoring.flag_engine import FlagDecisionEngine


@pytest.fixture
def scorer(config, logger):
    return EvidenceScorer(config.scoring, logger)


@pytest.fixture
def engine(config, logger):
    return FlagDecisionEngine(config.flag_decision, logger)


@pytest.fixture
def decide(scorer, engine):
    """Score raw evidence dicts and run the cascade."""
    def _decide(evidence=(), sanctions=None, hypotheses=None, warnings=None):
        scoring = scorer.score_all([EvidenceItem.from_dict(e) for e in evidence])
        check = SanctionsCheck.from_dict(sanctions if sanctions is not None
                                         else {"results": [{"list": "EU"}], "errors": []})
        return engine.assign_flag(check, scoring, hypotheses, warnings)
    return _decide


def evidence(source_type, severity="medium", status=None):
    data = {"sourceType": source_type, "severity": severity, "description": f"{source_type} item"}
    if status:
        data["status"] = status
    return data


def hypothesis(score=0.85, level=ConfidenceLevel.HIGH, description="Director linked to sanctioned firm"):
    return Hypothesis(id="hyp-001", type=HypothesisType.ORGANIZATIONAL_LINK, description=description,
                      confidence_score=score, confidence=level)


# =============================================================================
# RED
# =============================================================================

class TestRed:

    def test_sanctions_match_wins_over_everything(self, decide):
        verdict = decide([], {"sanctioned": True, "results": [], "errors": ["timeout"]})
        assert verdict.flag == FlagColor.RED
        assert verdict.reason == "Organization found on international sanctions list"
        assert verdict.severity == FlagSeverity.CRITICAL

    def test_court_evidence(self, decide):
        verdict = decide([evidence("court", "low")])
        assert verdict.flag == FlagColor.RED
        assert verdict.reason == "Court conviction found against organization"
        assert verdict.details == ["Court conviction(s) found: 1"]

    def test_high_severity_government(self, decide):
        verdict = decide([evidence("government", "high")])
        assert verdict.flag == FlagColor.RED
        assert verdict.reason == "Government ruling found against organization"

    def test_medium_government_is_not_red(self, decide):
        assert decide([evidence("government", "medium")]).flag == FlagColor.GREEN

    def test_credible_source_count(self, decide):
        verdict = decide([evidence("news"), evidence("news"), evidence("ngo")])
        assert verdict.flag == FlagColor.RED
        assert verdict.reason == "3 credible sources report concerns"

    def test_first_met_condition_gives_reason(self, decide):
        verdict = decide([evidence("court"), evidence("government", "high")], {"sanctioned": True})
        assert verdict.reason == "Organization found on international sanctions list"
        assert verdict.details == [
            "Found on international sanctions list",
            "Court conviction(s) found: 1",
            "Government ruling(s) found: 1",
        ]

    def test_red_ignores_hypotheses(self, decide):
        verdict = decide([evidence("court")], hypotheses=[hypothesis(), hypothesis()])
        assert verdict.flag == FlagColor.RED


# =============================================================================
# YELLOW
# =============================================================================

class TestYellow:

    def test_two_indicator_types(self, decide):
        verdict = decide([evidence("news"), evidence("ngo")])
        assert verdict.flag == FlagColor.YELLOW
        assert verdict.reason == "2 types of indicators found"
        assert verdict.details == ["News article(s) found: 1", "NGO report(s) found: 1"]
        assert verdict.severity == FlagSeverity.WARNING

    def test_repeated_type_counts_once(self, decide):
        verdict = decide([evidence("forum"), evidence("forum")])
        assert verdict.flag == FlagColor.GREEN
        assert "Forum mention(s) found: 2" in verdict.details

    def test_pending_status_is_an_indicator(self, decide):
        verdict = decide([evidence("forum"), evidence("social", status="pending")])
        assert verdict.flag == FlagColor.YELLOW
        assert "Pending investigation(s): 1" in verdict.details

    def test_high_confidence_hypothesis_counts(self, decide):
        verdict = decide([evidence("news")], hypotheses=[hypothesis()])
        assert verdict.flag == FlagColor.YELLOW
        assert "High-confidence hypothesis: Director linked to sanctioned firm" in verdict.details

    def test_medium_hypothesis_does_not_count(self, decide):
        verdict = decide([evidence("news")], hypotheses=[hypothesis(0.6, ConfidenceLevel.MEDIUM)])
        assert verdict.flag == FlagColor.GREEN

    def test_threshold_info(self, decide):
        info = decide([evidence("news"), evidence("ngo")]).threshold_info
        assert info.current_flag == FlagColor.YELLOW
        assert info.yellow_indicators == 2
        assert info.credible_source_gap == 1
        assert info.what_would_change == [
            "1 more credible source(s)",
            "Any sanctions-list match",
            "Any court evidence",
            "Any high-severity government evidence",
        ]
        assert info.red_conditions_met == []


# =============================================================================
# GREY AND GREEN
# =============================================================================

class TestGreyAndGreen:

    def test_all_sanctions_checks_failed(self, decide):
        verdict = decide([], {"results": [{"list": "EU", "error": "timeout"}], "errors": ["EU timeout"]})
        assert verdict.flag == FlagColor.GREY
        assert verdict.reason.startswith("Insufficient data")
        assert verdict.details == ["1 out of 1 sanctions checks failed"]
        assert verdict.severity == FlagSeverity.UNKNOWN

    def test_no_checks_and_no_evidence(self, decide):
        assert decide([], {}).flag == FlagColor.GREY

    def test_evidence_prevents_grey(self, decide):
        verdict = decide([evidence("forum")], {"results": [], "errors": ["timeout"]})
        assert verdict.flag == FlagColor.GREEN
        assert "Only 1 indicator found (below yellow threshold)" in verdict.details

    def test_clean_subject(self, decide):
        verdict = decide([], {"results": [{"list": "EU"}, {"list": "UN"}], "errors": ["OFAC timeout"]})
        assert verdict.flag == FlagColor.GREEN
        assert verdict.details == ["All available sources checked: no issues detected"]
        assert verdict.severity == FlagSeverity.NONE

    def test_green_threshold_info(self, decide):
        info = decide([evidence("news")]).threshold_info
        assert info.distance_to_yellow == 1
        assert info.credible_source_gap == 2
        assert info.distance_down == "Already at the lowest risk tier"

    def test_grey_threshold_info(self, decide):
        info = decide([], {"errors": ["down"]}).threshold_info
        assert info.what_would_change == [
            "Re-evaluate once sanctions sources are reachable or evidence is available"
        ]


# =============================================================================
# GENERAL
# =============================================================================

class TestGeneral:

    def test_deterministic(self, decide):
        inputs = [evidence("news"), evidence("forum"), evidence("social", status="pending")]
        assert decide(inputs).to_dict() == decide(inputs).to_dict()

    def test_common_name_warnings_are_reported(self, decide):
        warning = CommonNameWarning("e1", "Ahmed Al-Rashid", "common", FrequencyEstimate.VERY_HIGH, "verify")
        verdict = decide([evidence("news"), evidence("ngo")], warnings=[warning])
        assert verdict.flag == FlagColor.YELLOW
        assert verdict.details[-1] == "1 common-name warning(s): identity matches need secondary identifiers"

    def test_red_threshold_info(self, decide):
        info = decide([evidence("court")]).threshold_info
        assert info.distance_to_red.startswith("Already RED")
        assert info.red_conditions_met == ["court evidence"]
        assert info.what_would_change == ["Disproving: court evidence"]

    def test_stage(self, scorer, engine, sample_request):
        state = AssessmentState(request=AssessmentRequest.from_dict(sample_request))
        scorer.run(state)
        engine.run(state)
        assert state.verdict.flag == FlagColor.YELLOW
        assert state.stage_results["flag_decision"].metrics["flag"] == "YELLOW"
