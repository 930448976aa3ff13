# koppla/stages/scoring/flag_engine.py

import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Optional

from config.settings import FlagDecisionConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError
from core.state import AssessmentState
from models.entity import CommonNameWarning
from models.enums import FlagColor, FlagSeverity, SourceType, EvidenceStatus
from models.evidence import ScoringResult, SanctionsCheck
from models.hypothesis import Hypothesis
from models.verdict import Verdict, ThresholdInfo


@dataclass
class RedCondition:
    name: str
    met: bool
    reason: str
    detail: str


class FlagDecisionEngine(BaseStage):
    """
    Fixed-priority rule cascade producing exactly one verdict:

        RED    - sanctions match, court evidence, high-severity government
                 evidence, or enough credible sources
        YELLOW - at least two indicator types (news, NGO, forum, pending
                 status, each high-confidence hypothesis)
        GREY   - nothing to go on: no evidence and every sanctions check failed
        GREEN  - everything else

    The first RED condition in that order gives the reason; every met
    condition is listed in the details.
    """

    stage_name = "flag_decision"

    def __init__(self, config: FlagDecisionConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, FlagDecisionConfig):
            raise ConfigurationError(
                f"Config must be FlagDecisionConfig, got {type(config)}",
                config_key="flag_decision",
                stage_name=self.stage_name,
            )
        self.flag_config = config

    def red_conditions(self, sanctions: SanctionsCheck, scoring: ScoringResult) -> List[RedCondition]:
        court = scoring.of_source_type(SourceType.COURT)
        government = [e for e in scoring.of_source_type(SourceType.GOVERNMENT) if e.severity == "high"]
        credible = scoring.credible_source_count
        min_credible = self.flag_config.min_credible_sources
        return [
            RedCondition(
                name="sanctions-list match",
                met=sanctions.sanctioned,
                reason="Organization found on international sanctions list",
                detail="Found on international sanctions list",
            ),
            RedCondition(
                name="court evidence",
                met=bool(court),
                reason="Court conviction found against organization",
                detail=f"Court conviction(s) found: {len(court)}",
            ),
            RedCondition(
                name="high-severity government evidence",
                met=bool(government),
                reason="Government ruling found against organization",
                detail=f"Government ruling(s) found: {len(government)}",
            ),
            RedCondition(
                name=f"{min_credible}+ credible sources",
                met=credible >= min_credible,
                reason=f"{credible} credible sources report concerns",
                detail=f"{credible} credible sources report concerns",
            ),
        ]

    def yellow_indicators(self, scoring: ScoringResult, hypotheses: List[Hypothesis]) -> List[str]:
        """One detail line per indicator type present."""
        indicators = []
        counted = [
            ("News article(s) found", scoring.of_source_type(SourceType.NEWS)),
            ("NGO report(s) found", scoring.of_source_type(SourceType.NGO)),
            ("Forum mention(s) found", scoring.of_source_type(SourceType.FORUM)),
            ("Pending investigation(s)", [e for e in scoring.scored_evidence if e.status == EvidenceStatus.PENDING]),
        ]
        for label, items in counted:
            if items:
                indicators.append(f"{label}: {len(items)}")

        for hypothesis in hypotheses:
            if hypothesis.confidence.value == self.flag_config.high_confidence_label:
                indicators.append(f"High-confidence hypothesis: {hypothesis.description}")
        return indicators

    def threshold_info(self, flag: FlagColor, conditions: List[RedCondition], indicator_count: int,
                       scoring: ScoringResult) -> ThresholdInfo:
        min_indicators = self.flag_config.min_yellow_indicators
        met = [c.name for c in conditions if c.met]
        unmet = [c.name for c in conditions if not c.met]
        credible_gap = max(self.flag_config.min_credible_sources - scoring.credible_source_count, 0)

        info = ThresholdInfo(
            current_flag=flag,
            yellow_indicators=indicator_count,
            yellow_threshold=min_indicators,
            red_conditions_met=met,
            unmet_red_conditions=unmet,
        )

        if flag == FlagColor.RED:
            info.distance_to_red = "Already RED: no further escalation possible"
            info.distance_down = f"Would need all RED conditions cleared: {', '.join(met)}"
            info.what_would_change = [f"Disproving: {name}" for name in met]
        elif flag == FlagColor.YELLOW:
            info.credible_source_gap = credible_gap
            info.distance_to_red = (f"{credible_gap} more credible source(s) needed for RED, "
                                    f"or any of: {', '.join(unmet)}")
            info.distance_down = (f"{indicator_count - min_indicators + 1} fewer indicator type(s) "
                                  f"would drop to GREEN")
            # The credible-source condition is last and already expressed as a gap
            info.what_would_change = [f"{credible_gap} more credible source(s)"] + [
                f"Any {c.name}" for c in conditions[:-1] if not c.met
            ]
        elif flag == FlagColor.GREEN:
            info.distance_to_yellow = max(min_indicators - indicator_count, 0)
            info.credible_source_gap = credible_gap
            info.distance_to_red = f"Any of these would escalate to RED immediately: {', '.join(unmet)}"
            info.distance_down = "Already at the lowest risk tier"
            info.what_would_change = [
                f"{info.distance_to_yellow} more indicator type(s) (news, NGO, forum, pending, "
                f"high-confidence hypothesis) would reach YELLOW",
            ] + [f"Any {name}" for name in unmet]
        else:
            info.distance_to_red = "Unknown: sources could not be verified"
            info.distance_down = "Unknown: sources could not be verified"
            info.what_would_change = ["Re-evaluate once sanctions sources are reachable or evidence is available"]
        return info

    def assign_flag(self, sanctions: SanctionsCheck, scoring: ScoringResult,
                    hypotheses: Optional[List[Hypothesis]] = None,
                    warnings: Optional[List[CommonNameWarning]] = None) -> Verdict:
        """Pure function of its inputs: the same inputs always give the same verdict."""
        hypotheses = hypotheses or []
        warnings = warnings or []
        warning_details = []
        if warnings:
            warning_details.append(
                f"{len(warnings)} common-name warning(s): identity matches need secondary identifiers"
            )

        conditions = self.red_conditions(sanctions, scoring)
        met = [c for c in conditions if c.met]
        indicators = self.yellow_indicators(scoring, hypotheses)

        if met:
            return Verdict(
                flag=FlagColor.RED,
                reason=met[0].reason,
                details=[c.detail for c in met] + warning_details,
                severity=FlagSeverity.CRITICAL,
                threshold_info=self.threshold_info(FlagColor.RED, conditions, len(indicators), scoring),
            )

        if len(indicators) >= self.flag_config.min_yellow_indicators:
            return Verdict(
                flag=FlagColor.YELLOW,
                reason=f"{len(indicators)} types of indicators found",
                details=indicators + warning_details,
                severity=FlagSeverity.WARNING,
                threshold_info=self.threshold_info(FlagColor.YELLOW, conditions, len(indicators), scoring),
            )

        failed, total = len(sanctions.errors), len(sanctions.results)
        if failed >= total and scoring.total_items == 0:
            return Verdict(
                flag=FlagColor.GREY,
                reason="Insufficient data: could not verify from available sources",
                details=[f"{failed} out of {total} sanctions checks failed"] + warning_details,
                severity=FlagSeverity.UNKNOWN,
                threshold_info=self.threshold_info(FlagColor.GREY, conditions, len(indicators), scoring),
            )

        details = list(indicators)
        if len(indicators) == 1:
            details.append("Only 1 indicator found (below yellow threshold)")
        if not details:
            details.append("All available sources checked: no issues detected")
        return Verdict(
            flag=FlagColor.GREEN,
            reason="No significant concerns found",
            details=details + warning_details,
            severity=FlagSeverity.NONE,
            threshold_info=self.threshold_info(FlagColor.GREEN, conditions, len(indicators), scoring),
        )

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        request = self._require(state, "request")
        scoring = self._require(state, "scoring")

        verdict = self.assign_flag(request.sanctions, scoring, state.hypotheses, state.name_warnings)
        state.verdict = verdict

        self._update_stage_status(state, f"Verdict {verdict.flag.value}: {verdict.reason}")
        for detail in verdict.details:
            self.logger.debug(f"[{self.stage_name}] {detail}")
        return {"flag": verdict.flag.value, "indicators": verdict.threshold_info.yellow_indicators}
