# koppla/stages/scoring/evidence_scorer.py

import logging
from typing import List, Dict, Any

from config.constants import UNCATEGORIZED
from config.settings import ScoringConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError
from core.state import AssessmentState
from models.enums import SourceType, EvidenceStatus
from models.evidence import EvidenceItem, ScoredEvidence, ScoringResult, CategoryTotal


class EvidenceScorer(BaseStage):
    """
    Credibility scoring: score = credibility weight of the source type
    multiplied by the severity multiplier. Unknown source types, severities
    and statuses fall back to configured defaults (logged at WARNING).
    """

    stage_name = "evidence_scoring"

    def __init__(self, config: ScoringConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, ScoringConfig):
            raise ConfigurationError(
                f"Config must be ScoringConfig, got {type(config)}",
                config_key="scoring",
                stage_name=self.stage_name,
            )
        self.scoring_config = config

    def resolve_source_type(self, raw: str) -> SourceType:
        try:
            source_type = SourceType(raw)
        except ValueError:
            self.logger.warning(f"[{self.stage_name}] Unknown source type '{raw}', scoring as 'unknown'")
            return SourceType.UNKNOWN
        if source_type.value not in self.scoring_config.credibility_weights:
            self.logger.warning(f"[{self.stage_name}] No credibility weight for '{raw}', scoring as 'unknown'")
            return SourceType.UNKNOWN
        return source_type

    def resolve_status(self, raw: str) -> EvidenceStatus:
        try:
            return EvidenceStatus(raw)
        except ValueError:
            self.logger.warning(f"[{self.stage_name}] Unknown evidence status '{raw}', treating as unverified")
            return EvidenceStatus.UNVERIFIED

    def get_weight(self, source_type: SourceType) -> float:
        weights = self.scoring_config.credibility_weights
        return weights.get(source_type.value, weights[SourceType.UNKNOWN.value])

    def severity_multiplier(self, severity: str) -> float:
        multipliers = self.scoring_config.severity_multipliers
        if severity in multipliers:
            return multipliers[severity]
        self.logger.warning(
            f"[{self.stage_name}] Unrecognized severity '{severity}', "
            f"using default multiplier {self.scoring_config.default_severity_multiplier}"
        )
        return self.scoring_config.default_severity_multiplier

    def score_evidence(self, item: EvidenceItem) -> ScoredEvidence:
        source_type = self.resolve_source_type(item.source_type)
        weight = self.get_weight(source_type)
        multiplier = self.severity_multiplier(item.severity)
        return ScoredEvidence(
            item=item,
            source_type=source_type,
            status=self.resolve_status(item.status),
            credibility_weight=weight,
            severity_multiplier=multiplier,
            score=weight * multiplier,
        )

    def score_all(self, evidence: List[EvidenceItem]) -> ScoringResult:
        """Score every item, then total per category and overall."""
        scored = [self.score_evidence(item) for item in evidence]

        by_category: Dict[str, CategoryTotal] = {}
        for entry in scored:
            total = by_category.setdefault(entry.category or UNCATEGORIZED, CategoryTotal())
            total.items.append(entry)
            total.total_score += entry.score

        threshold = self.scoring_config.credible_weight_threshold
        return ScoringResult(
            scored_evidence=scored,
            by_category=by_category,
            overall_score=sum(entry.score for entry in scored),
            credible_source_count=sum(1 for entry in scored if entry.credibility_weight >= threshold),
        )

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        request = self._require(state, "request")
        result = self.score_all(request.evidence)
        state.scoring = result

        self._update_stage_status(
            state,
            f"Scored {result.total_items} evidence item(s): overall {result.overall_score:.1f}, "
            f"{result.credible_source_count} credible",
        )
        return {
            "total_items": result.total_items,
            "overall_score": result.overall_score,
            "credible_source_count": result.credible_source_count,
        }
