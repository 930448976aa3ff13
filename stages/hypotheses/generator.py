# koppla/stages/hypotheses/generator.py

import logging
from typing import List, Dict, Any, Optional

from config.settings import HypothesisConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError
from core.run_context import RunContext
from core.state import AssessmentState
from models.entity import Entity, CommonNameWarning
from models.enums import (
    AnomalyType,
    ConfidenceLevel,
    DetectionMethod,
    HypothesisType,
    RelationshipType,
)
from models.evidence import ScoringResult
from models.graph import NetworkGraph, GraphEdge
from models.hypothesis import Hypothesis, SupportingEvidence
from models.relationship import CrossReferenceResult
from utils.text_processing import names_overlap


class HypothesisGenerator(BaseStage):
    """
    Narrates the finished graph. Four strategies run independently:

    * sanctions-proximity: one per sanctions-linked edge
    * organizational-link: one per role holder on organizational edges
    * financial-trail: one per financial edge
    * pattern-anomaly: one per detected anomaly

    Edge-based strategies score from the edge's own confidence; the hop decay
    stays on the graph for the export.
    """

    stage_name = "hypothesis_generation"

    def __init__(self, config: HypothesisConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, HypothesisConfig):
            raise ConfigurationError(
                f"Config must be HypothesisConfig, got {type(config)}",
                config_key="hypotheses",
                stage_name=self.stage_name,
            )
        self.hypothesis_config = config

    def confidence_level(self, score: float) -> ConfidenceLevel:
        if score >= self.hypothesis_config.high_label_threshold:
            return ConfidenceLevel.HIGH
        if score >= self.hypothesis_config.medium_label_threshold:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def evidence_boosted(self, evidence_count: int, base: float) -> float:
        score = base
        boosts = self.hypothesis_config.sanctions_evidence_boosts
        for threshold in sorted(boosts, reverse=True):
            if evidence_count >= threshold:
                score += boosts[threshold]
                break
        return min(score, 1.0)

    def _create(self, run_context: RunContext, hypothesis_type: HypothesisType, description: str,
                score: float, supporting: List[SupportingEvidence], related: List[str]) -> Hypothesis:
        return Hypothesis(
            id=run_context.next_hypothesis_id(),
            type=hypothesis_type,
            description=description,
            confidence_score=score,
            confidence=self.confidence_level(score),
            supporting_evidence=supporting,
            related_entities=related,
        )

    def _related(self, edge: GraphEdge) -> List[str]:
        return [node_id for node_id in (edge.source, edge.target) if node_id != self.config.subject_node_id]

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def sanctions_proximity(self, graph: NetworkGraph, scoring: ScoringResult,
                            entities: Dict[str, Entity], run_context: RunContext) -> List[Hypothesis]:
        hypotheses = []
        for edge in graph.edges:
            if edge.type != RelationshipType.SANCTIONS_LINK and edge.detection_method != DetectionMethod.SANCTIONS_MATCH:
                continue
            entity = entities.get(edge.source) or entities.get(edge.target)
            if entity is None:
                continue

            supporting = [
                SupportingEvidence(description=scored.item.description, source=scored.item.source, relevance="direct")
                for scored in scoring.scored_evidence
                if scored.matched_name and names_overlap(entity.name, scored.matched_name)
            ]
            score = self.evidence_boosted(len(supporting), edge.confidence)
            hypotheses.append(self._create(
                run_context,
                HypothesisType.SANCTIONS_PROXIMITY,
                f'Sanctions exposure: "{entity.name}" is connected to the target organization '
                f'and matches a sanctions list entry',
                score,
                supporting,
                self._related(edge),
            ))
        return hypotheses

    def organizational_links(self, graph: NetworkGraph, entities: Dict[str, Entity],
                             run_context: RunContext) -> List[Hypothesis]:
        cfg = self.hypothesis_config
        by_person: Dict[str, List[GraphEdge]] = {}
        for edge in graph.edges_of_type(RelationshipType.ORGANIZATIONAL):
            person_id = edge.target if edge.source == self.config.subject_node_id else edge.source
            by_person.setdefault(person_id, []).append(edge)

        hypotheses = []
        for person_id, edges in by_person.items():
            entity = entities.get(person_id)
            if entity is None or not entity.roles:
                continue
            score = min(cfg.organizational_base + entity.confidence * cfg.organizational_factor,
                        cfg.organizational_cap)
            supporting = [
                SupportingEvidence(
                    description=edge.evidence[0].description if edge.evidence else f"Connected as {edge.label}",
                    source=edge.evidence[0].source if edge.evidence else "entity analysis",
                    relevance="direct",
                )
                for edge in edges
            ]
            hypotheses.append(self._create(
                run_context,
                HypothesisType.ORGANIZATIONAL_LINK,
                f'Organizational link: "{entity.name}" identified as {", ".join(entity.roles)}: '
                f'may hold influence or decision-making power',
                score,
                supporting,
                [person_id],
            ))
        return hypotheses

    def financial_trails(self, graph: NetworkGraph, run_context: RunContext) -> List[Hypothesis]:
        cfg = self.hypothesis_config
        hypotheses = []
        for edge in graph.edges_of_type(RelationshipType.FINANCIAL):
            score = min(cfg.financial_base + edge.confidence * cfg.financial_factor, cfg.financial_cap)
            hypotheses.append(self._create(
                run_context,
                HypothesisType.FINANCIAL_TRAIL,
                f'Possible financial connection between "{edge.source_name}" and "{edge.target_name}": '
                f'financial keywords detected in shared context',
                score,
                [SupportingEvidence(description=e.description, source=e.source, relevance="supporting")
                 for e in edge.evidence],
                self._related(edge),
            ))
        return hypotheses

    def anomaly_score(self, anomaly_type: AnomalyType, severity: str) -> float:
        cfg = self.hypothesis_config
        if anomaly_type == AnomalyType.CROSS_LIST_PRESENCE:
            return cfg.cross_list_confidence
        if anomaly_type == AnomalyType.FREQUENCY_SPIKE:
            return cfg.spike_high_confidence if severity == "high" else cfg.spike_other_confidence
        return cfg.anomaly_default_confidence

    def pattern_anomalies(self, cross_reference: CrossReferenceResult,
                          run_context: RunContext) -> List[Hypothesis]:
        hypotheses = []
        for anomaly in cross_reference.anomalies:
            relevance = "direct" if anomaly.type == AnomalyType.CROSS_LIST_PRESENCE else "circumstantial"
            hypotheses.append(self._create(
                run_context,
                HypothesisType.PATTERN_ANOMALY,
                anomaly.description,
                self.anomaly_score(anomaly.type, anomaly.severity),
                [SupportingEvidence(description=anomaly.description,
                                    source=anomaly.source or "pattern analysis",
                                    relevance=relevance)],
                [anomaly.entity_id] if anomaly.entity_id else [],
            ))
        return hypotheses

    # ------------------------------------------------------------------

    def generate(self, graph: NetworkGraph, scoring: ScoringResult, cross_reference: CrossReferenceResult,
                 entities: List[Entity], run_context: RunContext,
                 warnings: Optional[List[CommonNameWarning]] = None) -> List[Hypothesis]:
        by_id = {entity.id: entity for entity in entities}

        hypotheses = self.sanctions_proximity(graph, scoring, by_id, run_context)
        hypotheses += self.organizational_links(graph, by_id, run_context)
        hypotheses += self.financial_trails(graph, run_context)
        hypotheses += self.pattern_anomalies(cross_reference, run_context)

        for hypothesis in hypotheses:
            for warning in warnings or []:
                if warning.entity_id in hypothesis.related_entities:
                    hypothesis.add_warning(warning.warning)

        kept = [h for h in hypotheses if h.confidence_score >= self.hypothesis_config.min_confidence]
        dropped = len(hypotheses) - len(kept)
        if dropped:
            self.logger.debug(f"[{self.stage_name}] Discarded {dropped} hypothesis(es) below minimum confidence")
        return sorted(kept, key=lambda h: h.confidence_score, reverse=True)

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        graph = self._require(state, "graph")
        scoring = self._require(state, "scoring")
        cross_reference = self._require(state, "cross_reference")
        resolution = self._require(state, "resolution")

        state.hypotheses = self.generate(graph, scoring, cross_reference, resolution.entities,
                                         state.run_context, state.name_warnings)

        counts = {level.value: 0 for level in ConfidenceLevel}
        for hypothesis in state.hypotheses:
            counts[hypothesis.confidence.value] += 1
        self._update_stage_status(
            state,
            f"Generated {len(state.hypotheses)} hypothesis(es): {counts['high']} high, "
            f"{counts['medium']} medium, {counts['low']} low",
        )
        return {"total_hypotheses": len(state.hypotheses), **counts}
