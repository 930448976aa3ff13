# koppla/stages/relationship_detection/detector.py

import logging
from typing import List, Dict, Any, Optional, Tuple

import numpy as np

from config.settings import RelationshipDetectionConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError
from core.state import AssessmentState
from models.entity import Entity, TextSource
from models.enums import RelationshipType, DetectionMethod, AnomalyType
from models.evidence import EvidenceItem
from models.relationship import (
    Anomaly,
    CoMention,
    CrossReferenceResult,
    ProximityMatch,
    Relationship,
    RelationshipEvidence,
    pair_key,
)
from stages.relationship_detection.classifier import classify_relationship, co_mention_confidence
from utils.text_processing import find_all_positions, names_overlap


class RelationshipDetector(BaseStage):
    """
    Finds who is connected to whom: windowed co-mentions between entities,
    role links from people to the subject, sanctions links from the evidence,
    plus frequency-spike and cross-list anomalies.
    """

    stage_name = "relationship_detection"

    def __init__(self, config: RelationshipDetectionConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, RelationshipDetectionConfig):
            raise ConfigurationError(
                f"Config must be RelationshipDetectionConfig, got {type(config)}",
                config_key="relationship_detection",
                stage_name=self.stage_name,
            )
        self.detection_config = config

    # ------------------------------------------------------------------
    # Co-mentions
    # ------------------------------------------------------------------

    def detect_co_mentions(self, entities: List[Entity], texts: List[TextSource]) -> List[CoMention]:
        """
        Count offset pairs of two entity names that sit within the character
        window (identical offsets excluded), summed across all texts. Only pairs
        reaching the minimum count are returned.
        """
        cfg = self.detection_config
        found: Dict[Tuple[str, str], CoMention] = {}

        for source in texts:
            text = source.text
            if not text:
                continue
            positions = {e.id: find_all_positions(text, e.name) for e in entities}
            for i, a in enumerate(entities):
                if not positions[a.id]:
                    continue
                for b in entities[i + 1:]:
                    for pos_a in positions[a.id]:
                        for pos_b in positions[b.id]:
                            distance = abs(pos_a - pos_b)
                            if distance == 0 or distance > cfg.co_mention_window_chars:
                                continue
                            key = pair_key(a.id, b.id)
                            record = found.get(key)
                            if record is None:
                                record = CoMention(
                                    entity_a_id=a.id, entity_b_id=b.id,
                                    entity_a_name=a.name, entity_b_name=b.name,
                                    source=source.source or "unknown",
                                )
                                found[key] = record
                            record.count += 1
                            if len(record.contexts) < cfg.max_contexts:
                                record.contexts.append(self._pair_context(text, pos_a, pos_b, a.name, b.name))

        return [record for record in found.values() if record.count >= cfg.min_co_mentions]

    def _pair_context(self, text: str, pos_a: int, pos_b: int, name_a: str, name_b: str) -> str:
        padding = self.detection_config.context_padding_chars
        start = min(pos_a, pos_b)
        end = max(pos_a, pos_b) + max(len(name_a), len(name_b))
        return text[max(0, start - padding):min(len(text), end + padding)]

    def proximity_search(self, name_a: str, name_b: str, text: str,
                         window_words: Optional[int] = None) -> List[ProximityMatch]:
        """Word-window co-occurrence: both names start within N words of each other."""
        max_words = window_words or self.detection_config.proximity_window_words
        words = text.split()
        lowered = [w.lower() for w in words]
        first_a = name_a.lower().split()[0] if name_a.strip() else ""
        first_b = name_b.lower().split()[0] if name_b.strip() else ""
        if not first_a or not first_b:
            return []

        indices_a = [i for i, w in enumerate(lowered) if w.startswith(first_a)]
        indices_b = [i for i, w in enumerate(lowered) if w.startswith(first_b)]

        matches = []
        for idx_a in indices_a:
            for idx_b in indices_b:
                distance = abs(idx_a - idx_b)
                if 0 < distance <= max_words:
                    start = max(0, min(idx_a, idx_b) - 3)
                    end = min(len(words), max(idx_a, idx_b) + 5)
                    matches.append(ProximityMatch(context=" ".join(words[start:end]), distance=distance))
        return matches

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def co_mention_relationships(self, co_mentions: List[CoMention],
                                 entities: Dict[str, Entity]) -> List[Relationship]:
        cfg = self.detection_config
        relationships = []
        for cm in co_mentions:
            rel_type = classify_relationship(cm.context)
            first = entities[cm.entity_a_id]
            relationships.append(Relationship(
                source_id=cm.entity_a_id,
                target_id=cm.entity_b_id,
                source_name=cm.entity_a_name,
                target_name=cm.entity_b_name,
                type=rel_type,
                label=first.roles[0] if first.roles else "co-mentioned",
                confidence=co_mention_confidence(cm.count, rel_type, cfg.base_confidence,
                                                 cfg.count_boosts, cfg.specific_type_boost),
                evidence=[RelationshipEvidence(
                    description=f"Co-mentioned {cm.count} time(s) in {cm.source}",
                    source=cm.source,
                    context=cm.context,
                )],
                detection_method=DetectionMethod.CO_MENTION,
            ))
        return relationships

    def role_relationships(self, entities: List[Entity], subject: str) -> List[Relationship]:
        """People holding a role are linked straight to the subject."""
        relationships = []
        for entity in entities:
            if not entity.is_person or not entity.roles:
                continue
            method = entity.preferred_method.value if entity.preferred_method else "analysis"
            relationships.append(Relationship(
                source_id=entity.id,
                target_id=self.config.subject_node_id,
                source_name=entity.name,
                target_name=subject,
                type=RelationshipType.ORGANIZATIONAL,
                label=entity.roles[0],
                # An unscored entity (confidence 0) falls back to the configured default
                confidence=entity.confidence or self.detection_config.role_link_default_confidence,
                evidence=[RelationshipEvidence(
                    description=f"Identified as {', '.join(entity.roles)} via {method}",
                    source=entity.source,
                    context=entity.mention_contexts[0] if entity.mention_contexts else "",
                )],
                detection_method=DetectionMethod.ENTITY_EXTRACTION,
            ))
        return relationships

    def matching_evidence(self, entity: Entity, evidence: List[EvidenceItem]) -> List[EvidenceItem]:
        """Evidence whose sanctions-matched name overlaps the entity name."""
        return [item for item in evidence
                if item.matched_name and names_overlap(entity.name, item.matched_name)]

    def sanctions_relationships(self, entities: List[Entity], evidence: List[EvidenceItem],
                                subject: str) -> List[Relationship]:
        relationships = []
        for entity in entities:
            matches = self.matching_evidence(entity, evidence)
            if not matches:
                continue
            relationships.append(Relationship(
                source_id=entity.id,
                target_id=self.config.subject_node_id,
                source_name=entity.name,
                target_name=subject,
                type=RelationshipType.SANCTIONS_LINK,
                label="sanctions match",
                confidence=self.detection_config.sanctions_link_confidence,
                evidence=[RelationshipEvidence(
                    description=f'Entity "{entity.name}" matches sanctions entry "{item.matched_name}"',
                    source=item.source,
                    source_url=item.source_url,
                ) for item in matches],
                detection_method=DetectionMethod.SANCTIONS_MATCH,
            ))
        return relationships

    # ------------------------------------------------------------------
    # Anomalies
    # ------------------------------------------------------------------

    def detect_anomalies(self, entities: List[Entity], evidence: List[EvidenceItem]) -> List[Anomaly]:
        cfg = self.detection_config
        anomalies: List[Anomaly] = []

        if entities:
            counts = np.array([max(e.mention_count, 1) for e in entities], dtype=float)
            mean = float(counts.mean())
            threshold = mean * cfg.anomaly_threshold_multiplier
            for entity, count in zip(entities, counts):
                if count >= threshold and count >= cfg.anomaly_min_mentions:
                    anomalies.append(Anomaly(
                        type=AnomalyType.FREQUENCY_SPIKE,
                        entity_id=entity.id,
                        entity_name=entity.name,
                        description=(f'"{entity.name}" mentioned {int(count)} times '
                                     f'(average: {mean:.1f}), unusually frequent'),
                        severity="high" if count > mean * cfg.anomaly_high_multiplier else "medium",
                        value=float(count),
                        threshold=threshold,
                    ))

        # Same predicate as the sanctions link; reported per matching evidence item
        for entity in entities:
            for item in self.matching_evidence(entity, evidence):
                anomalies.append(Anomaly(
                    type=AnomalyType.CROSS_LIST_PRESENCE,
                    entity_id=entity.id,
                    entity_name=entity.name,
                    description=(f'"{entity.name}" found in entity extraction AND matches '
                                 f'"{item.matched_name}" on {item.source}'),
                    severity="high",
                    source=item.source,
                ))
        return anomalies

    # ------------------------------------------------------------------

    def detect(self, entities: List[Entity], texts: List[TextSource], evidence: List[EvidenceItem],
               subject: str) -> CrossReferenceResult:
        by_id = {e.id: e for e in entities}
        co_mentions = self.detect_co_mentions(entities, texts)

        relationships = self.co_mention_relationships(co_mentions, by_id)
        relationships.extend(self.role_relationships(entities, subject))
        relationships.extend(self.sanctions_relationships(entities, evidence, subject))

        return CrossReferenceResult(
            relationships=relationships,
            anomalies=self.detect_anomalies(entities, evidence),
            co_mentions=co_mentions,
        )

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        resolution = self._require(state, "resolution")
        request = self._require(state, "request")

        result = self.detect(resolution.entities, request.texts, request.evidence, request.subject)
        state.cross_reference = result

        summary = result.summary
        self._update_stage_status(
            state,
            f"Found {summary['total_relationships']} relationship(s) and {summary['total_anomalies']} anomal(ies)",
        )
        for anomaly in result.anomalies:
            self.logger.debug(f"[{self.stage_name}] {anomaly.type.value}: {anomaly.description}")
        return summary
