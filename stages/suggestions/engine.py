# koppla/stages/suggestions/engine.py

import logging
from typing import List, Dict, Any, Optional

from config.settings import SuggestionConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError
from core.run_context import RunContext
from core.state import AssessmentState
from models.entity import Entity, CommonNameWarning
from models.enums import ConfidenceLevel, FlagColor, FrequencyEstimate, Priority, SuggestionType
from models.evidence import SanctionsCheck, LanguageProcessingSummary
from models.graph import NetworkGraph
from models.hypothesis import Hypothesis
from models.suggestion import Suggestion, SuggestionResult
from models.verdict import ThresholdInfo
from stages.network_graph.builder import get_connections

DEFAULT_IDENTIFIER_ACTION = "Provide additional identifying information (date of birth, national ID)"


class SuggestionEngine(BaseStage):
    """
    Reviews the finished assessment for gaps and proposes next steps for the
    analyst. Each check reads the snapshot only; ids follow check order and
    the final list is ordered by priority (stable within a priority).
    """

    stage_name = "suggestion_generation"

    def __init__(self, config: SuggestionConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, SuggestionConfig):
            raise ConfigurationError(
                f"Config must be SuggestionConfig, got {type(config)}",
                config_key="suggestions",
                stage_name=self.stage_name,
            )
        self.suggestion_config = config

    @staticmethod
    def _make(run_context: RunContext, suggestion_type: SuggestionType, priority: Priority, description: str,
              actionable: bool = False, suggested_action: str = "",
              related_entity_id: Optional[str] = None) -> Suggestion:
        return Suggestion(
            id=run_context.next_suggestion_id(),
            type=suggestion_type,
            priority=priority,
            description=description,
            actionable=actionable,
            suggested_action=suggested_action,
            related_entity_id=related_entity_id,
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_source_errors(self, subject: str, sanctions: SanctionsCheck,
                            run_context: RunContext) -> List[Suggestion]:
        if not sanctions.errors:
            return []
        return [self._make(
            run_context,
            SuggestionType.SOURCE_ERROR,
            Priority.HIGH,
            f"{len(sanctions.errors)} of {len(sanctions.results)} sanctions checks failed. "
            f"Results may be incomplete. Re-running the analysis might resolve temporary network issues.",
            actionable=True,
            suggested_action=f'Re-run the sanctions checks for "{subject}", then: python main.py request.json',
        )]

    def check_missing_roles(self, entities: List[Entity], run_context: RunContext) -> List[Suggestion]:
        suggestions = []
        for entity in entities:
            if not entity.is_person or entity.roles:
                continue
            if entity.confidence < self.suggestion_config.missing_role_min_confidence:
                continue
            suggestions.append(self._make(
                run_context,
                SuggestionType.MISSING_ROLE,
                Priority.MEDIUM,
                f'Entity "{entity.name}" found but role is unknown. If you know their position '
                f'(CEO, director, etc.), providing it as a seed could reveal organizational links.',
                actionable=True,
                suggested_action=f'Add seed: --seed "{entity.name}, [ROLE]"',
                related_entity_id=entity.id,
            ))
        return suggestions

    def check_near_threshold(self, subject: str, threshold: Optional[ThresholdInfo],
                             run_context: RunContext) -> List[Suggestion]:
        if threshold is None:
            return []
        near = self.suggestion_config.near_threshold_distance

        if threshold.current_flag == FlagColor.GREEN and threshold.distance_to_yellow is not None \
                and threshold.distance_to_yellow <= near:
            return [self._make(
                run_context,
                SuggestionType.NEAR_THRESHOLD,
                Priority.HIGH,
                f"This organization is GREEN but only {threshold.distance_to_yellow} indicator(s) away "
                f'from YELLOW. Checking news sources or NGO reports for "{subject}" could resolve this.',
                actionable=True,
                suggested_action=f'Search news for "{subject}" and add findings to the request evidence',
            )]

        if threshold.current_flag == FlagColor.YELLOW:
            gap = threshold.credible_source_gap
            priority = Priority.HIGH if gap is not None and gap <= near else Priority.MEDIUM
            return [self._make(
                run_context,
                SuggestionType.NEAR_THRESHOLD,
                priority,
                f"This organization is YELLOW. If additional credible sources are found, it may "
                f"escalate to RED. {threshold.distance_to_red}",
            )]
        return []

    def check_low_confidence(self, hypotheses: List[Hypothesis], entities: List[Entity],
                             run_context: RunContext) -> List[Suggestion]:
        names = {entity.id: entity.name for entity in entities}
        preview = self.suggestion_config.description_preview_chars
        suggestions = []
        for hypothesis in hypotheses:
            if hypothesis.confidence != ConfidenceLevel.LOW and \
                    hypothesis.confidence_score >= self.suggestion_config.low_confidence_threshold:
                continue
            related = ", ".join(names.get(entity_id, entity_id) for entity_id in hypothesis.related_entities)
            suggestions.append(self._make(
                run_context,
                SuggestionType.LOW_CONFIDENCE,
                Priority.MEDIUM,
                f'Hypothesis "{hypothesis.description[:preview]}..." has low confidence '
                f"({round(hypothesis.confidence_score * 100)}%). Additional information about "
                f"{related or 'related entities'} could strengthen or dismiss it.",
                actionable=bool(related),
                suggested_action=f"Investigate: {related}" if related else "",
                related_entity_id=hypothesis.related_entities[0] if hypothesis.related_entities else None,
            ))
        return suggestions

    def check_unexplored(self, subject: str, entities: List[Entity], graph: Optional[NetworkGraph],
                         run_context: RunContext) -> List[Suggestion]:
        suggestions = []
        for entity in entities:
            if entity.mention_count < self.suggestion_config.unexplored_min_mentions:
                continue
            if graph is not None and get_connections(graph, entity.id):
                continue
            suggestions.append(self._make(
                run_context,
                SuggestionType.UNEXPLORED,
                Priority.MEDIUM,
                f'"{entity.name}" is mentioned {entity.mention_count} times but has no confirmed connections '
                f'in the network. Investigating their relationship to "{subject}" may reveal hidden links.',
                actionable=True,
                suggested_action=f'Try: --seed "{entity.name}"',
                related_entity_id=entity.id,
            ))
        return suggestions

    def check_common_names(self, warnings: List[CommonNameWarning], run_context: RunContext) -> List[Suggestion]:
        return [
            self._make(
                run_context,
                SuggestionType.COMMON_NAME,
                Priority.HIGH if warning.frequency_estimate == FrequencyEstimate.VERY_HIGH else Priority.MEDIUM,
                warning.warning,
                actionable=True,
                suggested_action=warning.recommendation or DEFAULT_IDENTIFIER_ACTION,
                related_entity_id=warning.entity_id,
            )
            for warning in warnings
        ]

    def check_translation_gaps(self, language: LanguageProcessingSummary,
                               run_context: RunContext) -> List[Suggestion]:
        if language.texts_processed <= 0:
            return []
        primary = set(self.suggestion_config.primary_languages)
        untranslated = [code for code in language.languages_detected if code not in primary]
        if not untranslated or language.translations_performed > 0:
            return []
        return [self._make(
            run_context,
            SuggestionType.TRANSLATION_GAP,
            Priority.MEDIUM,
            f"Non-English/Swedish text detected ({', '.join(untranslated)}) but no translations were "
            f"performed. The original text may contain entities that were missed.",
            suggested_action="Check that the translation service is reachable and re-run the extraction",
        )]

    # ------------------------------------------------------------------

    def generate(self, subject: str, sanctions: SanctionsCheck, entities: List[Entity],
                 threshold: Optional[ThresholdInfo], hypotheses: List[Hypothesis],
                 graph: Optional[NetworkGraph], warnings: List[CommonNameWarning],
                 language: LanguageProcessingSummary, run_context: RunContext) -> SuggestionResult:
        suggestions = self.check_source_errors(subject, sanctions, run_context)
        suggestions += self.check_missing_roles(entities, run_context)
        suggestions += self.check_near_threshold(subject, threshold, run_context)
        suggestions += self.check_low_confidence(hypotheses, entities, run_context)
        suggestions += self.check_unexplored(subject, entities, graph, run_context)
        suggestions += self.check_common_names(warnings, run_context)
        suggestions += self.check_translation_gaps(language, run_context)

        return SuggestionResult(suggestions=sorted(suggestions, key=lambda s: s.priority.rank))

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        request = self._require(state, "request")
        resolution = self._require(state, "resolution")
        verdict = self._require(state, "verdict")

        result = self.generate(
            subject=request.subject,
            sanctions=request.sanctions,
            entities=resolution.entities,
            threshold=verdict.threshold_info,
            hypotheses=state.hypotheses,
            graph=state.graph,
            warnings=state.name_warnings,
            language=request.language_processing,
            run_context=state.run_context,
        )
        state.suggestions = result

        summary = result.summary
        self._update_stage_status(
            state,
            f"{summary['total']} suggestion(s): {summary['high']} high, {summary['medium']} medium, "
            f"{summary['low']} low",
        )
        return summary
