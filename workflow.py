# koppla/workflow.py
import logging
from typing import Dict, Any, Callable, List, Tuple

from langgraph.graph import StateGraph, END

from config.settings import AssessmentConfig, BaseEngineConfig
from core.base_stage import BaseStage
from core.exceptions import BaseAssessmentException, StageExecutionError
from core.state import AssessmentState, ProcessingStatus
from models.request import AssessmentRequest
from stages.entity_resolution.resolver import EntityResolver
from stages.hypotheses.generator import HypothesisGenerator
from stages.name_commonality.checker import NameCommonalityChecker
from stages.network_graph.builder import GraphBuilder
from stages.network_graph.distance_decay import DistanceDecayEngine
from stages.relationship_detection.detector import RelationshipDetector
from stages.scoring.evidence_scorer import EvidenceScorer
from stages.scoring.flag_engine import FlagDecisionEngine
from stages.suggestions.engine import SuggestionEngine

VALIDATION_STAGE = "request_validation"


def route_after_stage(state: Dict[str, Any]) -> str:
    """Routing function shared by every stage node"""
    status = state.get("status")
    if status == ProcessingStatus.FAILED or status == ProcessingStatus.FAILED.value:
        return "failed"
    return "continue"


def create_stage_node(stage: BaseStage, logger: logging.Logger) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """
    Wrap a stage for the dict-based graph. The stage records its own failure
    on the state before re-raising, so the wrapper only has to route.
    """
    def stage_node(state_dict: Dict[str, Any]) -> Dict[str, Any]:
        state = AssessmentState.from_workflow_dict(state_dict)
        try:
            stage.run(state)
        except BaseAssessmentException as e:
            logger.error(f"[workflow] Stage '{stage.stage_name}' failed: {e.message}")
            if state.status != ProcessingStatus.FAILED:
                state.fail_stage(stage.stage_name, e)
        return state.to_workflow_dict()

    stage_node.__name__ = f"{stage.stage_name}_node"
    return stage_node


def create_validation_node(logger: logging.Logger):
    """Turn the raw request into typed records; malformed input fails the run here."""
    def validate_request(state_dict: Dict[str, Any]) -> Dict[str, Any]:
        state = AssessmentState.from_workflow_dict(state_dict)
        state.start_stage(VALIDATION_STAGE)
        try:
            request = AssessmentRequest.from_dict(state.raw_request)
        except BaseAssessmentException as e:
            logger.error(f"[{VALIDATION_STAGE}] Invalid request: {e.message}")
            state.fail_stage(VALIDATION_STAGE, e)
            return state.to_workflow_dict()
        except Exception as e:
            wrapped = StageExecutionError(f"Unexpected error validating request: {e}",
                                          stage_name=VALIDATION_STAGE,
                                          context={"original_error_type": type(e).__name__})
            logger.error(f"[{VALIDATION_STAGE}] {wrapped.message}")
            state.fail_stage(VALIDATION_STAGE, wrapped)
            return state.to_workflow_dict()

        state.request = request
        state.subject_name = request.subject
        state.add_log(
            VALIDATION_STAGE,
            f"Request for '{request.subject}': {len(request.texts)} text(s), "
            f"{len(request.evidence)} evidence item(s), {len(request.seeds)} seed(s)",
        )
        state.complete_stage(VALIDATION_STAGE, metrics={
            "texts": len(request.texts),
            "evidence": len(request.evidence),
            "seeds": len(request.seeds),
        })
        return state.to_workflow_dict()

    return validate_request


def finalize_handler(state_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mark the assessment complete"""
    state = AssessmentState.from_workflow_dict(state_dict)
    flag = state.verdict.flag.value if state.verdict else "none"
    state.add_log("workflow", f"Assessment completed with verdict {flag}")
    state.complete_processing(ProcessingStatus.COMPLETED)
    return state.to_workflow_dict()


def failed_processing_handler(state_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Handle failed processing; the report still carries everything produced so far"""
    state = AssessmentState.from_workflow_dict(state_dict)
    failed = ", ".join(state.get_failed_stages()) or "unknown stage"
    state.add_log("workflow", f"Processing failed at: {failed}", level="ERROR")
    state.complete_processing(ProcessingStatus.FAILED)
    return state.to_workflow_dict()


def build_stages(config: AssessmentConfig, logger: logging.Logger) -> List[Tuple[str, BaseStage]]:
    """Node name and stage instance, in pipeline order."""
    return [
        ("resolve_entities", EntityResolver(config.entity_resolution, logger)),
        ("check_name_commonality", NameCommonalityChecker(config.build_stage_config(BaseEngineConfig), logger)),
        ("detect_relationships", RelationshipDetector(config.relationship_detection, logger)),
        ("build_graph", GraphBuilder(config.graph, logger)),
        ("apply_distance_decay", DistanceDecayEngine(config.graph, logger)),
        ("score_evidence", EvidenceScorer(config.scoring, logger)),
        # The YELLOW rule counts high-confidence hypotheses, so they come first
        ("generate_hypotheses", HypothesisGenerator(config.hypotheses, logger)),
        ("assign_flag", FlagDecisionEngine(config.flag_decision, logger)),
        ("generate_suggestions", SuggestionEngine(config.suggestions, logger)),
    ]


def create_workflow(config: AssessmentConfig, logger: logging.Logger) -> StateGraph:
    """Complete workflow setup: a forward chain with a shared failure exit"""
    workflow = StateGraph(dict)

    workflow.add_node("validate_request", create_validation_node(logger))
    stages = build_stages(config, logger)
    for node_name, stage in stages:
        workflow.add_node(node_name, create_stage_node(stage, logger))
    workflow.add_node("finalize", finalize_handler)
    workflow.add_node("failed", failed_processing_handler)

    workflow.set_entry_point("validate_request")

    chain = ["validate_request"] + [node_name for node_name, _ in stages] + ["finalize"]
    for current, following in zip(chain, chain[1:]):
        workflow.add_conditional_edges(
            current,
            route_after_stage,
            {"continue": following, "failed": "failed"},
        )

    workflow.add_edge("finalize", END)
    workflow.add_edge("failed", END)
    return workflow
