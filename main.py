# koppla/main.py
import argparse
import json
import logging
from typing import Optional, List, Dict, Any

from config.settings import AssessmentConfig, load_config
from core.exceptions import BaseAssessmentException, create_error_summary
from core.run_context import RunContext
from core.state import AssessmentState
from models.entity import SeedEntity
from models.results import AssessmentReport
from services.logger import LoggerService
from stages.network_graph.export import export_for_visualization
from workflow import create_workflow


def setup_logging(config: AssessmentConfig) -> LoggerService:
    log_level = getattr(logging, config.logging_level.upper())
    return LoggerService(name="koppla", level=log_level)


class KopplaAssessmentSystem:
    """Runs one assessment request at a time through the compiled workflow."""

    def __init__(self, config: AssessmentConfig):
        self.config = config
        self.logger_service = setup_logging(config)
        self.logger = self.logger_service.get_logger()
        self.workflow = create_workflow(config, self.logger)
        self.compiled_workflow = self.workflow.compile()
        self.logger_service.log_info("KopplaAssessmentSystem initialized", "SystemInit")

    def assess(self, request: Dict[str, Any], seeds: Optional[List[SeedEntity]] = None) -> AssessmentReport:
        """
        Assess one request. Every call gets a fresh state and RunContext so ids
        restart at 1 and nothing leaks between assessments.
        """
        raw_request = dict(request) if isinstance(request, dict) else request
        if seeds and isinstance(raw_request, dict):
            raw_request["seeds"] = list(raw_request.get("seeds") or []) + [s.to_dict() for s in seeds]

        state = AssessmentState(raw_request=raw_request, run_context=RunContext())
        subject = raw_request.get("subject", "") if isinstance(raw_request, dict) else ""
        self.logger_service.log_info(f"Starting assessment for: {subject}", "Assess")

        final_state_dict = self.compiled_workflow.invoke(state.to_workflow_dict())
        final_state = AssessmentState.from_workflow_dict(final_state_dict)
        report = AssessmentReport.from_state(final_state)

        if final_state.has_errors():
            summary = create_error_summary([entry.error for entry in final_state.stage_errors])
            self.logger_service.log_warning(
                f"{summary['total_errors']} error(s) by stage: {summary['stage_breakdown']}", "Assess"
            )

        self.logger_service.log_info(
            f"Assessment for '{report.subject}' finished: status={report.status}, flag={report.flag}",
            "Assess",
        )
        return report

    def assess_many(self, requests: List[Dict[str, Any]]) -> List[AssessmentReport]:
        self.logger_service.log_info(f"Processing {len(requests)} request(s)", "AssessMany")
        return [self.assess(request) for request in requests]


def print_summary(report: AssessmentReport):
    verdict = report.verdict
    print("\n" + "=" * 60)
    print(f"Subject: {report.subject}")
    print(f"Status:  {report.status}")
    if verdict is None:
        print("Verdict: none (see errors)")
    else:
        print(f"Verdict: {verdict.flag.value} - {verdict.reason}")
        for detail in verdict.details:
            print(f"  - {detail}")
    print(f"Entities: {report.resolution.summary.total_entities}  "
          f"Edges: {len(report.graph.edges)}  Hypotheses: {len(report.hypotheses)}")
    for suggestion in report.suggestions.suggestions:
        print(f"  [{suggestion.priority.value}] {suggestion.description}")
    for error in report.errors:
        print(f"  ERROR ({error['stage_name']}): {error['message']}")
    print("=" * 60)


def main():
    parser = argparse.ArgumentParser(description="Koppla evidence-correlation and verdict engine")
    parser.add_argument("request", help="Path to the assessment request JSON")
    parser.add_argument("--output", help="Write the full report to this JSON file")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--env-file", default=None, help="Optional .env file to load")
    parser.add_argument("--seed", action="append", default=[],
                        help='Analyst-supplied entity, "Name, ROLE" (repeatable)')
    parser.add_argument("--export-graph", help="Write the visualization node/edge export to this JSON file")
    args = parser.parse_args()

    try:
        overrides = {"logging_level": args.log_level} if args.log_level else {}
        config = load_config(args.env_file, **overrides)
        seeds = [SeedEntity.from_cli(value) for value in args.seed]
    except BaseAssessmentException as e:
        print(f"Error: {e}")
        return 2

    try:
        with open(args.request, "r", encoding="utf-8") as f:
            request = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: could not read request {args.request}: {e}")
        return 2

    system = KopplaAssessmentSystem(config)
    report = system.assess(request, seeds=seeds)
    print_summary(report)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, default=str)
        print(f"\nReport saved to {args.output}")

    if args.export_graph:
        with open(args.export_graph, "w", encoding="utf-8") as f:
            json.dump(export_for_visualization(report.graph), f, indent=2, default=str)
        print(f"Graph export saved to {args.export_graph}")

    return 0 if report.status == "completed" else 1


if __name__ == "__main__":
    exit(main())
