# koppla/core/base_stage.py
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from config.settings import BaseEngineConfig
from core.state import AssessmentState
from core.exceptions import (
    BaseAssessmentException,
    ConfigurationError,
    StageExecutionError,
    StateValidationError,
    ErrorSeverity,
)


@dataclass
class StageMetrics:
    """
    Dataclass to hold performance metrics for a stage.
    """
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    errors: List[str] = field(default_factory=list)
    total_processing_time: float = 0.0
    average_processing_time: float = 0.0
    items_processed: int = 0

    def reset(self):
        self.total_runs = 0
        self.successful_runs = 0
        self.failed_runs = 0
        self.errors = []
        self.total_processing_time = 0.0
        self.average_processing_time = 0.0
        self.items_processed = 0

    def update_average_processing_time(self):
        if self.successful_runs > 0:
            self.average_processing_time = self.total_processing_time / self.successful_runs
        else:
            self.average_processing_time = 0.0

    def add_error(self, error_message: str, max_errors: int = 1000):
        """Adds an error message to the list of errors with bounds checking."""
        if len(self.errors) >= max_errors:
            self.errors.pop(0)
        self.errors.append(error_message)

    def to_dict(self) -> Dict[str, Any]:
        self.update_average_processing_time()
        return {
            "total_runs": self.total_runs,
            "successful_runs": self.successful_runs,
            "failed_runs": self.failed_runs,
            "average_processing_time": self.average_processing_time,
            "items_processed": self.items_processed,
        }


class BaseStage(ABC):
    """
    Abstract Base Class for every stage of the assessment pipeline.
    Provides configuration and logger validation, status logging onto the
    AssessmentState, structured error recording, and metrics tracking.
    """

    # Name used in state bookkeeping and log prefixes
    stage_name: str = "base_stage"

    def __init__(self, config: BaseEngineConfig, logger: logging.Logger):
        """
        Args:
            config: An instance of BaseEngineConfig or a subclass thereof.
            logger: A pre-configured logging.Logger instance.
        """
        if not isinstance(config, BaseEngineConfig):
            raise ConfigurationError(
                f"Config must be an instance of BaseEngineConfig or its subclass, got {type(config)}.",
                config_key="stage_config_type",
                stage_name=self.stage_name,
            )
        if not isinstance(logger, logging.Logger):
            raise ConfigurationError(
                f"Logger must be a logging.Logger instance, got {type(logger)}.",
                config_key="stage_logger_type",
                stage_name=self.stage_name,
            )

        self.config = config
        self.logger: logging.Logger = logger
        self.metrics: StageMetrics = StageMetrics()
        self.logger.debug(f"Stage '{self.stage_name}' initialized with {type(config).__name__}")

    @abstractmethod
    def _run_implementation(self, state: AssessmentState) -> Optional[Dict[str, Any]]:
        """Do the stage's work on the state. May return metrics for the stage result."""
        raise NotImplementedError("Each stage must implement its own '_run_implementation' method.")

    def run(self, state: AssessmentState) -> AssessmentState:
        """
        Main entry point. Records start/finish on the state; stage errors are
        recorded and re-raised so the workflow can route to its failure node.
        """
        if not isinstance(state, AssessmentState):
            raise StageExecutionError(
                f"Input must be an AssessmentState object, got {type(state)}.",
                stage_name=self.stage_name,
                severity=ErrorSeverity.CRITICAL,
            )

        state.start_stage(self.stage_name)
        self.metrics.total_runs += 1
        started = time.perf_counter()
        try:
            stage_metrics = self._run_implementation(state)
        except BaseAssessmentException as e:
            e.stage_name = e.stage_name or self.stage_name
            self._handle_error(state, e)
            raise
        except Exception as e:
            wrapped = StageExecutionError(
                f"Unexpected error in {self.stage_name}: {e}",
                stage_name=self.stage_name,
                context={"original_error_type": type(e).__name__},
            )
            self._handle_error(state, wrapped)
            raise wrapped from e

        elapsed = time.perf_counter() - started
        self.metrics.successful_runs += 1
        self.metrics.total_processing_time += elapsed
        if self.config.enable_metrics:
            stage_metrics = dict(stage_metrics or {})
            stage_metrics["processing_time"] = round(elapsed, 6)
        state.complete_stage(self.stage_name, metrics=stage_metrics)
        return state

    def _require(self, state: AssessmentState, field_name: str):
        """Fetch an upstream output from the state, failing fast if it's missing."""
        value = getattr(state, field_name, None)
        if value is None:
            raise StateValidationError(
                f"{self.stage_name} needs '{field_name}' but it has not been produced",
                state_field=field_name,
                stage_name=self.stage_name,
            )
        return value

    def _update_stage_status(self, state: AssessmentState, status_message: str, level: str = "INFO"):
        """Append a status line to the state and mirror it to the logger."""
        state.add_log(self.stage_name, status_message, level=level)
        self.logger.log(getattr(logging, level.upper()), f"[{self.stage_name}] {status_message}")

    def _handle_error(self, state: AssessmentState, error: BaseAssessmentException):
        self.logger.error(f"[{self.stage_name}] Error: {error.message} (Type: {error.__class__.__name__})")
        state.fail_stage(self.stage_name, error)
        self.metrics.failed_runs += 1
        self.metrics.add_error(error.message)

    def get_metrics(self) -> StageMetrics:
        self.metrics.update_average_processing_time()
        return self.metrics
