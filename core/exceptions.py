# koppla/core/exceptions.py

"""
Custom exceptions for the Koppla assessment engine.
Provides a structured error hierarchy, consistent error handling,
and utility functions for error management and reporting.
"""

from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BaseAssessmentException(Exception):
    """
    Base exception class for all assessment engine errors.
    All custom exceptions in the engine should inherit from this class.
    """

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                 stage_name: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            severity: Severity level of the error
            stage_name: Name of the pipeline stage where the error occurred
            context: Additional context information (e.g., entity_id, source, field)
        """
        self.message = message
        self.severity = severity
        self.stage_name = stage_name
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        stage_info = f"[{self.stage_name}] " if self.stage_name else ""
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items()) if self.context else ""
        if context_str:
            return f"{stage_info}{self.message} (Context: {context_str})"
        return f"{stage_info}{self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'message': self.message,
            'severity': self.severity.value,
            'stage_name': self.stage_name,
            'context': self.context,
            'exception_type': self.__class__.__name__
        }

    @staticmethod
    def _without_context(kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """Drop the raw context kwarg once it has been merged into the subclass context"""
        return {k: v for k, v in kwargs.items() if k != 'context'}

    @staticmethod
    def _merge_context(existing_context: Dict[str, Any], kwargs_context: Dict[str, Any]) -> Dict[str, Any]:
        """Safely merge context dictionaries"""
        merged = kwargs_context.copy() if kwargs_context else {}
        merged.update({k: v for k, v in existing_context.items() if v is not None})
        return merged


# =============================================================================
# Configuration and Stage Execution Exceptions
# =============================================================================

class ConfigurationError(BaseAssessmentException):
    """Raised when engine or stage configuration is invalid or missing."""
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        self.config_key = config_key
        context = self._merge_context({"config_key": config_key}, kwargs.get("context", {}))
        super().__init__(message, severity=kwargs.get('severity', ErrorSeverity.CRITICAL), context=context,
                         stage_name=kwargs.get('stage_name'))


class StageExecutionError(BaseAssessmentException):
    """
    A general error indicating a failure during a stage's run.
    Used to wrap unexpected exceptions so the workflow can record and route them.
    """
    def __init__(self, message: str, **kwargs):
        super().__init__(message, severity=kwargs.get('severity', ErrorSeverity.HIGH),
                         stage_name=kwargs.get('stage_name'), context=kwargs.get('context'))


# =============================================================================
# Data Validation Exceptions
# =============================================================================

class ValidationError(BaseAssessmentException):
    """Base class for data validation failures at stage boundaries."""
    def __init__(self, message: str, data_type: Optional[str] = None,
                 missing_fields: Optional[List[str]] = None, **kwargs):
        self.data_type = data_type
        self.missing_fields = missing_fields or []
        context = self._merge_context({"data_type": data_type, "missing_fields": missing_fields},
                                      kwargs.get("context", {}))
        super().__init__(message, severity=kwargs.get('severity', ErrorSeverity.MEDIUM), context=context,
                         stage_name=kwargs.get('stage_name'))


class InputValidationError(ValidationError):
    """Raised when an input record is missing required data."""
    pass


class DataFormatError(ValidationError):
    """Raised when a field has the wrong type or an out-of-range value."""
    def __init__(self, message: str, expected_format: Optional[str] = None,
                 actual_format: Optional[str] = None, **kwargs):
        self.expected_format = expected_format
        self.actual_format = actual_format
        context = self._merge_context({"expected_format": expected_format, "actual_format": actual_format},
                                      kwargs.get("context", {}))
        super().__init__(message, context=context, **self._without_context(kwargs))


class SchemaValidationError(ValidationError):
    """Raised when a request document doesn't match the expected shape."""
    pass


class StateValidationError(ValidationError):
    """Raised when `AssessmentState` is missing the output of an upstream stage."""
    def __init__(self, message: str, state_field: Optional[str] = None, **kwargs):
        self.state_field = state_field
        context = self._merge_context({"state_field": state_field}, kwargs.get("context", {}))
        super().__init__(message, data_type="state", context=context, **self._without_context(kwargs))


# =============================================================================
# Processing Exceptions
# =============================================================================

class ProcessingError(BaseAssessmentException):
    """Base class for errors raised while a stage processes its inputs."""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, severity=kwargs.get('severity', ErrorSeverity.HIGH),
                         stage_name=kwargs.get('stage_name'), context=kwargs.get('context'))


class EntityResolutionError(ProcessingError):
    """Raised when raw mentions cannot be merged into canonical entities."""
    pass


class GraphConstructionError(ProcessingError):
    """Raised when the network graph cannot be assembled or decorated."""
    def __init__(self, message: str, node_id: Optional[str] = None, **kwargs):
        self.node_id = node_id
        context = self._merge_context({"node_id": node_id}, kwargs.get("context", {}))
        super().__init__(message, context=context, **self._without_context(kwargs))


# =============================================================================
# Helper Functions
# =============================================================================

def validate_required_fields(data: Dict, required_fields: List[str],
                             operation: str = "operation") -> None:
    """
    Helper function to validate required fields in a dictionary.
    Raises InputValidationError if any field is missing or empty.
    """
    if not isinstance(data, dict):
        raise DataFormatError(
            f"Expected a mapping for {operation}, got {type(data).__name__}",
            expected_format="dict",
            actual_format=type(data).__name__,
            context={"operation": operation}
        )

    missing_fields = [field for field in required_fields
                      if field not in data or data[field] is None or data[field] == ""]

    if missing_fields:
        raise InputValidationError(
            f"Missing required fields for {operation}: {', '.join(missing_fields)}",
            missing_fields=missing_fields,
            context={"operation": operation}
        )


def create_error_summary(exceptions: List[BaseAssessmentException]) -> Dict[str, Any]:
    """
    Create a summary of multiple exceptions, providing breakdowns by severity,
    stage, and exception type.
    """
    if not exceptions:
        return {"total_errors": 0, "summary": "No errors"}

    severity_counts: Dict[str, int] = {}
    stage_counts: Dict[str, int] = {}
    error_types: Dict[str, int] = {}

    for exc in exceptions:
        error_type = exc.__class__.__name__
        error_types[error_type] = error_types.get(error_type, 0) + 1

        if isinstance(exc, BaseAssessmentException):
            severity = exc.severity.value
            severity_counts[severity] = severity_counts.get(severity, 0) + 1
            if exc.stage_name:
                stage_counts[exc.stage_name] = stage_counts.get(exc.stage_name, 0) + 1
        else:
            severity_counts["unknown"] = severity_counts.get("unknown", 0) + 1

    return {
        "total_errors": len(exceptions),
        "severity_breakdown": severity_counts,
        "stage_breakdown": stage_counts,
        "error_type_breakdown": error_types,
        "has_critical_errors": any(
            isinstance(exc, BaseAssessmentException) and exc.severity == ErrorSeverity.CRITICAL
            for exc in exceptions
        )
    }
