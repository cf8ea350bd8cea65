"""Error taxonomy for the planning subsystem."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Machine-readable error kinds, shared by exceptions and tool results."""
    DATA_SOURCE_UNAVAILABLE = "data_source_unavailable"
    AUTHENTICATION_EXPIRED = "authentication_expired"
    MALFORMED_INPUT = "malformed_input"
    RECONSTRUCTION_EMPTY = "reconstruction_empty"
    ITERATION_BUDGET_EXCEEDED = "iteration_budget_exceeded"
    PERSISTED_ARTIFACT_MISSING = "persisted_artifact_missing"
    MODEL_CALL_FAILED = "model_call_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    UNKNOWN_TOOL = "unknown_tool"
    INTERNAL_ERROR = "internal_error"


class PlannerError(Exception):
    """Base class for all planner errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source


class DataSourceUnavailable(PlannerError):
    """Export tool missing or denied, network unreachable, or a timeout."""
    kind = ErrorKind.DATA_SOURCE_UNAVAILABLE


class AuthenticationExpired(PlannerError):
    """Remote source rejected the session (401/403) or no session exists."""
    kind = ErrorKind.AUTHENTICATION_EXPIRED


class MalformedInput(PlannerError):
    """Tool arguments failed validation."""
    kind = ErrorKind.MALFORMED_INPUT


class IterationBudgetExceeded(PlannerError):
    """The tool-use loop did not converge within its ceiling."""
    kind = ErrorKind.ITERATION_BUDGET_EXCEEDED

    def __init__(self, message: str, transcript=None, iterations: int = 0):
        super().__init__(message)
        self.transcript = transcript
        self.iterations = iterations


class ModelCallFailed(PlannerError):
    """The language model call raised and the run cannot continue."""
    kind = ErrorKind.MODEL_CALL_FAILED


class PersistenceFailed(PlannerError):
    """Planning artifacts could not be written."""
    kind = ErrorKind.PERSISTENCE_FAILED


class PersistedArtifactMissing(PlannerError):
    """No completed run exists, or a file it references is gone."""
    kind = ErrorKind.PERSISTED_ARTIFACT_MISSING
