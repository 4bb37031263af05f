"""Error taxonomy for definitions synchronization."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class ErrorKind(Enum):
    """Kinds of failure a synchronization operation can report."""
    CLONE_FAILED = "clone_failed"
    FAILED_TO_UPDATE_DEFINITIONS = "failed_to_update_definitions"
    VERSION_SET_FAILURE = "version_set_failure"


class DefinitionsError(Exception):
    """
    A typed synchronization failure.

    The underlying engine error, when there is one, is kept both as ``cause``
    and as ``__cause__`` (callers raise it with ``raise ... from error``).
    """

    def __init__(self, kind: ErrorKind, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"DefinitionsError({self.kind.value!r}, {self.message!r})"


@dataclass
class ErrorResponse:
    """Standardized error response format for tool callers."""
    error: str
    error_code: str
    message: str
    timestamp: str
    category: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "error": self.error,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp,
            "category": self.category
        }
        if self.context:
            result["context"] = self.context
        return result


def create_error_response(error: DefinitionsError, context: Dict[str, Any] = None) -> ErrorResponse:
    """Build an ErrorResponse for a DefinitionsError and log it."""
    context = dict(context or {})
    if error.cause is not None:
        context.setdefault("cause_type", type(error.cause).__name__)

    response = ErrorResponse(
        error="Definitions synchronization failed",
        error_code=error.kind.value.upper(),
        message=error.message,
        timestamp=datetime.now().isoformat(),
        category="git_sync",
        context=context or None
    )

    logging.getLogger('defsync.error_handler').error(
        f"Synchronization error: {error.message}",
        extra={
            'operation': context.get('operation'),
            'error_code': response.error_code
        }
    )

    return response
