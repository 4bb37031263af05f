"""Recovery hints for synchronization error kinds."""

from enum import Enum

from ..errors import ErrorKind


class RecoveryAction(Enum):
    """Types of recovery actions a caller can take."""
    RETRY = "retry"
    USER_ACTION_REQUIRED = "user_action_required"
    ABORT = "abort"


_SUGGESTED_ACTIONS = {
    ErrorKind.CLONE_FAILED: RecoveryAction.RETRY,
    ErrorKind.FAILED_TO_UPDATE_DEFINITIONS: RecoveryAction.RETRY,
    ErrorKind.VERSION_SET_FAILURE: RecoveryAction.USER_ACTION_REQUIRED,
}


def suggested_action(kind: ErrorKind) -> RecoveryAction:
    """Advisory recovery action for an error kind. Nothing in defsync acts on it."""
    return _SUGGESTED_ACTIONS.get(kind, RecoveryAction.ABORT)
