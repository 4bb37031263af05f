"""Utility classes and functions for Git synchronization."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from ..errors import DefinitionsError
from .error_types import suggested_action

if TYPE_CHECKING:
    from .repository_info import RepositoryInfo


@dataclass
class GitSyncResult:
    """Result of a Git synchronization operation."""
    success: bool
    message: str
    operation: str
    error_code: Optional[str] = None
    error: Optional[DefinitionsError] = None
    branch_used: Optional[str] = None
    commit: Optional[str] = None
    repository_info: Optional["RepositoryInfo"] = None

    def raise_for_error(self) -> None:
        """Re-raise the carried error, if this result is a failure."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": self.success,
            "message": self.message,
            "operation": self.operation,
        }
        if self.error_code:
            result["error_code"] = self.error_code
        if self.error is not None:
            result["suggested_action"] = suggested_action(self.error.kind).value
        if self.branch_used:
            result["branch_used"] = self.branch_used
        if self.commit:
            result["commit"] = self.commit
        if self.repository_info is not None:
            info = self.repository_info
            result["repository_info"] = {
                "local_exists": info.local_exists,
                "head_state": info.head_state.value,
                "branch": info.branch,
                "commit": info.commit,
                "remote_url": info.remote_url,
                "tracked_branch": info.tracked_branch,
            }
        return result


def create_git_sync_result(
    success: bool,
    message: str,
    operation: str,
    branch_used: Optional[str] = None,
    commit: Optional[str] = None,
    repository_info: Optional["RepositoryInfo"] = None
) -> GitSyncResult:
    """
    Helper function to create successful (or informational) GitSyncResult instances.

    Args:
        success: Whether the operation was successful
        message: Descriptive message about the operation result
        operation: Name of the operation that was performed
        branch_used: Optional branch name that was used in the operation
        commit: Optional commit id HEAD resolves to after the operation
        repository_info: Optional repository information

    Returns:
        GitSyncResult instance with all fields populated
    """
    return GitSyncResult(
        success=success,
        message=message,
        operation=operation,
        branch_used=branch_used,
        commit=commit,
        repository_info=repository_info
    )


def create_failed_result(error: DefinitionsError, operation: str) -> GitSyncResult:
    """Wrap a DefinitionsError into a failed GitSyncResult."""
    return GitSyncResult(
        success=False,
        message=error.message,
        operation=operation,
        error_code=error.kind.value.upper(),
        error=error
    )
