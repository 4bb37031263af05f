"""Repository information and state data structures."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class HeadState(Enum):
    """Enumeration of possible local HEAD states."""
    ABSENT = "absent"                    # No valid local repository
    BRANCH_ATTACHED = "branch_attached"  # HEAD points at a branch reference
    DETACHED = "detached"                # HEAD points directly at a commit


@dataclass
class RepositoryInfo:
    """Information about the local mirror."""
    local_exists: bool
    head_state: HeadState
    branch: Optional[str]
    commit: Optional[str]
    remote_url: Optional[str]
    tracked_branch: str
