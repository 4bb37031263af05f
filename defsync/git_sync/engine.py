"""Repository engine primitives backed by GitPython."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from git import Repo, Reference
from git.exc import GitError, ODBError
from git.objects import Commit

from .branch_utils import resolve_reference, reference_name
from .clone import clone_repository
from .pull import PullResult, pull_branch

# Exceptions the engine raises for repository-level failures
ENGINE_ERRORS = (GitError, ODBError, ValueError, OSError)

_COMMIT_ID_PATTERN = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")


@dataclass(frozen=True)
class CommitId:
    """A validated, full-length commit object id."""
    hexsha: str

    def __str__(self) -> str:
        return self.hexsha


class RepositoryEngine:
    """
    The operations the synchronizer needs from git.

    Each method either succeeds or raises one of ``ENGINE_ERRORS``. Repository
    handles are plain ``git.Repo`` objects; the engine keeps no state.
    """

    def __init__(self):
        self.logger = logging.getLogger('defsync.git_sync.engine')

    def open(self, path: Path) -> Repo:
        """Open an existing local repository; fails if absent or invalid."""
        return Repo(path)

    def clone(self, url: str, path: Path, branch: str, remote_name: str = "origin") -> Repo:
        return clone_repository(url, path, branch, remote_name)

    def fetch_and_merge(self, repo: Repo, remote_name: str, branch: str) -> PullResult:
        return pull_branch(repo, remote_name, branch)

    def parse_commit_id(self, text: str) -> CommitId:
        """Validate a commit hash. Abbreviated ids are rejected."""
        candidate = (text or "").lower()
        if not _COMMIT_ID_PATTERN.match(candidate):
            raise ValueError(
                f"invalid commit hash {text!r}: expected 40 or 64 hexadecimal characters"
            )
        return CommitId(candidate)

    def set_head_detached(self, repo: Repo, commit_id: CommitId) -> None:
        # repo.commit() raises before HEAD is touched if the object is missing
        commit = repo.commit(commit_id.hexsha)
        repo.head.set_reference(commit, logmsg=f"defsync: detach at {commit.hexsha}")
        self.logger.debug(f"HEAD detached at {commit.hexsha[:8]}")

    def resolve_reference(self, repo: Repo, name: str) -> Tuple[Commit, Optional[Reference]]:
        return resolve_reference(repo, name)

    def reference_name(self, reference: Reference) -> Optional[str]:
        return reference_name(reference)

    def set_head(self, repo: Repo, name: str) -> None:
        """Attach HEAD to a branch; any other reference detaches HEAD at its commit."""
        reference = Reference.from_path(repo, name)
        if name.startswith("refs/heads/"):
            repo.head.set_reference(reference, logmsg=f"defsync: attach to {name}")
        else:
            repo.head.set_reference(reference.commit, logmsg=f"defsync: detach at {name}")
        self.logger.debug(f"HEAD set to {name}")

    def checkout_head(self, repo: Repo) -> None:
        """Make the index and the working tree match HEAD."""
        repo.head.reset(index=True, working_tree=True)
