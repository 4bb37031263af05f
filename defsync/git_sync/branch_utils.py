"""Reference and HEAD utilities using GitPython."""

import logging
from typing import Optional, Tuple

from git import Repo, Reference
from git.objects import Commit

from .repository_info import HeadState


def resolve_reference(repo: Repo, name: str) -> Tuple[Commit, Optional[Reference]]:
    """
    Resolve a revision name to its commit and, when it names one, its reference.

    ``"main"`` resolves through git's usual lookup order (``refs/heads/main``
    before ``refs/remotes/main`` and so on). A bare commit id resolves to a
    commit with no reference.

    Raises:
        git.GitCommandError: if the name does not resolve to a commit
    """
    logger = logging.getLogger('defsync.git_sync.branch_utils')

    hexsha = repo.git.rev_parse("--verify", f"{name}^{{commit}}")
    commit = repo.commit(hexsha)

    full_name = repo.git.rev_parse("--symbolic-full-name", name)
    if not full_name.startswith("refs/"):
        logger.debug(f"'{name}' resolved to {hexsha[:8]} without a reference")
        return commit, None

    logger.debug(f"'{name}' resolved to {full_name} at {hexsha[:8]}")
    return commit, Reference.from_path(repo, full_name)


def reference_name(reference: Reference) -> Optional[str]:
    """Full name of a reference (e.g. ``refs/heads/main``), or None if it has none."""
    return getattr(reference, "path", None) or None


def get_current_local_branch(repo: Repo) -> Optional[str]:
    """Get the current local branch name, or None when HEAD is detached."""
    if repo.head.is_detached:
        return None
    return repo.head.ref.name


def describe_head(repo: Repo) -> Tuple[HeadState, Optional[str], Optional[str]]:
    """Return (state, branch, commit) for the repository HEAD."""
    branch = get_current_local_branch(repo)
    commit = repo.head.commit.hexsha if repo.head.is_valid() else None

    if branch is None:
        return HeadState.DETACHED, None, commit
    return HeadState.BRANCH_ATTACHED, branch, commit
