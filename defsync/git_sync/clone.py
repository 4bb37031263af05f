"""Repository cloning utilities using GitPython."""

import logging
from pathlib import Path

from git import Repo


def clone_repository(repository_url: str, local_dir: Path, branch: str, remote_name: str = "origin") -> Repo:
    """
    Clone a remote repository into the local directory.

    The clone checks out ``branch`` and keeps every remote branch as a
    remote-tracking reference, so later fetches and main-line lookups work
    without re-cloning.

    Args:
        repository_url: URL (or local path) of the remote repository
        local_dir: Target directory; must be absent or empty
        branch: Branch to check out after cloning
        remote_name: Name given to the remote in the clone

    Returns:
        The cloned repository

    Raises:
        git.GitCommandError: if git refuses or fails to clone
    """
    logger = logging.getLogger('defsync.git_sync.clone')
    local_dir = Path(local_dir)

    # Ensure parent directory exists
    local_dir.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Cloning repository from {repository_url} as '{remote_name}' (branch '{branch}') into {local_dir}")
    repo = Repo.clone_from(repository_url, local_dir, branch=branch, origin=remote_name)
    logger.info(f"Repository cloned successfully from {repository_url}")

    return repo
