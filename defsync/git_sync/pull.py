"""Fetch-and-merge of the tracked branch using GitPython."""

import logging
from dataclasses import dataclass
from enum import Enum

from git import Repo, RemoteReference


class PullOutcome(Enum):
    """What happened to the local branch during a pull."""
    CREATED = "created"
    UP_TO_DATE = "up_to_date"
    FAST_FORWARD = "fast_forward"
    MERGED = "merged"


@dataclass
class PullResult:
    outcome: PullOutcome
    commit: str


def _head_is_on(repo: Repo, branch: str) -> bool:
    return not repo.head.is_detached and repo.head.ref.name == branch


def pull_branch(repo: Repo, remote_name: str, branch: str) -> PullResult:
    """
    Fetch ``branch`` from ``remote_name`` and bring the local branch up to it.

    When HEAD is attached to the branch, the working tree follows through
    ``git merge``. Otherwise only the branch reference moves, which is only
    possible for a fast-forward.

    Raises:
        ValueError: if the remote is not configured, or the branches diverged
            while HEAD is not on the branch
        git.GitCommandError: if fetching or merging fails
    """
    logger = logging.getLogger('defsync.git_sync.pull')

    remote = repo.remote(remote_name)
    remote_ref_path = f"refs/remotes/{remote_name}/{branch}"

    logger.debug(f"Fetching '{branch}' from remote '{remote_name}'")
    remote.fetch(f"+refs/heads/{branch}:{remote_ref_path}")

    remote_ref = RemoteReference(repo, remote_ref_path)
    remote_commit = remote_ref.commit

    try:
        local_head = repo.heads[branch]
    except IndexError:
        local_head = None

    if local_head is None:
        local_head = repo.create_head(branch, remote_commit)
        local_head.set_tracking_branch(remote_ref)
        logger.info(f"Created local branch '{branch}' at {remote_commit.hexsha[:8]}")
        return PullResult(PullOutcome.CREATED, remote_commit.hexsha)

    local_commit = local_head.commit
    if local_commit == remote_commit or repo.is_ancestor(remote_commit, local_commit):
        logger.info(f"Branch '{branch}' is already up to date with {remote_name}/{branch}")
        return PullResult(PullOutcome.UP_TO_DATE, local_commit.hexsha)

    if repo.is_ancestor(local_commit, remote_commit):
        if _head_is_on(repo, branch):
            repo.git.merge("--ff-only", remote_ref_path)
        else:
            local_head.set_commit(remote_commit, logmsg=f"fast-forward from {remote_name}/{branch}")
        logger.info(
            f"Fast-forwarded '{branch}' {local_commit.hexsha[:8]}..{remote_commit.hexsha[:8]}"
        )
        return PullResult(PullOutcome.FAST_FORWARD, remote_commit.hexsha)

    if not _head_is_on(repo, branch):
        raise ValueError(
            f"branch '{branch}' has diverged from {remote_name}/{branch} "
            f"and HEAD is not on it, cannot merge"
        )

    repo.git.merge("--no-edit", remote_ref_path)
    merged = repo.head.commit.hexsha
    logger.info(f"Merged {remote_name}/{branch} into '{branch}' ({merged[:8]})")
    return PullResult(PullOutcome.MERGED, merged)
