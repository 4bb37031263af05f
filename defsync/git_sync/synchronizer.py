"""Synchronization of a local definitions mirror with its remote repository."""

import logging
from typing import Callable, Optional

from git import Repo

from ..config import GitConfig
from ..errors import DefinitionsError, ErrorKind
from .branch_utils import describe_head
from .engine import ENGINE_ERRORS, RepositoryEngine
from .repository_info import HeadState, RepositoryInfo
from .utils import GitSyncResult, create_failed_result, create_git_sync_result


class DefinitionsSynchronizer:
    """
    Keeps one local directory in sync with one remote git repository.

    Every public operation first resolves the local repository (opening it,
    or cloning it when it cannot be opened) and then acts on that handle.
    Handles are never kept between operations; all state lives on disk.

    Operations return a GitSyncResult. A failed result carries exactly one
    DefinitionsError whose ``kind`` says what failed and whose ``cause`` is
    the underlying git error. Nothing is retried or rolled back here: a
    checkout failure after HEAD has moved leaves HEAD at its new position
    with a stale working tree.
    """

    def __init__(self, config: GitConfig, engine: Optional[RepositoryEngine] = None):
        """
        Initialize the synchronizer.

        Args:
            config: Connection parameters; never modified
            engine: Repository engine, a GitPython-backed one by default
        """
        self.config = config
        self.engine = engine or RepositoryEngine()
        self.logger = logging.getLogger('defsync.git_sync')

    # Repository resolution

    def _clone_repository(self) -> Repo:
        try:
            return self.engine.clone(
                self.config.repository_url,
                self.config.repository_local_dir,
                self.config.remote_branch,
                self.config.remote_name
            )
        except ENGINE_ERRORS as error:
            raise DefinitionsError(
                ErrorKind.CLONE_FAILED,
                f"failed to clone repository: {error}",
                error
            ) from error

    def _get_repository(self) -> Repo:
        """Open the local repository, cloning it if it cannot be opened."""
        try:
            return self.engine.open(self.config.repository_local_dir)
        except ENGINE_ERRORS as error:
            self.logger.info(
                f"No usable repository at {self.config.repository_local_dir} "
                f"({type(error).__name__}), cloning {self.config.repository_url}"
            )
        return self._clone_repository()

    def _run(self, operation: str, action: Callable[[Repo], GitSyncResult]) -> GitSyncResult:
        self.logger.debug(f"Starting {operation}")
        try:
            with self._get_repository() as repo:
                result = action(repo)
        except DefinitionsError as error:
            self.logger.error(f"{operation} failed: {error.message}")
            return create_failed_result(error, operation)

        self.logger.info(f"✓ {result.message}")
        return result

    @staticmethod
    def _version_error(message: str, cause: Optional[BaseException] = None) -> DefinitionsError:
        return DefinitionsError(ErrorKind.VERSION_SET_FAILURE, message, cause)

    # Public operations

    def download(self) -> GitSyncResult:
        """Make sure the local repository exists. Never fetches for an existing one."""
        def action(repo: Repo) -> GitSyncResult:
            return create_git_sync_result(
                success=True,
                message=f"Definitions repository available at {self.config.repository_local_dir}",
                operation="download"
            )

        return self._run("download", action)

    def update(self) -> GitSyncResult:
        """Fetch the tracked branch and fast-forward or merge the local branch to it."""
        remote_name = self.config.remote_name
        branch = self.config.remote_branch

        def action(repo: Repo) -> GitSyncResult:
            try:
                pulled = self.engine.fetch_and_merge(repo, remote_name, branch)
            except ENGINE_ERRORS as error:
                raise DefinitionsError(
                    ErrorKind.FAILED_TO_UPDATE_DEFINITIONS,
                    f"failed to update definitions: {error}",
                    error
                ) from error

            return create_git_sync_result(
                success=True,
                message=f"Definitions updated from {remote_name}/{branch} ({pulled.outcome.value})",
                operation="update",
                branch_used=branch,
                commit=pulled.commit
            )

        return self._run("update", action)

    def set_version(self, commit_hash: str) -> GitSyncResult:
        """Detach HEAD at ``commit_hash`` and check out its tree."""
        def action(repo: Repo) -> GitSyncResult:
            try:
                commit_id = self.engine.parse_commit_id(commit_hash)
            except ValueError as error:
                raise self._version_error(f"failed to set version: {error}", error) from error

            try:
                self.engine.set_head_detached(repo, commit_id)
            except ENGINE_ERRORS as error:
                raise self._version_error(f"failed to set version: {error}", error) from error

            try:
                self.engine.checkout_head(repo)
            except ENGINE_ERRORS as error:
                raise self._version_error(f"failed to set version: {error}", error) from error

            return create_git_sync_result(
                success=True,
                message=f"Definitions set to version {commit_id.hexsha}",
                operation="set_version",
                commit=commit_id.hexsha
            )

        return self._run("set_version", action)

    def set_version_to_latest(self) -> GitSyncResult:
        """Attach HEAD to the main-line branch and check out its tree."""
        main_branch = self.config.main_branch

        def action(repo: Repo) -> GitSyncResult:
            try:
                commit, reference = self.engine.resolve_reference(repo, main_branch)
            except ENGINE_ERRORS as error:
                raise self._version_error(f"failed to set version: {error}", error) from error

            if reference is None:
                raise self._version_error("found no reference for main branch")

            name = self.engine.reference_name(reference)
            if name is None:
                raise self._version_error("found no name for main branch reference")

            try:
                self.engine.set_head(repo, name)
            except ENGINE_ERRORS as error:
                raise self._version_error(f"failed to set head: {error}", error) from error

            try:
                self.engine.checkout_head(repo)
            except ENGINE_ERRORS as error:
                raise self._version_error(f"failed to checkout head: {error}", error) from error

            return create_git_sync_result(
                success=True,
                message=f"Definitions set to latest version of {name}",
                operation="set_version_to_latest",
                branch_used=main_branch,
                commit=commit.hexsha
            )

        return self._run("set_version_to_latest", action)

    def get_repository_status(self) -> GitSyncResult:
        """Describe the local repository without cloning or fetching anything."""
        try:
            repo = self.engine.open(self.config.repository_local_dir)
        except ENGINE_ERRORS as error:
            self.logger.debug(f"Status: no usable repository ({error})")
            info = RepositoryInfo(
                local_exists=False,
                head_state=HeadState.ABSENT,
                branch=None,
                commit=None,
                remote_url=self.config.repository_url,
                tracked_branch=self.config.remote_branch
            )
            return create_git_sync_result(
                success=True,
                message="No local definitions repository",
                operation="status",
                repository_info=info
            )

        with repo:
            head_state, branch, commit = describe_head(repo)

        info = RepositoryInfo(
            local_exists=True,
            head_state=head_state,
            branch=branch,
            commit=commit,
            remote_url=self.config.repository_url,
            tracked_branch=self.config.remote_branch
        )
        where = f"branch '{branch}'" if branch else "detached HEAD"
        return create_git_sync_result(
            success=True,
            message=f"Local definitions repository on {where} at {commit}",
            operation="status",
            branch_used=branch,
            commit=commit,
            repository_info=info
        )
