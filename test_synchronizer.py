#!/usr/bin/env python3
"""
Integration tests for DefinitionsSynchronizer against real git repositories.

Each test builds a bare remote in a temporary directory, so no network
access is needed.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from git import GitCommandError, Repo

from defsync.config import GitConfig
from defsync.errors import DefinitionsError, ErrorKind
from defsync.git_sync import DefinitionsSynchronizer, HeadState, RepositoryEngine
from repo_fixtures import RemoteRepository, read_tree


def create_test_config(temp_path: Path, remote_url: str, branch: str = "main") -> GitConfig:
    """Create a test configuration with a local directory under temp_path."""
    return GitConfig(
        repository_url=remote_url,
        repository_local_dir=temp_path / "local",
        remote_name="origin",
        remote_branch=branch,
        log_level="DEBUG"
    )


def create_remote_with_history(temp_path: Path):
    """Remote with two commits on main. Returns (remote, first, second)."""
    remote = RemoteRepository(temp_path)
    first = remote.commit(
        {"rules/a.yaml": "version: 1\n", "README.md": "# Definitions\n", "old.txt": "gone later\n"},
        "Initial definitions"
    )
    second = remote.commit(
        {"rules/a.yaml": "version: 2\n", "rules/b.yaml": "new: true\n", "old.txt": None},
        "Second definitions"
    )
    return remote, first, second


def test_download_clones_only_once():
    """Two downloads on an empty path result in exactly one clone."""
    print("Testing idempotent download")

    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)

        engine = RepositoryEngine()
        with patch.object(engine, "clone", wraps=engine.clone) as clone_spy:
            synchronizer = DefinitionsSynchronizer(config, engine)

            first_result = synchronizer.download()
            second_result = synchronizer.download()

        assert first_result.success, first_result.message
        assert second_result.success, second_result.message
        assert clone_spy.call_count == 1

        repo = Repo(config.repository_local_dir)
        assert not repo.head.is_detached
        assert repo.active_branch.name == "main"
        assert repo.head.commit.hexsha == second

        print("  ✓ Repository cloned once and reused")


def test_existing_repository_is_not_recloned():
    """A valid local repository is opened even when the configured URL is unreachable."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)

        assert DefinitionsSynchronizer(config).download().success

        unreachable = GitConfig(
            repository_url=str(temp_path / "does-not-exist.git"),
            repository_local_dir=config.repository_local_dir
        )
        engine = RepositoryEngine()
        with patch.object(engine, "clone", wraps=engine.clone) as clone_spy:
            synchronizer = DefinitionsSynchronizer(unreachable, engine)
            download_result = synchronizer.download()
            latest_result = synchronizer.set_version_to_latest()

        assert download_result.success, download_result.message
        assert latest_result.success, latest_result.message
        assert latest_result.commit == second
        clone_spy.assert_not_called()


def test_clone_failure_is_reported_as_clone_failed():
    """An unreachable remote with no local repository yields CLONE_FAILED."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        config = create_test_config(temp_path, str(temp_path / "missing.git"))

        result = DefinitionsSynchronizer(config).download()

        assert not result.success
        assert result.error_code == "CLONE_FAILED"
        assert result.error.kind == ErrorKind.CLONE_FAILED
        assert result.message.startswith("failed to clone repository")
        assert isinstance(result.error.cause, GitCommandError)
        assert result.error.__cause__ is result.error.cause


def test_non_repository_directory_falls_back_to_clone():
    """A directory that is not a repository is treated as absent."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, _ = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)

        # Empty directory: git can clone into it
        config.repository_local_dir.mkdir()
        assert DefinitionsSynchronizer(config).download().success
        assert (config.repository_local_dir / ".git").is_dir()

        # Non-empty, non-repository directory: the clone attempt fails
        other = GitConfig(repository_url=remote.url, repository_local_dir=temp_path / "junk")
        other.repository_local_dir.mkdir()
        (other.repository_local_dir / "stray.txt").write_text("not a repository")

        result = DefinitionsSynchronizer(other).download()
        assert not result.success
        assert result.error.kind == ErrorKind.CLONE_FAILED


def test_update_fast_forwards_tracked_branch():
    """update() brings the attached tracked branch and working tree to the remote tip."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, _ = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.download().success
        third = remote.commit({"rules/c.yaml": "third: true\n"}, "Third definitions")

        result = synchronizer.update()

        assert result.success, result.message
        assert result.commit == third
        assert "fast_forward" in result.message
        assert Repo(config.repository_local_dir).head.commit.hexsha == third
        assert (config.repository_local_dir / "rules" / "c.yaml").read_text() == "third: true\n"

        # Nothing new upstream
        again = synchronizer.update()
        assert again.success
        assert "up_to_date" in again.message


def test_update_with_custom_remote_name():
    """A repository cloned under a non-default remote name can be updated from it."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, _ = create_remote_with_history(temp_path)
        config = GitConfig(
            repository_url=remote.url,
            repository_local_dir=temp_path / "local",
            remote_name="upstream"
        )
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.download().success
        repo = Repo(config.repository_local_dir)
        assert [r.name for r in repo.remotes] == ["upstream"]
        assert repo.active_branch.tracking_branch().name == "upstream/main"

        third = remote.commit({"rules/c.yaml": "third: true\n"}, "Third definitions")
        result = synchronizer.update()

        assert result.success, result.message
        assert result.commit == third
        assert Repo(config.repository_local_dir).head.commit.hexsha == third


def test_update_failure_is_reported():
    """A fetch failure after the repository was resolved yields FAILED_TO_UPDATE_DEFINITIONS."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.download().success
        shutil.rmtree(remote.path)

        result = synchronizer.update()

        assert not result.success
        assert result.error.kind == ErrorKind.FAILED_TO_UPDATE_DEFINITIONS
        assert result.message.startswith("failed to update definitions: ")
        assert isinstance(result.error.cause, GitCommandError)
        # Local state untouched
        assert Repo(config.repository_local_dir).head.commit.hexsha == second


def test_set_version_detaches_head_at_commit():
    """set_version() detaches HEAD at the commit and materializes its tree exactly."""
    print("Testing set_version detach semantics")

    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, first, _ = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        result = synchronizer.set_version(first)

        assert result.success, result.message
        assert result.commit == first

        repo = Repo(config.repository_local_dir)
        assert repo.head.is_detached
        assert repo.head.commit.hexsha == first
        assert read_tree(config.repository_local_dir) == {
            "README.md": "# Definitions\n",
            "old.txt": "gone later\n",
            "rules/a.yaml": "version: 1\n",
        }

        # Same hash again converges to the same state
        assert synchronizer.set_version(first.upper()).success
        assert Repo(config.repository_local_dir).head.commit.hexsha == first

        print("  ✓ HEAD detached with matching working tree")


def test_set_version_rejects_malformed_hash():
    """A malformed hash fails with VERSION_SET_FAILURE and leaves HEAD unchanged."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)
        assert synchronizer.download().success

        for bad_hash in ("not-a-hash", second[:12], ""):
            result = synchronizer.set_version(bad_hash)

            assert not result.success
            assert result.error.kind == ErrorKind.VERSION_SET_FAILURE
            assert result.message.startswith("failed to set version: ")
            assert isinstance(result.error.cause, ValueError)

        repo = Repo(config.repository_local_dir)
        assert repo.active_branch.name == "main"
        assert repo.head.commit.hexsha == second


def test_set_version_unknown_commit_leaves_head():
    """A well-formed hash that is not in the repository fails before HEAD moves."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, _, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)
        assert synchronizer.download().success

        result = synchronizer.set_version("0123456789abcdef0123456789abcdef01234567")

        assert not result.success
        assert result.error.kind == ErrorKind.VERSION_SET_FAILURE

        repo = Repo(config.repository_local_dir)
        assert not repo.head.is_detached
        assert repo.head.commit.hexsha == second


def test_set_version_to_latest_reattaches_main():
    """set_version_to_latest() attaches HEAD to main and restores the tip tree."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, first, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.set_version(first).success
        result = synchronizer.set_version_to_latest()

        assert result.success, result.message
        assert result.commit == second
        assert result.branch_used == "main"

        repo = Repo(config.repository_local_dir)
        assert not repo.head.is_detached
        assert repo.active_branch.name == "main"
        assert read_tree(config.repository_local_dir) == {
            "README.md": "# Definitions\n",
            "rules/a.yaml": "version: 2\n",
            "rules/b.yaml": "new: true\n",
        }


def test_update_then_latest_converges_to_newest_commit():
    """While pinned, update() advances main without moving HEAD; latest then follows it."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, first, _ = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.set_version(first).success
        third = remote.commit({"rules/a.yaml": "version: 3\n"}, "Third definitions")

        update_result = synchronizer.update()
        assert update_result.success, update_result.message

        repo = Repo(config.repository_local_dir)
        assert repo.head.is_detached
        assert repo.head.commit.hexsha == first
        assert repo.heads["main"].commit.hexsha == third

        latest_result = synchronizer.set_version_to_latest()
        assert latest_result.success, latest_result.message
        assert latest_result.commit == third
        assert (config.repository_local_dir / "rules" / "a.yaml").read_text() == "version: 3\n"


def test_missing_main_branch_fails_without_moving_head():
    """Without a main branch, set_version_to_latest() fails and HEAD stays put."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote = RemoteRepository(temp_path, branch="develop")
        tip = remote.commit({"rules.yaml": "develop: true\n"}, "Develop only")
        config = create_test_config(temp_path, remote.url, branch="develop")
        synchronizer = DefinitionsSynchronizer(config)

        result = synchronizer.set_version_to_latest()

        assert not result.success
        assert result.error.kind == ErrorKind.VERSION_SET_FAILURE
        assert result.message.startswith("failed to set version: ")

        repo = Repo(config.repository_local_dir)
        assert repo.active_branch.name == "develop"
        assert repo.head.commit.hexsha == tip


def test_configurable_main_branch():
    """A non-default main branch name is used by set_version_to_latest()."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote = RemoteRepository(temp_path, branch="trunk")
        first = remote.commit({"a.txt": "one\n"}, "one")
        second = remote.commit({"a.txt": "two\n"}, "two")
        config = GitConfig(
            repository_url=remote.url,
            repository_local_dir=temp_path / "local",
            remote_branch="trunk",
            main_branch="trunk"
        )
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.set_version(first).success
        result = synchronizer.set_version_to_latest()

        assert result.success, result.message
        assert result.commit == second
        assert Repo(config.repository_local_dir).active_branch.name == "trunk"


def test_repository_status_reports_head_state():
    """get_repository_status() never clones and reports the HEAD state."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, first, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        absent = synchronizer.get_repository_status()
        assert absent.success
        assert absent.repository_info.head_state == HeadState.ABSENT
        assert not config.repository_local_dir.exists()

        synchronizer.download()
        attached = synchronizer.get_repository_status().repository_info
        assert attached.head_state == HeadState.BRANCH_ATTACHED
        assert attached.branch == "main"
        assert attached.commit == second

        synchronizer.set_version(first)
        detached = synchronizer.get_repository_status().repository_info
        assert detached.head_state == HeadState.DETACHED
        assert detached.branch is None
        assert detached.commit == first


def test_end_to_end_scenario():
    """download -> set_version(ancestor) -> set_version_to_latest."""
    print("Testing end-to-end scenario")

    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        remote, first, second = create_remote_with_history(temp_path)
        config = create_test_config(temp_path, remote.url)
        synchronizer = DefinitionsSynchronizer(config)

        assert synchronizer.download().success
        repo = Repo(config.repository_local_dir)
        assert repo.active_branch.name == "main"
        assert repo.head.commit.hexsha == second

        assert synchronizer.set_version(first).success
        repo = Repo(config.repository_local_dir)
        assert repo.head.is_detached
        assert repo.head.commit.hexsha == first

        assert synchronizer.set_version_to_latest().success
        repo = Repo(config.repository_local_dir)
        assert repo.active_branch.name == "main"
        assert repo.head.commit.hexsha == second
        assert (config.repository_local_dir / "rules" / "b.yaml").exists()
        assert not (config.repository_local_dir / "old.txt").exists()

        print("  ✓ End-to-end scenario passed")


def test_raise_for_error_reraises_typed_error():
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        config = create_test_config(temp_path, str(temp_path / "missing.git"))

        result = DefinitionsSynchronizer(config).download()

        try:
            result.raise_for_error()
        except DefinitionsError as error:
            assert error.kind == ErrorKind.CLONE_FAILED
        else:
            raise AssertionError("raise_for_error() did not raise")


if __name__ == "__main__":
    import pytest
    sys.exit(pytest.main([__file__, "-v"]))
