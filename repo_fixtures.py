"""Helpers for building throwaway git remotes in tests."""

import subprocess
from pathlib import Path
from typing import Dict, Optional

GIT_TEST_CONFIG = [
    "-c", "user.name=Test User",
    "-c", "user.email=test@example.com",
    "-c", "commit.gpgsign=false",
    "-c", "init.defaultBranch=main",
]


def git(*args: str, cwd: Optional[Path] = None) -> str:
    """Run a git command and return its stripped stdout."""
    result = subprocess.run(
        ["git", *GIT_TEST_CONFIG, *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True
    )
    return result.stdout.strip()


class RemoteRepository:
    """A bare repository plus a working clone used to push commits into it."""

    def __init__(self, base_dir: Path, branch: str = "main"):
        self.path = base_dir / "remote.git"
        self.work_dir = base_dir / "remote_work"
        self.branch = branch

        git("init", "--bare", str(self.path))
        git("symbolic-ref", "HEAD", f"refs/heads/{branch}", cwd=self.path)

        git("init", str(self.work_dir))
        git("symbolic-ref", "HEAD", f"refs/heads/{branch}", cwd=self.work_dir)
        git("remote", "add", "origin", str(self.path), cwd=self.work_dir)

    @property
    def url(self) -> str:
        return str(self.path)

    def commit(self, files: Dict[str, Optional[str]], message: str, branch: Optional[str] = None) -> str:
        """
        Write files (None deletes), commit and push. Returns the new commit id.
        """
        branch = branch or self.branch
        current = git("symbolic-ref", "--short", "HEAD", cwd=self.work_dir)
        if current != branch:
            git("checkout", "-B", branch, cwd=self.work_dir)

        for name, content in files.items():
            file_path = self.work_dir / name
            if content is None:
                file_path.unlink()
            else:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_text(content, encoding="utf-8")

        git("add", "-A", cwd=self.work_dir)
        git("commit", "-m", message, cwd=self.work_dir)
        git("push", "origin", branch, cwd=self.work_dir)
        return git("rev-parse", "HEAD", cwd=self.work_dir)


def read_tree(directory: Path) -> Dict[str, str]:
    """Map of relative path -> content for every file outside .git."""
    return {
        str(path.relative_to(directory)): path.read_text(encoding="utf-8")
        for path in sorted(directory.rglob("*"))
        if path.is_file() and ".git" not in path.relative_to(directory).parts
    }
