"""Configuration management for defsync."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

MAIN_BRANCH = "main"
DEFAULT_REMOTE_NAME = "origin"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def default_local_dir() -> Path:
    return Path.home() / ".defsync" / "definitions"


@dataclass(frozen=True)
class GitConfig:
    """Connection parameters for a single definitions repository.

    Instances are immutable; the synchronizer reads them but never changes them.
    """

    repository_url: str
    repository_local_dir: Path = field(default_factory=default_local_dir)
    remote_name: str = DEFAULT_REMOTE_NAME
    remote_branch: str = MAIN_BRANCH

    # Main-line branch used by set_version_to_latest
    main_branch: str = MAIN_BRANCH

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        # Normalize the local directory (expand ~) without mutating a frozen instance
        local_dir = Path(self.repository_local_dir).expanduser()
        object.__setattr__(self, 'repository_local_dir', local_dir)
        object.__setattr__(self, 'log_level', self.log_level.upper())

        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}")

        for name in ('remote_name', 'remote_branch', 'main_branch'):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")

    @property
    def git_dir(self) -> Path:
        """Git metadata directory of the local mirror."""
        return self.repository_local_dir / ".git"


def load_configuration() -> GitConfig:
    """Load configuration from environment variables (and a .env file if present)."""
    load_dotenv()

    repository_url = os.getenv("DEFSYNC_REPOSITORY_URL")
    if not repository_url:
        raise ValueError("Configuration error: DEFSYNC_REPOSITORY_URL is not set")

    try:
        config = GitConfig(
            repository_url=repository_url,
            repository_local_dir=Path(os.getenv("DEFSYNC_LOCAL_DIR", str(default_local_dir()))),
            remote_name=os.getenv("DEFSYNC_REMOTE_NAME", DEFAULT_REMOTE_NAME),
            remote_branch=os.getenv("DEFSYNC_REMOTE_BRANCH", MAIN_BRANCH),
            main_branch=os.getenv("DEFSYNC_MAIN_BRANCH", MAIN_BRANCH),
            log_level=os.getenv("DEFSYNC_LOG_LEVEL", "INFO")
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}") from e

    logging.getLogger('defsync.config').debug(
        f"Loaded configuration for {config.repository_url} -> {config.repository_local_dir}"
    )
    return config


def validate_configuration(config: GitConfig) -> List[str]:
    """Validate configuration and return any errors or warnings."""
    errors = []

    url = config.repository_url
    is_local = Path(url).expanduser().exists() or url.startswith("file://")
    if not is_local and not url.startswith(("http://", "https://", "ssh://", "git@")):
        errors.append(f"WARNING: Repository URL may be invalid: {url}")

    local_dir = config.repository_local_dir
    if local_dir.exists() and not local_dir.is_dir():
        errors.append(f"ERROR: Local repository path is not a directory: {local_dir}")
    elif not local_dir.exists():
        # The clone step creates it, but the parent must be writable
        parent = local_dir.parent
        while not parent.exists() and parent != parent.parent:
            parent = parent.parent
        if not os.access(parent, os.W_OK):
            errors.append(f"ERROR: No write permission to create local repository under: {parent}")

    if config.main_branch != config.remote_branch:
        errors.append(
            f"WARNING: Main branch '{config.main_branch}' differs from tracked branch "
            f"'{config.remote_branch}'; update() will not advance the main line"
        )

    return errors
