"""
defsync - keeps a local directory in sync with a remote git repository.

The directory can be pinned to a specific commit or to the tip of the main
line, which makes it suitable for versioned definition files, policy bundles
and rule sets.
"""

__version__ = "0.1.0"
__description__ = "Local mirror synchronization for versioned definitions repositories"

from .config import GitConfig, load_configuration
from .errors import DefinitionsError, ErrorKind
from .git_sync import DefinitionsSynchronizer, GitSyncResult

__all__ = [
    "DefinitionsError",
    "DefinitionsSynchronizer",
    "ErrorKind",
    "GitConfig",
    "GitSyncResult",
    "load_configuration"
]
