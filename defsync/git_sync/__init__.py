"""Git synchronization functionality for defsync."""

from .engine import CommitId, RepositoryEngine
from .error_types import RecoveryAction, suggested_action
from .repository_info import HeadState, RepositoryInfo
from .synchronizer import DefinitionsSynchronizer
from .utils import GitSyncResult

__all__ = [
    'CommitId',
    'DefinitionsSynchronizer',
    'GitSyncResult',
    'HeadState',
    'RecoveryAction',
    'RepositoryEngine',
    'RepositoryInfo',
    'suggested_action'
]
