"""
Domain layer for srcvault.

Contains pure domain objects with no I/O or side effects:
- ReleaseRecord: A published version of a release family
- ReleaseComponentRecord: One archive inside a release version
- ComponentRecord: A published version of a standalone component
- ImportResult: What an import wrote to one repository
"""

from .operation import ImportStatus, VersionCommit, ImportResult
from .records import (
    ReleaseRecord,
    ReleaseComponentRecord,
    ComponentRecord,
    entities_match,
    MACOS_ALIASES,
)

__all__ = [
    'ImportStatus',
    'VersionCommit',
    'ImportResult',
    'ReleaseRecord',
    'ReleaseComponentRecord',
    'ComponentRecord',
    'entities_match',
    'MACOS_ALIASES',
]
