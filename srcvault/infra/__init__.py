"""
Infrastructure layer for srcvault.

Contains abstractions for external systems:
- GitClient / GitObjectStore: git command execution and object writes
- ArchiveFetcher: HTTP access to the catalog and its tarballs
- ObjectStore: the write capability the import engine depends on

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitObjectStore, Identity
from .http_client import ArchiveFetcher
from .object_store import (
    ObjectStore,
    TreeEntry,
    MODE_TREE,
    MODE_BLOB,
    MODE_BLOB_EXECUTABLE,
    MODE_LINK,
)

__all__ = [
    'GitClient',
    'GitObjectStore',
    'Identity',
    'ArchiveFetcher',
    'ObjectStore',
    'TreeEntry',
    'MODE_TREE',
    'MODE_BLOB',
    'MODE_BLOB_EXECUTABLE',
    'MODE_LINK',
]
