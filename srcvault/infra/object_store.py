"""
Object store capability used by the import engine.

The tree builder and history builder only need a handful of write
primitives from the target repository. Any content-addressed store that
provides them can back an import; GitObjectStore is the one we ship.
"""

from dataclasses import dataclass
from typing import Iterable, List, Protocol

# git tree entry modes
MODE_TREE = 0o40000
MODE_BLOB = 0o100644
MODE_BLOB_EXECUTABLE = 0o100755
MODE_LINK = 0o120000


@dataclass(frozen=True)
class TreeEntry:
    """A single (name, object id, mode) row of a tree object."""
    name: bytes
    oid: str
    mode: int

    @property
    def object_type(self) -> str:
        return 'tree' if self.mode == MODE_TREE else 'blob'


class ObjectStore(Protocol):
    """Write primitives of a content-addressed repository."""

    @property
    def is_bare(self) -> bool:
        ...

    def write_blob(self, data: bytes) -> str:
        """Store bytes, returning their id. Storing equal bytes twice is a no-op."""
        ...

    def write_tree(self, entries: Iterable[TreeEntry]) -> str:
        ...

    def write_commit(self, tree: str, parents: List[str], message: str) -> str:
        ...

    def write_tag(self, name: str, commit: str, message: str = "tagging", force: bool = True) -> None:
        ...

    def set_branch(self, name: str, commit: str) -> None:
        ...

    def reset_working_copy(self, branch: str, commit: str) -> None:
        ...
