"""
Import result domain objects for srcvault.

Provides standardized result types for the import commands, one per
target repository, serializable for JSONL output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class ImportStatus(Enum):
    """Status of an import into one repository."""
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class VersionCommit:
    """One version committed to a repository."""
    version: str
    commit: str
    tree: str
    skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'version': self.version,
            'commit': self.commit,
            'tree': self.tree,
        }
        if self.skipped:
            result['skipped'] = list(self.skipped)
        return result


@dataclass
class ImportResult:
    """
    Outcome of importing an entity's history into one repository.

    Commits made before a failure are kept in ``versions`` even when
    ``status`` is FAILED.
    """
    entity: str
    path: str
    bare: bool = True
    branch: str = "main"
    versions: List[VersionCommit] = field(default_factory=list)
    error: Optional[str] = None
    reused_archives: int = 0

    @property
    def head(self) -> Optional[str]:
        return self.versions[-1].commit if self.versions else None

    @property
    def status(self) -> ImportStatus:
        if self.error:
            return ImportStatus.FAILED
        if not self.versions:
            return ImportStatus.EMPTY
        return ImportStatus.SUCCESS

    def add(self, version: str, commit: str, tree: str, skipped: Optional[List[str]] = None) -> VersionCommit:
        entry = VersionCommit(version=version, commit=commit, tree=tree, skipped=list(skipped or []))
        self.versions.append(entry)
        return entry

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'entity': self.entity,
            'path': self.path,
            'status': self.status.value,
            'bare': self.bare,
            'branch': self.branch,
            'head': self.head,
            'commits': len(self.versions),
            'versions': [v.to_dict() for v in self.versions],
        }
        if self.reused_archives:
            result['reused_archives'] = self.reused_archives
        if self.error:
            result['error'] = self.error
        return result
