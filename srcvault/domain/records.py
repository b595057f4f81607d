"""
Catalog record domain objects for srcvault.

Records describe what the catalog publishes: releases of a software
entity, the archives a release is made of, and versions of standalone
components. They are immutable and serializable for JSONL output.
"""

from dataclasses import dataclass
from functools import total_ordering
from typing import Dict, Any

from ..versions import compare_versions

# Names the catalog has used over time for the same desktop OS.
MACOS_ALIASES = frozenset({'macos', 'os-x', 'mac-os-x'})


def is_macos(name: str) -> bool:
    return name in MACOS_ALIASES


def entities_match(a: str, b: str) -> bool:
    """Whether two entity names refer to the same release family."""
    return a == b or (is_macos(a) and is_macos(b))


@total_ordering
@dataclass(frozen=True, eq=True)
class ReleaseRecord:
    """One published version of a top-level software entity."""
    entity: str
    version: str
    url: str

    def matches_entity(self, name: str) -> bool:
        """Whether this record belongs to the named entity."""
        return entities_match(name, self.entity)

    def _compare(self, other: 'ReleaseRecord') -> int:
        if not self.matches_entity(other.entity) and self.entity != other.entity:
            return -1 if self.entity < other.entity else 1
        return compare_versions(self.version, other.version)

    def __lt__(self, other):
        if not isinstance(other, ReleaseRecord):
            return NotImplemented
        return self._compare(other) < 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entity': self.entity,
            'version': self.version,
            'url': self.url,
        }


@dataclass(frozen=True)
class ReleaseComponentRecord:
    """One archive contributing to a release version."""
    entity: str
    component: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entity': self.entity,
            'component': self.component,
            'url': self.url,
        }


@total_ordering
@dataclass(frozen=True, eq=True)
class ComponentRecord:
    """One published version of a standalone component."""
    component: str
    filename: str
    url: str
    version: str

    def __lt__(self, other):
        if not isinstance(other, ComponentRecord):
            return NotImplemented
        if self.component != other.component:
            return self.component < other.component
        return compare_versions(self.version, other.version) < 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'component': self.component,
            'version': self.version,
            'filename': self.filename,
            'url': self.url,
        }
