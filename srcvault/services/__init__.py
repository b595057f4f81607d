"""
Service layer for srcvault.

Contains the import engine that orchestrates domain objects and infrastructure:
- tar_data_to_tree: Converts a gzipped tarball into a tree
- CommitChain: Tagged, linear commit history being built
- DedupCache: Trees already imported during a run, by archive URL
- HistoryService: Component and release imports

Services are the primary API for commands to use.
"""

from .tree_builder import DirectoryAccumulator, tar_data_to_tree, git_mode_for
from .history_service import CommitChain, DedupCache, HistoryService

__all__ = [
    'DirectoryAccumulator',
    'tar_data_to_tree',
    'git_mode_for',
    'CommitChain',
    'DedupCache',
    'HistoryService',
]
