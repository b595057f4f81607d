"""
srcvault - Archive published source tarballs into git repositories.

srcvault reads a catalog of released software (standalone components and
multi-component releases), downloads every published tarball and turns
each version into one tagged commit.

Quick Start:
    import asyncio
    import srcvault

    service = srcvault.HistoryService()

    # One repository, one commit per version of a component
    result = asyncio.run(service.import_component("./hfs.git", "hfs"))
    print(result.head)

    # One repository for a release family, one directory per component
    asyncio.run(service.import_release("./macos.git", "macos"))

    # Convert a single tarball into a tree
    store = srcvault.GitObjectStore.create("./scratch.git")
    tree = srcvault.tar_data_to_tree(open("hfs-556.tar.gz", "rb").read(), store)

Domain Objects:
    ReleaseRecord - A published version of a release family
    ReleaseComponentRecord - One archive of a release version
    ComponentRecord - A published version of a standalone component
    ImportResult - What an import wrote to one repository
"""

__version__ = "0.1.0"

from .domain import (
    ReleaseRecord,
    ReleaseComponentRecord,
    ComponentRecord,
    ImportResult,
    ImportStatus,
)

from .versions import compare_versions, version_key

from .catalog import CatalogClient

from .infra import ArchiveFetcher, GitObjectStore, ObjectStore

from .services import (
    tar_data_to_tree,
    CommitChain,
    DedupCache,
    HistoryService,
)

from .exit_codes import (
    TransportError,
    MalformedMetadata,
    InvalidArchive,
    InvalidArchiveMode,
    RepositoryWriteError,
)

from .config import load_config, save_config

__all__ = [
    "__version__",
    # Domain objects
    "ReleaseRecord",
    "ReleaseComponentRecord",
    "ComponentRecord",
    "ImportResult",
    "ImportStatus",
    # Versions
    "compare_versions",
    "version_key",
    # Collaborators
    "CatalogClient",
    "ArchiveFetcher",
    "GitObjectStore",
    "ObjectStore",
    # Import engine
    "tar_data_to_tree",
    "CommitChain",
    "DedupCache",
    "HistoryService",
    # Errors
    "TransportError",
    "MalformedMetadata",
    "InvalidArchive",
    "InvalidArchiveMode",
    "RepositoryWriteError",
    # Configuration
    "load_config",
    "save_config",
]
