"""
Repository history service for srcvault.

Turns the published versions of an entity into a git history: one
commit per version, each tagged with its version string and chained to
the previous one, with the branch moved to the newest commit at the end.

Two shapes of entity are supported:
- a standalone component, where every version is a single tarball;
- a release family, where every version is made of many component
  tarballs placed under directories named after the components.

Network fetches run concurrently; tree, commit and tag writes happen on
the event loop thread so a repository only ever has one writer.
"""

import asyncio
import logging
import os
from typing import Callable, Dict, List, Optional, Tuple

from ..catalog import CatalogClient
from ..config import load_config
from ..domain.operation import ImportResult
from ..domain.records import ReleaseComponentRecord
from ..exit_codes import InvalidArchive, TransportError
from ..infra.git_client import GitObjectStore, Identity
from ..infra.http_client import ArchiveFetcher
from ..infra.object_store import ObjectStore, MODE_TREE
from .tree_builder import DirectoryAccumulator, tar_data_to_tree

logger = logging.getLogger(__name__)

StoreFactory = Callable[[str, bool], ObjectStore]


class CommitChain:
    """
    Linear, tagged commit history being appended to.

    Starts empty (``head is None``); every append commits on top of the
    previous head. ``finish`` publishes the head on the branch.
    """

    def __init__(self, store: ObjectStore, branch: str = "main"):
        self.store = store
        self.branch = branch
        self.head: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.head is None

    def append(self, tree: str, version: str, message: str) -> str:
        """Commit ``tree`` on top of the head and tag it ``version``."""
        parents = [] if self.head is None else [self.head]
        commit = self.store.write_commit(tree, parents, message)
        self.store.write_tag(version, commit, "tagging", force=True)
        self.head = commit
        return commit

    def finish(self) -> Optional[str]:
        """Point the branch at the head, updating checked-out files if any."""
        if self.head is None:
            return None

        self.store.set_branch(self.branch, self.head)
        if not self.store.is_bare:
            self.store.reset_working_copy(self.branch, self.head)
        return self.head


class DedupCache:
    """Trees already built during one run, keyed by archive URL."""

    def __init__(self):
        self._trees: Dict[str, str] = {}
        self.hits = 0

    def get(self, url: str) -> Optional[str]:
        tree = self._trees.get(url)
        if tree is not None:
            self.hits += 1
        return tree

    def put(self, url: str, tree: str) -> None:
        self._trees[url] = tree

    def __contains__(self, url: str) -> bool:
        return url in self._trees

    def __len__(self) -> int:
        return len(self._trees)


class HistoryService:
    """
    Builds repositories from catalog entities.

    Example:
        service = HistoryService()
        result = asyncio.run(service.import_component("/srv/git/hfs", "hfs"))
        print(result.head)
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        catalog: Optional[CatalogClient] = None,
        fetcher: Optional[ArchiveFetcher] = None,
        store_factory: Optional[StoreFactory] = None,
    ):
        """
        Initialize HistoryService.

        Args:
            config: Configuration dict (loads default if None)
            catalog: Metadata source (creates one sharing ``fetcher`` if None)
            fetcher: Archive fetcher (built from config if None)
            store_factory: Creates the target store for (path, bare)
        """
        self.config = config or load_config()
        self.fetcher = fetcher or ArchiveFetcher.from_config(self.config)
        self.catalog = catalog or CatalogClient(config=self.config, fetcher=self.fetcher)
        self.branch = self.config.get('git', {}).get('branch', 'main')
        self.identity = Identity.from_config(self.config)
        self.store_factory = store_factory or self._create_git_store
        self.max_concurrent_fetches = self.config.get('import', {}).get('max_concurrent_fetches', 8)
        self._fetch_slots: Optional[asyncio.Semaphore] = None
        self._fetch_loop = None

    def _create_git_store(self, path: str, bare: bool) -> ObjectStore:
        return GitObjectStore.create(path, bare=bare, branch=self.branch, identity=self.identity)

    async def _call(self, func, *args):
        """Run a blocking catalog call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _fetch(self, url: str) -> bytes:
        loop = asyncio.get_running_loop()
        if self._fetch_slots is None or self._fetch_loop is not loop:
            self._fetch_slots = asyncio.Semaphore(max(1, self.max_concurrent_fetches))
            self._fetch_loop = loop
        async with self._fetch_slots:
            return await self.fetcher.fetch_async(url)

    async def import_component(self, path: str, component: str, bare: bool = True) -> ImportResult:
        """
        Create a repository holding every version of a standalone component.

        Any fetch or conversion failure aborts the run; commits created
        before it stay in the repository (tagged, but the branch is not moved).
        """
        result = ImportResult(entity=component, path=str(path), bare=bare, branch=self.branch)
        await self._import_versions(result, component)
        return result

    async def _import_versions(self, result: ImportResult, component: str) -> None:
        """Commit every version of ``component`` into the repository ``result`` describes.

        ``result`` is updated as each commit is made, so it is accurate
        up to the failing version when this raises.
        """
        records = await self._call(self.catalog.list_component_versions, component)

        store = self.store_factory(result.path, result.bare)
        chain = CommitChain(store, self.branch)

        for record in records:
            tar_data = await self._fetch(record.url)
            tree = tar_data_to_tree(tar_data, store)

            message = f"{record.component} {record.version}\n\nDownloaded from {record.url}\n"
            commit = chain.append(tree, record.version, message)
            result.add(record.version, commit, tree)

            logger.info(f"Committed {record.component} version {record.version} as {commit}")

        chain.finish()

    async def _import_reported(self, path: str, component: str, bare: bool) -> ImportResult:
        """Import one component, recording a failure on its result instead of raising."""
        result = ImportResult(entity=component, path=str(path), bare=bare, branch=self.branch)
        try:
            await self._import_versions(result, component)
        except Exception as e:
            logger.error(f"importing {component} failed: {e}")
            result.error = str(e)
        return result

    async def import_components(self, path: str, bare: bool = True) -> List[ImportResult]:
        """
        Create one repository per component under ``path``.

        Components are imported concurrently. A failing component is logged
        and reported with FAILED status, along with the versions committed
        before the failure; it never stops the others.
        """
        components = sorted(await self._call(self.catalog.list_components))

        return list(await asyncio.gather(
            *[self._import_reported(os.path.join(path, c), c, bare) for c in components]
        ))

    async def _import_release_component(
        self, store: ObjectStore, component: ReleaseComponentRecord
    ) -> Optional[str]:
        """Fetch and convert one archive, returning None if it has to be skipped."""
        try:
            tar_data = await self._fetch(component.url)
            tree = tar_data_to_tree(tar_data, store)
        except (TransportError, InvalidArchive) as e:
            logger.warning(f"{component.url} failed to import; skipping ({e})")
            return None

        logger.info(f"imported {component.url} to Git")
        return tree

    async def build_release_tree(
        self,
        store: ObjectStore,
        components: List[ReleaseComponentRecord],
        cache: DedupCache,
    ) -> Tuple[str, List[str]]:
        """
        Write the tree of one release version.

        Returns the tree id and the names of components left out because
        their archive could not be imported.
        """
        root = DirectoryAccumulator(b'')
        pending: Dict[str, List[ReleaseComponentRecord]] = {}

        for component in components:
            tree = cache.get(component.url)
            if tree is not None:
                logger.debug(f"using already imported archive {component.url}")
                root.insert(component.component.encode('utf-8'), tree, MODE_TREE)
            else:
                pending.setdefault(component.url, []).append(component)

        urls = list(pending)
        tasks = [
            asyncio.ensure_future(self._import_release_component(store, pending[url][0]))
            for url in urls
        ]
        try:
            trees = await asyncio.gather(*tasks)
        except BaseException:
            # a fatal error in one component stops the rest writing to the store
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        skipped = []
        for url, tree in zip(urls, trees):
            if tree is None:
                skipped.extend(c.component for c in pending[url])
                continue
            cache.put(url, tree)
            for component in pending[url]:
                root.insert(component.component.encode('utf-8'), tree, MODE_TREE)

        return root.write(store), skipped

    async def import_release(self, path: str, release: str, bare: bool = True) -> ImportResult:
        """
        Create a repository holding every version of a release family.

        Each version's tree has one directory per component. Components
        whose archive fails are left out of that version only.
        """
        releases = await self._call(self.catalog.list_releases)
        records = [record for record in releases if record.matches_entity(release)]

        store = self.store_factory(path, bare)
        chain = CommitChain(store, self.branch)
        cache = DedupCache()
        result = ImportResult(entity=release, path=str(path), bare=bare, branch=self.branch)

        for record in records:
            logger.info(f"building commit for {record.entity} {record.version}")

            components = await self._call(self.catalog.list_release_components, record)
            tree, skipped = await self.build_release_tree(store, components, cache)

            commit = chain.append(tree, record.version, f"{record.entity} {record.version}")
            result.add(record.version, commit, tree, skipped)

            logger.info(f"Committed {record.entity} version {record.version} as {commit}")

        chain.finish()
        result.reused_archives = cache.hits
        return result
