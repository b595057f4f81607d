#!/usr/bin/env python3
"""
Catalog scraping: which releases, components and tarballs exist.

The catalog site publishes plain HTML listings. We pull the pieces we
need out with regular expressions, the same way the other registry
integrations in this project read their pages.
"""

import asyncio
import re
from typing import Dict, List, Optional, Set

from .config import logger, load_config
from .domain.records import ReleaseRecord, ReleaseComponentRecord, ComponentRecord
from .exit_codes import MalformedMetadata
from .infra.http_client import ArchiveFetcher

RELEASE_LINK = re.compile(r'<a href="(?:/release/)?(?P<entity>[^"]+)">(?P<version>[^<]+)</a>')
RELEASE_TARBALL_LINK = re.compile(r'<a href="/tarballs/(?P<path>[^"]+)">')
COMPONENT_FOLDER = re.compile(
    r'<tr><td valign="top"><a href="(?P<component>[^/]+)/"><img src="/static/images/icons/folder.png"'
)
COMPONENT_TARBALL = re.compile(
    r'<tr><td valign="top"><a href="?(?P<filename>[^">]+)"?><img src="?/static/images/icons/gz'
)

TARBALL_SUFFIX = '.tar.gz'


def parse_releases(text: str, base_url: str) -> List[ReleaseRecord]:
    """Parse the front page into release records, sorted."""
    records = []

    for match in RELEASE_LINK.finditer(text):
        page = match.group('entity')
        url = f"{base_url}release/{page}"

        if not page.endswith('.html'):
            raise MalformedMetadata(f"{page} does not end in .html")
        stem = page[:-len('.html')]

        # The version is the part after the final hyphen. e.g.
        # `iphone-sdkb8` or `developer-tools-91`.
        if '-' not in stem:
            raise MalformedMetadata(f"{stem} does not contain a -")
        name = stem.rsplit('-', 1)[0]

        records.append(ReleaseRecord(entity=name, version=match.group('version'), url=url))

    return sorted(records)


def parse_release_components(text: str, record: ReleaseRecord, base_url: str) -> List[ReleaseComponentRecord]:
    """Parse a release page into the tarballs it is made of."""
    records = []

    for match in RELEASE_TARBALL_LINK.finditer(text):
        path = match.group('path')
        if not path.endswith(TARBALL_SUFFIX):
            continue

        stem = path[:-len(TARBALL_SUFFIX)]
        if '/' not in stem:
            raise MalformedMetadata(f"{stem} does not have a /")
        component = stem.split('/', 1)[0]

        records.append(ReleaseComponentRecord(
            entity=record.entity,
            component=component,
            url=f"{base_url}tarballs/{path}",
        ))

    return records


def parse_components(text: str) -> Set[str]:
    """Parse the tarballs index into component names."""
    return {match.group('component') for match in COMPONENT_FOLDER.finditer(text)}


def parse_component_versions(text: str, component: str, tarballs_url: str) -> List[ComponentRecord]:
    """Parse a component's tarball listing into version records, sorted."""
    records = []

    for match in COMPONENT_TARBALL.finditer(text):
        filename = match.group('filename')
        if not filename.endswith(TARBALL_SUFFIX):
            continue

        # The version is the part after the first hyphen and before the .tar.gz.
        stem = filename[:-len(TARBALL_SUFFIX)]
        if '-' not in stem:
            raise MalformedMetadata(f"{filename} does not contain -")
        version = stem.split('-', 1)[1]

        records.append(ComponentRecord(
            component=component,
            filename=filename,
            url=f"{tarballs_url}/{component}/{filename}",
            version=version,
        ))

    return sorted(records)


class CatalogClient:
    """
    Metadata source for the catalog site.

    Example:
        catalog = CatalogClient()
        for record in catalog.list_component_versions("hfs"):
            print(record.version, record.url)
    """

    def __init__(self, base_url: Optional[str] = None, fetcher: Optional[ArchiveFetcher] = None,
                 config: Optional[Dict] = None):
        config = config or load_config()
        base_url = base_url or config.get('catalog', {}).get('base_url', 'https://opensource.apple.com/')
        if not base_url.endswith('/'):
            base_url += '/'
        self.base_url = base_url
        self.tarballs_url = f"{base_url}tarballs"
        self.fetcher = fetcher or ArchiveFetcher.from_config(config)

    def list_releases(self) -> List[ReleaseRecord]:
        """Obtain records describing software releases, sorted."""
        text = self.fetcher.fetch_text(self.base_url)
        return parse_releases(text, self.base_url)

    def find_release(self, entity: str, version: str) -> Optional[ReleaseRecord]:
        for record in self.list_releases():
            if record.entity == entity and record.version == version:
                return record
        return None

    def list_release_components(self, record: ReleaseRecord) -> List[ReleaseComponentRecord]:
        """Obtain the component tarballs in a given release."""
        text = self.fetcher.fetch_text(record.url)
        return parse_release_components(text, record, self.base_url)

    def list_components(self) -> Set[str]:
        """Obtain the set of named components, e.g. ``hfs`` or ``xnu``."""
        text = self.fetcher.fetch_text(self.tarballs_url)
        return parse_components(text)

    def list_component_versions(self, component: str) -> List[ComponentRecord]:
        """Obtain the available versions of a component, oldest first.

        Only the listing is fetched, not the archives themselves.
        """
        text = self.fetcher.fetch_text(f"{self.tarballs_url}/{component}/")
        return parse_component_versions(text, component, self.tarballs_url)

    async def list_components_versions_async(self) -> Dict[str, List[ComponentRecord]]:
        """Versions of every component, fetched concurrently.

        Components without any published tarball are left out.
        """
        loop = asyncio.get_running_loop()
        components = sorted(await loop.run_in_executor(None, self.list_components))

        results = await asyncio.gather(*[
            loop.run_in_executor(None, self.list_component_versions, component)
            for component in components
        ])

        versions = {}
        for component, records in zip(components, results):
            if records:
                versions[component] = records
            else:
                logger.debug(f"no tarballs published for {component}")
        return versions

    def list_components_versions(self) -> Dict[str, List[ComponentRecord]]:
        return asyncio.run(self.list_components_versions_async())
