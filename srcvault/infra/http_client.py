"""
HTTP transport for srcvault.

One requests session per client, with the catalog's user agent and a
fixed per-request timeout. Every failure surfaces as TransportError
carrying the URL that failed.
"""

import asyncio
import logging
from typing import Dict, Optional

import requests

from ..exit_codes import TransportError

logger = logging.getLogger(__name__)


class ArchiveFetcher:
    """
    Resolves URLs to response bodies.

    Example:
        fetcher = ArchiveFetcher.from_config(load_config())
        data = fetcher.fetch("https://opensource.apple.com/tarballs/hfs/hfs-556.60.1.tar.gz")
    """

    def __init__(self, user_agent: Optional[str] = None, timeout: float = 120,
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers['User-Agent'] = user_agent

    @classmethod
    def from_config(cls, config: Dict) -> 'ArchiveFetcher':
        catalog = config.get('catalog', {})
        return cls(
            user_agent=catalog.get('user_agent'),
            timeout=catalog.get('timeout_seconds', 120),
        )

    def get(self, url: str) -> requests.Response:
        """GET a URL, raising TransportError unless the status is 2xx."""
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"fetching {url}: {e}", url=url) from e

        if not response.ok:
            raise TransportError(f"HTTP {response.status_code} from {url}", url=url)

        return response

    def fetch(self, url: str) -> bytes:
        """Return the raw body at ``url`` (usually a gzipped tarball)."""
        data = self.get(url).content
        logger.debug(f"fetched {len(data)} bytes from {url}")
        return data

    def fetch_text(self, url: str) -> str:
        return self.get(url).text

    async def fetch_async(self, url: str) -> bytes:
        """Fetch without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch, url)
