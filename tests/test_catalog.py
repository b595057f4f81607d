"""
Tests for catalog page parsing and the catalog client.
"""

import unittest
from unittest.mock import MagicMock

from srcvault.catalog import (
    CatalogClient,
    parse_component_versions,
    parse_components,
    parse_release_components,
    parse_releases,
)
from srcvault.config import get_default_config
from srcvault.domain.records import ReleaseRecord
from srcvault.exit_codes import MalformedMetadata, TransportError

BASE = "https://opensource.example/"

FRONT_PAGE = """
<ul>
<li><a href="/release/macos-1101.html">11.0.1</a></li>
<li><a href="/release/mac-os-x-104.html">10.4</a></li>
<li><a href="/release/os-x-10107.html">10.10.7</a></li>
<li><a href="/release/ios-142.html">14.2</a></li>
<li><a href="/release/developer-tools-91.html">9.1</a></li>
</ul>
"""

RELEASE_PAGE = """
<table>
<tr><td><a href="/tarballs/xnu/xnu-7195.50.7.100.1.tar.gz">xnu-7195.50.7.100.1</a></td></tr>
<tr><td><a href="/tarballs/hfs/hfs-556.60.1.tar.gz">hfs-556.60.1</a></td></tr>
<tr><td><a href="/tarballs/hfs/hfs-556.60.1.zip">zip</a></td></tr>
</table>
"""

TARBALLS_INDEX = """
<table>
<tr><td valign="top"><img src="/static/images/icons/back.png" alt="[PARENTDIR]"></td></tr>
<tr><td valign="top"><a href="dyld/"><img src="/static/images/icons/folder.png" alt="[DIR]"></a></td></tr>
<tr><td valign="top"><a href="hfs/"><img src="/static/images/icons/folder.png" alt="[DIR]"></a></td></tr>
<tr><td valign="top"><a href="xnu/"><img src="/static/images/icons/folder.png" alt="[DIR]"></a></td></tr>
</table>
"""

HFS_INDEX = """
<table>
<tr><td valign="top"><a href="hfs-556.100.tar.gz"><img src="/static/images/icons/gz.png" alt="[   ]"></a></td></tr>
<tr><td valign="top"><a href=hfs-556.60.1.tar.gz><img src=/static/images/icons/gz.png alt="[   ]"></a></td></tr>
<tr><td valign="top"><a href="hfs-407.30.1.tar.gz"><img src="/static/images/icons/gz.png" alt="[   ]"></a></td></tr>
<tr><td valign="top"><a href="hfs-407.30.1.tar.gz.sig"><img src="/static/images/icons/gz.png" alt="[   ]"></a></td></tr>
</table>
"""


class TestParseReleases(unittest.TestCase):

    def test_entities_and_versions(self):
        records = parse_releases(FRONT_PAGE, BASE)
        pairs = [(r.entity, r.version) for r in records]

        self.assertIn(('macos', '11.0.1'), pairs)
        self.assertIn(('mac-os-x', '10.4'), pairs)
        self.assertIn(('developer-tools', '9.1'), pairs)
        self.assertEqual(len(records), 5)

    def test_url(self):
        records = parse_releases(FRONT_PAGE, BASE)
        ios = [r for r in records if r.entity == 'ios'][0]
        self.assertEqual(ios.url, f"{BASE}release/ios-142.html")

    def test_sorted(self):
        records = parse_releases(FRONT_PAGE, BASE)
        self.assertEqual(records, sorted(records))
        macos = [r.version for r in records if r.matches_entity('macos')]
        self.assertEqual(macos, ['10.4', '10.10.7', '11.0.1'])

    def test_page_without_html_suffix(self):
        with self.assertRaises(MalformedMetadata):
            parse_releases('<a href="/release/macos-1101">11.0.1</a>', BASE)

    def test_page_without_hyphen(self):
        with self.assertRaises(MalformedMetadata) as ctx:
            parse_releases('<a href="/release/macos.html">11</a>', BASE)
        self.assertIn("does not contain a -", str(ctx.exception))

    def test_empty_page(self):
        self.assertEqual(parse_releases("<html></html>", BASE), [])


class TestParseReleaseComponents(unittest.TestCase):

    def setUp(self):
        self.record = ReleaseRecord(entity='macos', version='11.0.1', url=f"{BASE}release/macos-1101.html")

    def test_tarballs(self):
        records = parse_release_components(RELEASE_PAGE, self.record, BASE)

        self.assertEqual([r.component for r in records], ['xnu', 'hfs'])
        self.assertEqual(records[1].url, f"{BASE}tarballs/hfs/hfs-556.60.1.tar.gz")
        self.assertTrue(all(r.entity == 'macos' for r in records))

    def test_tarball_without_folder(self):
        with self.assertRaises(MalformedMetadata):
            parse_release_components('<a href="/tarballs/hfs.tar.gz">', self.record, BASE)


class TestParseComponents(unittest.TestCase):

    def test_folders(self):
        self.assertEqual(parse_components(TARBALLS_INDEX), {'dyld', 'hfs', 'xnu'})


class TestParseComponentVersions(unittest.TestCase):

    def test_versions_sorted(self):
        records = parse_component_versions(HFS_INDEX, 'hfs', f"{BASE}tarballs")

        self.assertEqual([r.version for r in records], ['407.30.1', '556.60.1', '556.100'])
        self.assertEqual(records[0].filename, 'hfs-407.30.1.tar.gz')
        self.assertEqual(records[0].url, f"{BASE}tarballs/hfs/hfs-407.30.1.tar.gz")

    def test_version_after_first_hyphen(self):
        page = '<tr><td valign="top"><a href="Libc-825.40.1-x.tar.gz"><img src="/static/images/icons/gz.png">'
        records = parse_component_versions(page, 'Libc', f"{BASE}tarballs")
        self.assertEqual(records[0].version, '825.40.1-x')

    def test_filename_without_hyphen(self):
        page = '<tr><td valign="top"><a href="hfs.tar.gz"><img src="/static/images/icons/gz.png">'
        with self.assertRaises(MalformedMetadata):
            parse_component_versions(page, 'hfs', f"{BASE}tarballs")


class TestCatalogClient(unittest.TestCase):

    def setUp(self):
        self.pages = {
            BASE: FRONT_PAGE,
            f"{BASE}release/macos-1101.html": RELEASE_PAGE,
            f"{BASE}tarballs": TARBALLS_INDEX,
            f"{BASE}tarballs/hfs/": HFS_INDEX,
            f"{BASE}tarballs/dyld/": "<html>no tarballs yet</html>",
            f"{BASE}tarballs/xnu/": HFS_INDEX.replace('hfs', 'xnu'),
        }
        self.fetcher = MagicMock()
        self.fetcher.fetch_text.side_effect = self._fetch_text
        self.client = CatalogClient(base_url=BASE.rstrip('/'), fetcher=self.fetcher,
                                    config=get_default_config())

    def _fetch_text(self, url):
        if url not in self.pages:
            raise TransportError(f"HTTP 404 from {url}", url=url)
        return self.pages[url]

    def test_base_url_gets_trailing_slash(self):
        self.assertEqual(self.client.base_url, BASE)
        self.assertEqual(self.client.tarballs_url, f"{BASE}tarballs")

    def test_base_url_from_config(self):
        config = get_default_config()
        client = CatalogClient(fetcher=self.fetcher, config=config)
        self.assertEqual(client.base_url, config['catalog']['base_url'])

    def test_list_releases(self):
        records = self.client.list_releases()
        self.fetcher.fetch_text.assert_called_once_with(BASE)
        self.assertEqual(len(records), 5)

    def test_find_release(self):
        record = self.client.find_release('macos', '11.0.1')
        self.assertEqual(record.url, f"{BASE}release/macos-1101.html")
        self.assertIsNone(self.client.find_release('macos', '99'))

    def test_list_release_components(self):
        record = self.client.find_release('macos', '11.0.1')
        components = self.client.list_release_components(record)
        self.assertEqual([c.component for c in components], ['xnu', 'hfs'])

    def test_list_components(self):
        self.assertEqual(self.client.list_components(), {'dyld', 'hfs', 'xnu'})

    def test_list_component_versions(self):
        records = self.client.list_component_versions('hfs')
        self.fetcher.fetch_text.assert_called_once_with(f"{BASE}tarballs/hfs/")
        self.assertEqual(records[-1].version, '556.100')

    def test_list_components_versions_skips_empty(self):
        versions = self.client.list_components_versions()
        self.assertEqual(sorted(versions), ['hfs', 'xnu'])
        self.assertEqual(versions['xnu'][0].component, 'xnu')

    def test_transport_error_propagates(self):
        with self.assertRaises(TransportError) as ctx:
            self.client.list_component_versions('missing')
        self.assertEqual(ctx.exception.url, f"{BASE}tarballs/missing/")


if __name__ == '__main__':
    unittest.main()
