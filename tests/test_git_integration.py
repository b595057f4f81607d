"""
End-to-end tests against real git repositories.

Skipped when no git executable is available.
"""

import asyncio
import logging
import shutil
import tarfile

import pytest

from srcvault.config import get_default_config
from srcvault.domain.records import ReleaseRecord, ReleaseComponentRecord
from srcvault.exit_codes import RepositoryWriteError
from srcvault.infra.git_client import GitClient, GitObjectStore, Identity
from srcvault.infra.object_store import MODE_BLOB, MODE_BLOB_EXECUTABLE, MODE_LINK, TreeEntry
from srcvault.services.history_service import HistoryService
from srcvault.services.tree_builder import tar_data_to_tree
from tests.fakes import (
    FakeCatalog,
    FakeFetcher,
    MemoryObjectStore,
    component_record,
    make_tarball,
    sample_tarball,
    tar_member,
)

pytestmark = pytest.mark.skipif(shutil.which('git') is None, reason="git is not installed")


class GitInspector(GitClient):
    """Read-only queries used to check what an import wrote."""

    def resolve(self, path, rev):
        """Resolve a revision to an object id, or None if it doesn't exist."""
        try:
            return self.run_text(['rev-parse', '--verify', '--quiet', rev], cwd=path)
        except RepositoryWriteError:
            return None

    def tags(self, path):
        """Map tag name to the commit it points at (annotated tags peeled)."""
        output = self.run_text(
            ['for-each-ref', '--format=%(refname:short)|%(*objectname)|%(objectname)', 'refs/tags'],
            cwd=path,
        )
        tags = {}
        for line in output.splitlines():
            name, peeled, direct = line.rsplit('|', 2)
            tags[name] = peeled or direct
        return tags

    def commit_parents(self, path, commit):
        return self.run_text(['rev-list', '--parents', '-n', '1', commit], cwd=path).split()[1:]

    def rev_list(self, path, rev):
        return self.run_text(['rev-list', rev], cwd=path).split()

    def ls_tree(self, path, treeish):
        entries = []
        for record in self.run(['ls-tree', '-z', '-r', treeish], cwd=path).split(b'\0'):
            if not record:
                continue
            meta, name = record.split(b'\t', 1)
            mode, _, oid = meta.decode().split(' ')
            entries.append(TreeEntry(name=name, oid=oid, mode=int(mode, 8)))
        return entries

    def cat_blob(self, path, oid):
        return self.run(['cat-file', 'blob', oid], cwd=path)


@pytest.fixture
def git():
    return GitInspector()


def sample_service(extra_versions=()):
    records = [component_record('sample', v) for v in ('1.0', '1.1') + tuple(extra_versions)]
    fetcher = FakeFetcher({
        r.url: sample_tarball(f'sample-{r.version}', readme=f'sample {r.version}\n'.encode())
        for r in records
    })
    catalog = FakeCatalog(components={'sample': records})
    return HistoryService(config=get_default_config(), catalog=catalog, fetcher=fetcher)


class TestGitObjectStore:

    def test_create_bare(self, tmp_path, git):
        store = GitObjectStore.create(str(tmp_path / 'repo.git'), bare=True, branch='main')

        assert store.is_bare
        assert git.run_text(['symbolic-ref', 'HEAD'], cwd=store.path) == 'refs/heads/main'

    def test_create_non_bare(self, tmp_path):
        store = GitObjectStore.create(str(tmp_path / 'repo'), bare=False)
        assert not store.is_bare
        assert (tmp_path / 'repo' / '.git').is_dir()

    def test_blob_ids_match_git(self, tmp_path):
        store = GitObjectStore.create(str(tmp_path / 'repo.git'))
        assert store.write_blob(b'hello\n') == MemoryObjectStore().write_blob(b'hello\n')

    def test_tree_ids_match_memory_store(self, tmp_path, git):
        data = make_tarball([
            tar_member('pkg/README', b'readme\n'),
            tar_member('pkg/bin/run', b'#!/bin/sh\n', mode=0o755),
            tar_member('pkg/bin/run-link', type=tarfile.SYMTYPE, linkname='run'),
            tar_member('pkg/a.txt', b'a'),
            tar_member('pkg/a/b/c.txt', b'c'),
        ])
        store = GitObjectStore.create(str(tmp_path / 'repo.git'))

        tree = tar_data_to_tree(data, store)

        assert tree == tar_data_to_tree(data, MemoryObjectStore())
        entries = {e.name: e for e in git.ls_tree(store.path, tree)}
        assert entries[b'README'].mode == MODE_BLOB
        assert entries[b'bin/run'].mode == MODE_BLOB_EXECUTABLE
        assert entries[b'bin/run-link'].mode == MODE_LINK
        assert git.cat_blob(store.path, entries[b'bin/run-link'].oid) == b'run'
        assert set(entries) == {b'README', b'bin/run', b'bin/run-link', b'a.txt', b'a/b/c.txt'}

    def test_commit_identity_is_fixed(self, tmp_path, git):
        store = GitObjectStore.create(str(tmp_path / 'repo.git'), identity=Identity())
        commit = store.write_commit(store.write_tree([]), [], 'msg\n')

        author = git.run_text(['log', '-1', '--format=%an <%ae> %at', commit], cwd=store.path)
        assert author == 'Apple Open Source <opensource@apple.com> 1609459200'

    def test_tag_is_annotated_and_forced(self, tmp_path, git):
        store = GitObjectStore.create(str(tmp_path / 'repo.git'))
        tree = store.write_tree([])
        first = store.write_commit(tree, [], 'one\n')
        second = store.write_commit(tree, [first], 'two\n')

        store.write_tag('1.0', first)
        store.write_tag('1.0', second)

        assert git.run_text(['cat-file', '-t', 'refs/tags/1.0'], cwd=store.path) == 'tag'
        assert git.tags(store.path) == {'1.0': second}

    def test_failed_command_raises(self, tmp_path, git):
        store = GitObjectStore.create(str(tmp_path / 'repo.git'))
        with pytest.raises(RepositoryWriteError):
            store.write_commit('0' * 40, [], 'orphan\n')

    def test_git_missing(self, tmp_path):
        client = GitClient(git='definitely-not-git')
        with pytest.raises(RepositoryWriteError):
            client.run(['status'], cwd=str(tmp_path))


class TestComponentToGit:

    def test_sample_history(self, tmp_path, git):
        path = str(tmp_path / 'sample.git')

        result = asyncio.run(sample_service().import_component(path, 'sample'))

        tags = git.tags(path)
        assert set(tags) == {'1.0', '1.1'}
        assert git.rev_list(path, 'refs/heads/main') == [tags['1.1'], tags['1.0']]
        assert git.commit_parents(path, tags['1.1']) == [tags['1.0']]
        assert git.commit_parents(path, tags['1.0']) == []
        assert result.head == tags['1.1']

        for version in ('1.0', '1.1'):
            names = sorted(e.name for e in git.ls_tree(path, tags[version]))
            assert names == [b'README', b'src/main.c']

        readme = [e for e in git.ls_tree(path, tags['1.1']) if e.name == b'README'][0]
        assert git.cat_blob(path, readme.oid) == b'sample 1.1\n'

    def test_same_input_same_commits(self, tmp_path, git):
        first = asyncio.run(sample_service().import_component(str(tmp_path / 'a.git'), 'sample'))
        second = asyncio.run(sample_service().import_component(str(tmp_path / 'b.git'), 'sample'))
        assert first.head == second.head

    def test_reimport_moves_branch_and_tags(self, tmp_path, git):
        path = str(tmp_path / 'sample.git')
        asyncio.run(sample_service().import_component(path, 'sample'))

        result = asyncio.run(sample_service(extra_versions=('2.0',)).import_component(path, 'sample'))

        tags = git.tags(path)
        assert set(tags) == {'1.0', '1.1', '2.0'}
        assert git.resolve(path, 'refs/heads/main') == result.head == tags['2.0']

    def test_non_bare_checks_out_files(self, tmp_path):
        path = tmp_path / 'sample'

        asyncio.run(sample_service().import_component(str(path), 'sample', bare=False))

        assert (path / 'README').read_bytes() == b'sample 1.1\n'
        assert (path / 'src' / 'main.c').exists()


class TestReleaseToGit:

    def test_failed_component_is_left_out(self, tmp_path, git, caplog):
        record = ReleaseRecord(entity='macos', version='11.0', url='https://example.test/release/macos-110.html')
        a = ReleaseComponentRecord(entity='macos', component='A', url='https://example.test/tarballs/A/A-1.tar.gz')
        b = ReleaseComponentRecord(entity='macos', component='B', url='https://example.test/tarballs/B/B-1.tar.gz')
        catalog = FakeCatalog(releases=[record], release_components={record: [a, b]})
        fetcher = FakeFetcher({a.url: make_tarball([tar_member('A-1/a.c', b'a')])})
        service = HistoryService(config=get_default_config(), catalog=catalog, fetcher=fetcher)
        path = str(tmp_path / 'macos.git')

        with caplog.at_level(logging.WARNING, logger='srcvault'):
            result = asyncio.run(service.import_release(path, 'macos'))

        tags = git.tags(path)
        assert tags == {'11.0': result.head}
        assert [e.name for e in git.ls_tree(path, result.head)] == [b'A/a.c']
        assert git.run_text(['log', '-1', '--format=%B', result.head], cwd=path) == 'macos 11.0'
        assert b.url in caplog.text
