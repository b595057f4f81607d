"""
Convert a gzipped tarball into a git tree.

Tarballs published by the catalog contain a single top-level directory
(``hfs-556.60.1/``) holding the sources. The tree we build is the content
of that directory: the leading path segment of every member is dropped.

Members are streamed; each file becomes a blob as soon as it is read and
is recorded in the accumulator of its directory. Once the stream is
exhausted the accumulators are written deepest first, so every parent
receives its children's tree ids before it is written itself.
"""

import io
import logging
import tarfile
import zlib
from typing import Dict, Optional, Tuple

from ..exit_codes import InvalidArchive, InvalidArchiveMode
from ..infra.object_store import (
    ObjectStore,
    TreeEntry,
    MODE_TREE,
    MODE_BLOB,
    MODE_BLOB_EXECUTABLE,
    MODE_LINK,
)

logger = logging.getLogger(__name__)


class DirectoryAccumulator:
    """Entries of one directory, collected while the archive is read."""

    def __init__(self, path: bytes):
        self.path = path
        self.entries: Dict[bytes, TreeEntry] = {}

    def insert(self, name: bytes, oid: str, mode: int) -> None:
        # Later members with the same name replace earlier ones.
        self.entries[name] = TreeEntry(name=name, oid=oid, mode=mode)

    def write(self, store: ObjectStore) -> str:
        return store.write_tree(self.entries.values())

    def __len__(self):
        return len(self.entries)


def git_mode_for(mode: int, path: str = "") -> int:
    """Map a tar member's permission bits to a git blob mode."""
    if mode & 0o111:
        return MODE_BLOB_EXECUTABLE
    if mode & 0o444:
        return MODE_BLOB
    # Seen in some archives.
    if mode == 0:
        return MODE_BLOB
    raise InvalidArchiveMode(mode, path)


def split_member_path(raw: bytes) -> Optional[Tuple[bytes, bytes]]:
    """Split an archive path into (directory, filename) below the top-level directory.

    Returns None for members that are not inside a top-level directory.
    """
    top, sep, rest = raw.partition(b'/')
    if not sep:
        return None

    parts = [part for part in rest.split(b'/') if part not in (b'', b'.')]
    if not parts:
        return None

    return b'/'.join(parts[:-1]), parts[-1]


def is_safe_member_path(directory: bytes, filename: bytes) -> bool:
    """False when a path would escape its tree or land in git metadata.

    Rejects ``..`` segments and ``.git`` segments in any letter case.
    """
    for part in directory.split(b'/') + [filename]:
        if part == b'..' or part.lower() == b'.git':
            return False
    return True


def _ensure_directory(dirs: Dict[bytes, DirectoryAccumulator], path: bytes) -> DirectoryAccumulator:
    """Return the accumulator for ``path``, creating it and any missing ancestors."""
    current = path
    while current not in dirs:
        dirs[current] = DirectoryAccumulator(current)
        current = current.rpartition(b'/')[0]
    return dirs[path]


def _encode(name: str) -> bytes:
    return name.encode('utf-8', 'surrogateescape')


def _read_member(archive: tarfile.TarFile, member: tarfile.TarInfo) -> bytes:
    fileobj = archive.extractfile(member)
    if fileobj is None:
        return b''
    with fileobj:
        return fileobj.read()


def tar_data_to_tree(tar_data: bytes, store: ObjectStore) -> str:
    """
    Write the content of a gzipped tar archive to ``store``.

    Args:
        tar_data: gzip-compressed tar archive
        store: object store receiving blobs and trees

    Returns:
        Id of the tree holding the archive content

    Raises:
        InvalidArchiveMode: a regular file's permission bits can't be mapped
        InvalidArchive: the data is not a readable gzipped tar stream
    """
    dirs: Dict[bytes, DirectoryAccumulator] = {b'': DirectoryAccumulator(b'')}
    # Stored members by full archive path, for resolving hard links.
    stored: Dict[bytes, Tuple[str, int]] = {}

    try:
        with tarfile.open(fileobj=io.BytesIO(tar_data), mode='r|gz',
                          encoding='utf-8', errors='surrogateescape') as archive:
            for member in archive:
                if member.isdir():
                    continue

                raw_path = _encode(member.name)
                location = split_member_path(raw_path)
                if location is None:
                    logger.warning(f"ignoring tar member {member.name} not in sub-directory")
                    continue
                if not is_safe_member_path(*location):
                    logger.warning(f"ignoring tar member {member.name} with unsafe path")
                    continue

                if member.issym():
                    mode = MODE_LINK
                    oid = store.write_blob(_encode(member.linkname))
                elif member.islnk():
                    target = stored.get(_encode(member.linkname))
                    if target is None:
                        logger.warning(
                            f"hard link {member.name} -> {member.linkname} precedes its target; storing as symlink"
                        )
                        mode = MODE_LINK
                        oid = store.write_blob(_encode(member.linkname))
                    else:
                        oid, mode = target
                elif member.isreg():
                    mode = git_mode_for(member.mode, member.name)
                    oid = store.write_blob(_read_member(archive, member))
                else:
                    logger.warning(f"ignoring special tar member {member.name}")
                    continue

                stored[raw_path] = (oid, mode)
                directory, filename = location
                _ensure_directory(dirs, directory).insert(filename, oid, mode)
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise InvalidArchive(f"reading tar archive: {e}") from e

    # Deepest directories first; a parent is always shorter than its children.
    for path in sorted(dirs, key=len, reverse=True):
        oid = dirs.pop(path).write(store)
        if not path:
            return oid

        parent, _, name = path.rpartition(b'/')
        dirs[parent].insert(name, oid, MODE_TREE)

    raise AssertionError("root tree should have been written")
