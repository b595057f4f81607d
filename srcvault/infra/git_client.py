"""
Git client infrastructure for srcvault.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

GitObjectStore builds on the client to satisfy the ObjectStore
capability with plumbing commands (hash-object, mktree, commit-tree).
"""

import os
import subprocess
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from pathlib import Path
import logging

from ..exit_codes import RepositoryWriteError
from .object_store import TreeEntry

logger = logging.getLogger(__name__)

# Keep user configuration from signing or rewriting the objects we create.
_SAFE_CONFIG = [
    '-c', 'commit.gpgSign=false',
    '-c', 'tag.gpgSign=false',
    '-c', 'core.autocrlf=false',
]


@dataclass(frozen=True)
class Identity:
    """Author/committer/tagger identity stamped on every object."""
    name: str = "Apple Open Source"
    email: str = "opensource@apple.com"
    timestamp: int = 1609459200
    timezone: str = "+0000"

    @classmethod
    def from_config(cls, config: Dict) -> 'Identity':
        git = config.get('git', {})
        return cls(
            name=git.get('author_name', cls.name),
            email=git.get('author_email', cls.email),
            timestamp=int(git.get('timestamp', cls.timestamp)),
            timezone=str(git.get('timezone', cls.timezone)),
        )

    def env(self) -> Dict[str, str]:
        date = f"{self.timestamp} {self.timezone}"
        return {
            'GIT_AUTHOR_NAME': self.name,
            'GIT_AUTHOR_EMAIL': self.email,
            'GIT_AUTHOR_DATE': date,
            'GIT_COMMITTER_NAME': self.name,
            'GIT_COMMITTER_EMAIL': self.email,
            'GIT_COMMITTER_DATE': date,
        }


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        client.init("/tmp/hfs.git", bare=True, branch="main")
        oid = client.run(["hash-object", "-w", "--stdin"], "/tmp/hfs.git", input=b"data")
    """

    def __init__(self, timeout: int = 300, git: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 300)
            git: git executable to invoke
        """
        self.timeout = timeout
        self.git = git

    def run(
        self,
        args: List[str],
        cwd: str,
        input: Optional[bytes] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> bytes:
        """
        Run a git command and return its stdout.

        Raises:
            RepositoryWriteError: the command failed, timed out or git is missing
        """
        cmd = [self.git] + _SAFE_CONFIG + list(args)
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        logger.debug(f"git {' '.join(args)} (in {cwd})")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                input=input,
                capture_output=True,
                env=full_env,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise RepositoryWriteError(f"git {args[0]} timed out in {cwd}") from e
        except OSError as e:
            raise RepositoryWriteError(f"unable to run git {args[0]} in {cwd}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', 'replace').strip()
            raise RepositoryWriteError(f"git {args[0]} failed in {cwd}: {stderr}")

        return result.stdout

    def run_text(self, args: List[str], cwd: str, **kwargs) -> str:
        return self.run(args, cwd, **kwargs).decode('utf-8', 'replace').strip()

    def init(self, path: str, bare: bool = True, branch: str = "main") -> None:
        """Create (or reinitialize) a repository whose HEAD names ``branch``."""
        Path(path).mkdir(parents=True, exist_ok=True)
        args = ['init', '--quiet']
        if bare:
            args.append('--bare')
        self.run(args, cwd=path)
        self.run(['symbolic-ref', 'HEAD', f'refs/heads/{branch}'], cwd=path)

    def is_bare(self, path: str) -> bool:
        return self.run_text(['rev-parse', '--is-bare-repository'], cwd=path) == 'true'


class GitObjectStore:
    """ObjectStore backed by a git repository on disk."""

    def __init__(self, path: str, identity: Optional[Identity] = None,
                 client: Optional[GitClient] = None):
        self.path = str(path)
        self.identity = identity or Identity()
        self.git = client or GitClient()
        self._bare: Optional[bool] = None

    @classmethod
    def create(cls, path: str, bare: bool = True, branch: str = "main",
               identity: Optional[Identity] = None,
               client: Optional[GitClient] = None) -> 'GitObjectStore':
        """Initialize a repository at ``path`` and return a store for it."""
        client = client or GitClient()
        client.init(str(path), bare=bare, branch=branch)
        return cls(path, identity=identity, client=client)

    @property
    def is_bare(self) -> bool:
        if self._bare is None:
            self._bare = self.git.is_bare(self.path)
        return self._bare

    def write_blob(self, data: bytes) -> str:
        return self.git.run_text(
            ['hash-object', '-w', '--no-filters', '--stdin'], cwd=self.path, input=data
        )

    def write_tree(self, entries: Iterable[TreeEntry]) -> str:
        payload = b''.join(
            f"{entry.mode:06o} {entry.object_type} {entry.oid}\t".encode() + entry.name + b'\0'
            for entry in entries
        )
        return self.git.run_text(['mktree', '-z'], cwd=self.path, input=payload)

    def write_commit(self, tree: str, parents: List[str], message: str) -> str:
        args = ['commit-tree', tree]
        for parent in parents:
            args += ['-p', parent]
        args += ['-F', '-']
        return self.git.run_text(
            args, cwd=self.path, input=message.encode('utf-8'), env=self.identity.env()
        )

    def write_tag(self, name: str, commit: str, message: str = "tagging", force: bool = True) -> None:
        args = ['tag', '-a', '-m', message]
        if force:
            args.append('-f')
        args += [name, commit]
        self.git.run(args, cwd=self.path, env=self.identity.env())

    def set_branch(self, name: str, commit: str) -> None:
        self.git.run(['update-ref', f'refs/heads/{name}', commit], cwd=self.path)

    def reset_working_copy(self, branch: str, commit: str) -> None:
        self.git.run(['symbolic-ref', 'HEAD', f'refs/heads/{branch}'], cwd=self.path)
        self.git.run(['reset', '--quiet', '--hard', commit], cwd=self.path)
