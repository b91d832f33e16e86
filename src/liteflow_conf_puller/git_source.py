"""Git candidate source - shallow clone once, fetch+reset on later syncs.

The working cache is keyed by installation, lives under the work dir and is
reused across polls so steady-state syncs are cheap depth-1 fetches. The
candidate is read in place from the checkout; nothing is copied out.

Cache states after fetch() returns or raises:
- fully checked out at the remote default-branch tip, or
- removed (clone failed, or the tree could not be reset), so the next sync re-clones.
A failed fetch leaves the previous checkout as it was.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from pathlib import PurePosixPath

from .auth import resolve_transport
from .exceptions import CacheCorruptError
from .exceptions import PullConfigError
from .exceptions import SourceNotFoundError
from .exceptions import SourceUnavailableError
from .known_hosts import ensure_known_host
from .schema import GitSource
from .settings import PullerSettings
from .utils import ssh_remote_host

logger = logging.getLogger(__name__)


def _output(result: subprocess.CompletedProcess, fallback: str) -> str:
    return result.stderr.strip() or result.stdout.strip() or fallback


class GitCandidateSource:
    """Candidate source backed by a reused shallow git checkout."""

    def __init__(self, source: GitSource, settings: PullerSettings, cache_dir: Path | None = None):
        """Initialize with source descriptor and settings.

        Args:
            source: Repository URL and file path inside it
            settings: Process configuration (transport, work dir)
            cache_dir: Override for the working cache location
        """
        self.source = source
        self.settings = settings
        self.cache_dir = cache_dir or settings.git_cache_dir
        self._env: dict[str, str] = {}

    def fetch(self) -> Path:
        """Bring the working cache up to date and locate the requested file.

        Returns:
            Absolute path of the file inside the checkout

        Raises:
            SourceUnavailableError: Clone or fetch failed
            CacheCorruptError: Checkout could not be reset to the fetched head
            SourceNotFoundError: File not present in the repository
            PullConfigError: src_path escapes the repository
        """
        self._prepare_transport()

        if self._has_checkout():
            logger.info(f"Updating existing git repo at {self.cache_dir}")
            self._update()
        else:
            logger.info(f"Cloning fresh repo to {self.cache_dir}")
            self._clone()

        return self._locate()

    def release(self, candidate: Path | None) -> None:
        # Working cache is kept for the next poll
        pass

    def _prepare_transport(self) -> None:
        transport = resolve_transport(self.settings, self.source.repo_url)
        self._env = {**os.environ, **transport.to_env()}

        remote = ssh_remote_host(self.source.repo_url)
        if remote is not None:
            host, port = remote
            ensure_known_host(host, self.settings.known_hosts_file, port)

    def _git(self, *args: str, in_cache: bool = True) -> subprocess.CompletedProcess:
        cmd = ["git"]
        if in_cache:
            cmd += ["-C", str(self.cache_dir)]
        cmd += list(args)
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False, env=self._env)
        except OSError as e:
            raise SourceUnavailableError(f"Failed to run git: {e}", context={"command": cmd}) from e
        if result.returncode != 0:
            logger.debug(f"git {args[0]} exited {result.returncode}: {_output(result, '')}")
        return result

    def _has_checkout(self) -> bool:
        if not (self.cache_dir / ".git").is_dir():
            return False
        # git walks up past a broken .git, so check the toplevel is the cache itself
        result = self._git("rev-parse", "--show-toplevel")
        if result.returncode != 0 or Path(result.stdout.strip()).resolve() != self.cache_dir.resolve():
            logger.warning(f"Discarding unusable git cache at {self.cache_dir}: {_output(result, 'not a checkout')}")
            return False
        return True

    def _discard_cache(self) -> None:
        shutil.rmtree(self.cache_dir, ignore_errors=True)

    def _clone(self) -> None:
        self._discard_cache()
        try:
            self.cache_dir.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheCorruptError(
                f"Failed to create cache directory {self.cache_dir.parent}: {e}",
                context={"cache_dir": str(self.cache_dir)},
            ) from e

        result = self._git("clone", "--depth=1", self.source.repo_url, str(self.cache_dir), in_cache=False)
        if result.returncode != 0:
            self._discard_cache()
            raise SourceUnavailableError(
                f"Failed to clone git repo {self.source.repo_url}: {_output(result, 'git clone failed')}",
                context={"repo_url": self.source.repo_url},
            )

    def _update(self) -> None:
        # Remote may have been reconfigured since the cache was created
        result = self._git("remote", "set-url", "origin", self.source.repo_url)
        if result.returncode != 0:
            logger.warning(f"Could not update remote URL: {_output(result, 'git remote set-url failed')}")

        result = self._git("fetch", "--depth=1", "origin", "HEAD")
        if result.returncode != 0:
            raise SourceUnavailableError(
                f"Failed to fetch from git repo {self.source.repo_url}: {_output(result, 'git fetch failed')}",
                context={"repo_url": self.source.repo_url},
            )

        # FETCH_HEAD is the remote's current default-branch tip
        for args in (("reset", "--hard", "FETCH_HEAD"), ("clean", "-ffdx")):
            result = self._git(*args)
            if result.returncode != 0:
                self._discard_cache()
                raise CacheCorruptError(
                    f"Failed to reset git repo at {self.cache_dir}: {_output(result, f'git {args[0]} failed')}",
                    context={"cache_dir": str(self.cache_dir)},
                )

    def _locate(self) -> Path:
        src = PurePosixPath(self.source.src_path)
        root = self.cache_dir.resolve()
        candidate = (root / src).resolve()
        if src.is_absolute() or not candidate.is_relative_to(root) or candidate == root:
            raise PullConfigError(
                f"Source path {self.source.src_path} is outside the repository",
                context={"src_path": self.source.src_path},
            )
        if candidate.relative_to(root).parts[0] == ".git":
            raise PullConfigError(
                f"Source path {self.source.src_path} points into git metadata, not the checkout",
                context={"src_path": self.source.src_path},
            )

        if not candidate.is_file():
            raise SourceNotFoundError(
                f"File {self.source.src_path} does not exist in repo {self.source.repo_url}",
                context={"src_path": self.source.src_path, "repo_url": self.source.repo_url},
            )
        return candidate

    def __repr__(self) -> str:
        return f"GitCandidateSource({self.source.repo_url}#{self.source.src_path})"
