"""Naming helpers shared by the cache, scratch and backup paths.

Per DRY: Central utilities eliminate duplicated path/URL parsing across sources.
"""

import re
from datetime import datetime
from pathlib import Path
from urllib.parse import urlsplit

_SCP_LIKE = re.compile(r"^(?:[^@/:]+@)?(?P<host>[^@/:]+):")
_SSH_SCHEMES = {"ssh", "git+ssh", "ssh+git"}


def installation_key(deployment_path: Path) -> str:
    """Derive a per-deployment key from its filesystem location.

    Two deployments on one host get different keys, so their working caches
    and scratch files never collide.

    Examples:
        >>> installation_key(Path("/opt/liteflow"))
        '_opt_liteflow'
    """
    return str(deployment_path).replace("/", "_")


def timestamp_suffix(now: datetime | None = None) -> str:
    """Local timestamp with microsecond precision, safe for file names.

    Examples:
        >>> timestamp_suffix(datetime(2025, 1, 2, 3, 4, 5, 6))
        '2025-01-02_03-04-05-000006'
    """
    return (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S-%f")


def ssh_remote_host(repo_url: str) -> tuple[str, int | None] | None:
    """Extract (host, port) from a git remote that is reached over SSH.

    Supports ``ssh://[user@]host[:port]/path`` and scp-like
    ``[user@]host:path``. Returns None for http(s), file:// and local paths.

    Examples:
        >>> ssh_remote_host("git@github.com:user/configs.git")
        ('github.com', None)
        >>> ssh_remote_host("ssh://git@git.example.com:2222/configs.git")
        ('git.example.com', 2222)
        >>> ssh_remote_host("https://github.com/user/configs.git") is None
        True
    """
    if "://" in repo_url:
        parts = urlsplit(repo_url)
        if parts.scheme not in _SSH_SCHEMES or not parts.hostname:
            return None
        return parts.hostname, parts.port

    match = _SCP_LIKE.match(repo_url)
    if match is None:
        return None
    return match.group("host"), None


def is_http_url(url: str) -> bool:
    return urlsplit(url).scheme in ("http", "https")
