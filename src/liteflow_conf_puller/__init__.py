"""liteflow-conf-puller - Keep a local config file in sync with a git repo or URL.

Public API: build a SyncRequest, load PullerSettings once, call sync_once()
per poll and act on the returned SyncOutcome.
"""

from .auth import resolve_transport
from .exceptions import BackupFailedError
from .exceptions import CacheCorruptError
from .exceptions import DestExistsError
from .exceptions import DestUnwritableError
from .exceptions import PullConfigError
from .exceptions import PullError
from .exceptions import SourceNotFoundError
from .exceptions import SourceUnavailableError
from .git_source import GitCandidateSource
from .http_source import HttpCandidateSource
from .installer import install_candidate
from .protocols import CandidateSourceProtocol
from .schema import ErrorKind
from .schema import GitSource
from .schema import GitTransport
from .schema import HttpSource
from .schema import InstallResult
from .schema import InstallStatus
from .schema import SyncOutcome
from .schema import SyncRequest
from .settings import PullerSettings
from .sync import sync_once

__all__ = [
    # Requests and outcomes
    "GitSource",
    "HttpSource",
    "SyncRequest",
    "SyncOutcome",
    "ErrorKind",
    # Configuration
    "PullerSettings",
    "GitTransport",
    "resolve_transport",
    # Sources
    "CandidateSourceProtocol",
    "GitCandidateSource",
    "HttpCandidateSource",
    # Installation
    "install_candidate",
    "InstallResult",
    "InstallStatus",
    # Orchestration
    "sync_once",
    # Exceptions
    "PullError",
    "PullConfigError",
    "SourceUnavailableError",
    "SourceNotFoundError",
    "CacheCorruptError",
    "DestExistsError",
    "DestUnwritableError",
    "BackupFailedError",
]

__version__ = "0.1.0"
