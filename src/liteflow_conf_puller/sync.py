"""Sync orchestration - one fetch, one install, one outcome.

Per KERNEL_PHILOSOPHY: sync_once() is mechanism. Polling cadence, retries
and timeouts are the caller's policy.
"""

import logging

import httpx

from .exceptions import PullConfigError
from .exceptions import PullError
from .git_source import GitCandidateSource
from .http_source import HttpCandidateSource
from .installer import install_candidate
from .protocols import CandidateSourceProtocol
from .schema import GitSource
from .schema import HttpSource
from .schema import SyncOutcome
from .schema import SyncRequest
from .settings import PullerSettings

logger = logging.getLogger(__name__)


def validate_request(request: SyncRequest) -> None:
    """Reject requests with missing required fields before touching anything.

    Raises:
        PullConfigError: If a required field is empty
    """
    missing = []
    match request.source:
        case GitSource(repo_url=repo_url, src_path=src_path):
            if not repo_url.strip():
                missing.append("repo_url")
            if not src_path.strip():
                missing.append("src_path")
        case HttpSource(url=url):
            if not url.strip():
                missing.append("url")
    if not str(request.dest_path).strip() or str(request.dest_path) == ".":
        missing.append("dest_path")

    if missing:
        raise PullConfigError(
            f"Missing required arguments: {', '.join(missing)}",
            context={"missing": missing},
        )


def build_source(
    request: SyncRequest,
    settings: PullerSettings,
    http_transport: httpx.BaseTransport | None = None,
) -> CandidateSourceProtocol:
    """Pick the candidate source for the request's descriptor."""
    match request.source:
        case GitSource() as source:
            return GitCandidateSource(source, settings)
        case HttpSource() as source:
            return HttpCandidateSource(source, settings, transport=http_transport)
    raise PullConfigError(f"Unsupported source: {request.source!r}")


def sync_once(
    request: SyncRequest,
    settings: PullerSettings,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> SyncOutcome:
    """
    Fetch the remote file once and install it if it changed.

    Process:
    1. Validate required fields (no network or disk access on failure)
    2. Fetch the candidate from the matching source
    3. Install it at dest_path (compare, optional backup, atomic replace)
    4. Release per-invocation resources, on every exit path

    Args:
        request: Source descriptor, destination and backup/force policy
        settings: Process configuration
        http_transport: Optional httpx transport (HTTP sources only)

    Returns:
        SyncOutcome: installed, unchanged, or error with its ErrorKind

    Example:
        >>> request = SyncRequest(source=HttpSource(url="https://example.com/liteflow.conf"),
        ...                       dest_path=Path("/etc/liteflow.conf"), backup=True)
        >>> outcome = sync_once(request, PullerSettings.from_env())
        >>> outcome.status
        'installed'
    """
    dest = request.dest_path
    try:
        validate_request(request)
        source = build_source(request, settings, http_transport)

        candidate = None
        try:
            candidate = source.fetch()
            result = install_candidate(candidate, dest, backup=request.backup, force=request.force)
        finally:
            source.release(candidate)

    except PullError as e:
        logger.error(f"Sync failed [{e.kind}]: {e.message}")
        return SyncOutcome.error(e.kind, e.message, dest_path=dest)

    outcome = SyncOutcome.from_install(result, dest)
    logger.info(f"Sync {outcome.status}: {dest}")
    return outcome
