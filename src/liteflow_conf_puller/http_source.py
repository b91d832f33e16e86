"""HTTP(S) candidate source - download into a per-invocation scratch file."""

import logging
from pathlib import Path

import httpx

from .exceptions import SourceUnavailableError
from .schema import HttpSource
from .settings import PullerSettings
from .utils import timestamp_suffix

logger = logging.getLogger(__name__)


def _header_dict(header_line: str | None) -> dict[str, str]:
    """Split a ``Name: value`` header line for httpx."""
    if not header_line or ":" not in header_line:
        return {}
    name, value = header_line.split(":", 1)
    return {name.strip(): value.strip()}


class HttpCandidateSource:
    """Candidate source that streams a URL into a scratch file.

    The scratch file is owned by this source: release() deletes it, and the
    orchestrator calls release() on every exit path.
    """

    def __init__(
        self,
        source: HttpSource,
        settings: PullerSettings,
        transport: httpx.BaseTransport | None = None,
    ):
        self.source = source
        self.settings = settings
        self.transport = transport

    def scratch_path(self) -> Path:
        return self.settings.work_dir / f"liteflow_wget.{self.settings.installation_key}.{timestamp_suffix()}"

    def _headers(self) -> dict[str, str]:
        # Credentials only travel over TLS
        if not self.source.url.startswith("https://"):
            return {}
        return _header_dict(self.settings.http_header())

    def fetch(self) -> Path:
        """Download the URL.

        Returns:
            Path to the non-empty scratch file

        Raises:
            SourceUnavailableError: Transfer failed, non-2xx status, or empty body
        """
        logger.info(f"Downloading configuration from: {self.source.url}")
        try:
            self.settings.work_dir.mkdir(parents=True, exist_ok=True)
            scratch = self._create_scratch()
        except OSError as e:
            raise SourceUnavailableError(
                f"Failed to create scratch file in {self.settings.work_dir}: {e}",
                context={"url": self.source.url},
            ) from e

        try:
            self._download(scratch)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            scratch.unlink(missing_ok=True)
            raise SourceUnavailableError(
                f"Failed to download {self.source.url}: {e}",
                context={"url": self.source.url},
            ) from e

        if scratch.stat().st_size == 0:
            scratch.unlink(missing_ok=True)
            raise SourceUnavailableError(
                f"Downloaded file from {self.source.url} is empty",
                context={"url": self.source.url},
            )

        logger.debug(f"Downloaded {scratch.stat().st_size} bytes to {scratch}")
        return scratch

    def release(self, candidate: Path | None) -> None:
        if candidate is None:
            return
        try:
            candidate.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove scratch file {candidate}: {e}")

    def _create_scratch(self) -> Path:
        while True:
            scratch = self.scratch_path()
            try:
                scratch.touch(exist_ok=False)
            except FileExistsError:
                continue
            return scratch

    def _download(self, scratch: Path) -> None:
        with httpx.Client(
            transport=self.transport,
            timeout=self.settings.http_timeout,
            follow_redirects=True,
        ) as client:
            with client.stream("GET", self.source.url, headers=self._headers()) as response:
                response.raise_for_status()
                with open(scratch, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)

    def __repr__(self) -> str:
        return f"HttpCandidateSource({self.source.url})"
