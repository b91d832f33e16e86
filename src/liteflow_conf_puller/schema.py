"""Sync request and outcome models.

Per KERNEL_PHILOSOPHY: The core only consumes these immutable values; parsing
strings into them happens at the boundary (settings, CLI).
"""

from enum import StrEnum
from pathlib import Path
from typing import Annotated
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import StrictBool


class InstallStatus(StrEnum):
    """Result of a successful install step."""

    INSTALLED = "installed"
    UNCHANGED = "unchanged"


class ErrorKind(StrEnum):
    """Failure classification reported back to the caller."""

    CONFIG_ERROR = "config_error"
    SOURCE_UNAVAILABLE = "source_unavailable"
    SOURCE_NOT_FOUND = "source_not_found"
    CACHE_CORRUPT = "cache_corrupt"
    DEST_EXISTS = "dest_exists"
    DEST_UNWRITABLE = "dest_unwritable"
    BACKUP_FAILED = "backup_failed"


class GitSource(BaseModel):
    """A single file inside a git repository."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["git"] = "git"
    repo_url: str
    src_path: str


class HttpSource(BaseModel):
    """A single file served over HTTP(S)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["http"] = "http"
    url: str


SourceDescriptor = Annotated[GitSource | HttpSource, Field(discriminator="kind")]


class SyncRequest(BaseModel):
    """One invocation of the fetch-compare-install procedure."""

    model_config = ConfigDict(frozen=True)

    source: SourceDescriptor
    dest_path: Path
    backup: StrictBool = False
    force: StrictBool = False


class GitTransport(BaseModel):
    """Resolved transport settings for git child processes.

    Derived fresh for every sync from PullerSettings; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    ssh_command: str
    agent_socket: str | None = None
    http_header: str | None = None

    def to_env(self) -> dict[str, str]:
        """Environment overlay for git subprocesses."""
        env = {
            "GIT_SSH_COMMAND": self.ssh_command,
            "GIT_TERMINAL_PROMPT": "0",
        }
        if self.agent_socket:
            env["SSH_AUTH_SOCK"] = self.agent_socket
        if self.http_header:
            # Injected as config, never embedded in the remote URL
            env["GIT_CONFIG_COUNT"] = "1"
            env["GIT_CONFIG_KEY_0"] = "http.extraHeader"
            env["GIT_CONFIG_VALUE_0"] = self.http_header
        return env


class InstallResult(BaseModel):
    """What the installer did with a candidate."""

    model_config = ConfigDict(frozen=True)

    status: InstallStatus
    backup_path: Path | None = None


class SyncOutcome(BaseModel):
    """Single success/failure outcome of sync_once()."""

    model_config = ConfigDict(frozen=True)

    status: Literal["installed", "unchanged", "error"]
    dest_path: Path | None = None
    error_kind: ErrorKind | None = None
    message: str = ""
    backup_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.status != "error"

    @classmethod
    def from_install(cls, result: InstallResult, dest_path: Path) -> "SyncOutcome":
        return cls(status=result.status.value, dest_path=dest_path, backup_path=result.backup_path)

    @classmethod
    def error(cls, kind: ErrorKind, message: str, dest_path: Path | None = None) -> "SyncOutcome":
        return cls(status="error", error_kind=kind, message=message, dest_path=dest_path)
