"""Process-level configuration, read once at the boundary.

Per KERNEL_PHILOSOPHY: The core never reads os.environ; apps build
PullerSettings (usually via from_env) and pass it in.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from .exceptions import PullConfigError
from .utils import installation_key

logger = logging.getLogger(__name__)

HostKeyChecking = Literal["accept-new", "yes", "no"]

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def parse_bool(value: str | None, name: str = "value") -> bool:
    """Coerce a shell-style flag string into a real bool.

    Raises:
        PullConfigError: If the string is not a recognized flag value
    """
    if value is None:
        return False
    normalized = value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise PullConfigError(
        f"Invalid boolean for {name}: {value!r} (expected one of 1/true/yes/on or 0/false/no/off)",
        context={"name": name, "value": value},
    )


def _default_work_dir(environ: Mapping[str, str]) -> Path:
    for key in ("TMPDIR", "TMP", "TEMP"):
        if environ.get(key):
            return Path(environ[key])
    return Path("/tmp")


class PullerSettings(BaseModel):
    """Immutable snapshot of everything the core consults besides the request."""

    model_config = ConfigDict(frozen=True)

    # Git transport
    git_ssh_command: str | None = None
    ssh_auth_sock: str | None = None
    disable_ssh_agent: bool = False
    ssh_key_path: Path | None = None
    strict_host_key_checking: HostKeyChecking = "accept-new"
    known_hosts_file: Path = Field(default_factory=lambda: Path.home() / ".ssh" / "known_hosts")
    sudo_user: str | None = None

    # HTTP(S) auth, used for https git remotes and plain downloads
    http_token: str | None = None
    http_auth_header: str | None = None
    http_timeout: float | None = None

    # Local state
    work_dir: Path = Path("/tmp")
    deployment_path: Path = Field(default_factory=Path.cwd)

    @property
    def installation_key(self) -> str:
        return installation_key(self.deployment_path)

    @property
    def git_cache_dir(self) -> Path:
        return self.work_dir / f"liteflow_git.{self.installation_key}"

    def http_header(self) -> str | None:
        """Authorization header line, explicit header winning over a token."""
        if self.http_auth_header:
            return self.http_auth_header
        if self.http_token:
            return f"Authorization: Bearer {self.http_token}"
        return None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PullerSettings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            PullerSettings instance

        Raises:
            PullConfigError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        def opt(key: str) -> str | None:
            return env.get(key) or None

        values: dict = {
            "git_ssh_command": opt("GIT_SSH_COMMAND"),
            "ssh_auth_sock": opt("SSH_AUTH_SOCK"),
            "disable_ssh_agent": parse_bool(env.get("PULLER_DISABLE_SSH_AGENT"), "PULLER_DISABLE_SSH_AGENT"),
            "ssh_key_path": opt("PULLER_SSH_KEY"),
            "sudo_user": opt("SUDO_USER"),
            "http_token": opt("PULLER_HTTP_TOKEN"),
            "http_auth_header": opt("PULLER_HTTP_AUTH_HEADER"),
            "http_timeout": opt("PULLER_HTTP_TIMEOUT"),
            "work_dir": opt("PULLER_WORK_DIR") or _default_work_dir(env),
        }
        if strictness := opt("PULLER_STRICT_HOST_KEY_CHECKING"):
            values["strict_host_key_checking"] = strictness.lower()
        if known_hosts := opt("PULLER_KNOWN_HOSTS"):
            values["known_hosts_file"] = known_hosts
        if deployment := opt("PULLER_DEPLOYMENT_PATH"):
            values["deployment_path"] = deployment

        try:
            settings = cls(**values)
        except ValidationError as e:
            raise PullConfigError(f"Invalid puller configuration: {e}", context={"errors": e.errors()}) from e

        logger.debug(f"Loaded settings (installation key {settings.installation_key})")
        return settings
