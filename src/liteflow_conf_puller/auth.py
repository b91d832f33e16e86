"""Git transport resolution - which identity and host-key policy to use.

Resolution order for the SSH command (first match wins):
1. Explicit GIT_SSH_COMMAND override, used verbatim
2. Running ssh-agent (unless disabled) - no identity file pinned
3. Configured private key file
4. Invoking user's default key when running under sudo
5. Bare ssh, relying on default key discovery

Per KERNEL_PHILOSOPHY: Inputs come from PullerSettings only, never os.environ.
"""

import logging
import os
import shlex
from pathlib import Path

from .schema import GitTransport
from .settings import PullerSettings
from .utils import is_http_url

logger = logging.getLogger(__name__)


def _sudo_user_key(user: str) -> Path | None:
    home = os.path.expanduser(f"~{user}")
    if home.startswith("~"):
        # Unknown user, no home directory to borrow a key from
        return None
    return Path(home) / ".ssh" / "id_rsa"


def _identity_for(settings: PullerSettings) -> tuple[str, Path | None]:
    """Pick the identity source, returning (mode, pinned key)."""
    if settings.ssh_auth_sock and not settings.disable_ssh_agent:
        return "agent", None
    if settings.ssh_key_path:
        return "key", settings.ssh_key_path
    if settings.sudo_user:
        key = _sudo_user_key(settings.sudo_user)
        if key is not None:
            return "sudo", key
        logger.debug(f"Could not resolve home of sudo user {settings.sudo_user}")
    return "default", None


def build_ssh_command(settings: PullerSettings) -> str:
    """Build the ssh command git should use for this deployment."""
    if settings.git_ssh_command:
        logger.debug("Using GIT_SSH_COMMAND override")
        return settings.git_ssh_command

    mode, key = _identity_for(settings)

    parts = [
        "ssh",
        "-F",
        "/dev/null",
        "-o",
        f"StrictHostKeyChecking={settings.strict_host_key_checking}",
        "-o",
        f"UserKnownHostsFile={settings.known_hosts_file}",
    ]
    if settings.disable_ssh_agent:
        parts += ["-o", "IdentityAgent=none"]
    if key is not None:
        parts += ["-i", str(key), "-o", "IdentitiesOnly=yes"]
        logger.debug(f"Using SSH key: {key} ({mode})")
    else:
        logger.debug(f"No SSH identity pinned ({mode})")

    return shlex.join(parts)


def resolve_transport(settings: PullerSettings, repo_url: str) -> GitTransport:
    """Resolve the transport for a single git sync.

    Args:
        settings: Process configuration
        repo_url: Remote URL, used to decide whether an HTTP header applies

    Returns:
        GitTransport to overlay onto git's environment
    """
    header = settings.http_header() if is_http_url(repo_url) else None
    agent_socket = None
    if not settings.git_ssh_command and _identity_for(settings)[0] == "agent":
        agent_socket = settings.ssh_auth_sock
    return GitTransport(
        ssh_command=build_ssh_command(settings),
        agent_socket=agent_socket,
        http_header=header,
    )
