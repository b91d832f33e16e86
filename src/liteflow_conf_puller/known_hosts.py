"""Trusted-host store maintenance (best-effort, append-only).

Registering a host key up front keeps ssh from prompting on first contact.
Nothing here ever aborts a sync: failures are logged and the transport's
StrictHostKeyChecking policy decides what happens next.
"""

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def _host_pattern(host: str, port: int | None) -> str:
    if port and port != 22:
        return f"[{host}]:{port}"
    return host


def is_known_host(host: str, store: Path, port: int | None = None) -> bool:
    """Check whether the store already has a key for host (hashed entries included)."""
    if not store.exists() or shutil.which("ssh-keygen") is None:
        return False
    result = subprocess.run(
        ["ssh-keygen", "-F", _host_pattern(host, port), "-f", str(store)],
        capture_output=True,
        text=True,
        check=False,
    )
    return result.returncode == 0 and bool(result.stdout.strip())


def append_known_hosts(lines: str, store: Path) -> None:
    """Append literal known_hosts lines to the store."""
    if not lines.strip():
        return
    store.parent.mkdir(parents=True, exist_ok=True)
    with open(store, "a", encoding="utf-8") as f:
        f.write(lines if lines.endswith("\n") else lines + "\n")
    logger.debug(f"Appended known_hosts entries to {store}")


def ensure_known_host(host: str, store: Path, port: int | None = None) -> bool:
    """Make sure host has an entry in the trusted-host store.

    Args:
        host: SSH host name
        store: known_hosts file to check and append to
        port: Non-default SSH port, if any

    Returns:
        True if the host is (now) known, False if registration failed
    """
    if is_known_host(host, store, port):
        logger.debug(f"Host {host} already in {store}")
        return True

    if shutil.which("ssh-keyscan") is None:
        logger.warning(f"ssh-keyscan not available, cannot register host key for {host}")
        return False

    cmd = ["ssh-keyscan", "-H"]
    if port:
        cmd += ["-p", str(port)]
    cmd.append(host)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as e:
        logger.warning(f"Failed to run ssh-keyscan for {host}: {e}")
        return False

    if result.returncode != 0 or not result.stdout.strip():
        logger.warning(f"ssh-keyscan returned no keys for {host}: {result.stderr.strip()}")
        return False

    try:
        append_known_hosts(result.stdout, store)
    except OSError as e:
        logger.warning(f"Failed to write host key for {host} to {store}: {e}")
        return False

    logger.info(f"Registered host key for {host} in {store}")
    return True
