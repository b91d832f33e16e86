"""Command-line entrypoint - argument parsing and the polling loop.

Usage:
    liteflow-conf-puller git [--force] [--backup] [--interval N] REPO_URL SRC_PATH DEST_PATH
    liteflow-conf-puller http [--force] [--backup] [--interval N] URL DEST_PATH
"""

import logging
import os
import shutil
import signal
import sys
import time
from pathlib import Path

import click

from .exceptions import PullConfigError
from .known_hosts import append_known_hosts
from .schema import GitSource
from .schema import HttpSource
from .schema import SyncRequest
from .settings import PullerSettings
from .sync import sync_once

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    logging.getLogger("liteflow_conf_puller").setLevel(level)


def _load_settings() -> PullerSettings:
    try:
        settings = PullerSettings.from_env()
    except PullConfigError as e:
        logger.error(f"Error: {e.message}")
        raise SystemExit(1) from e

    if extra_hosts := os.environ.get("PULLER_SSH_KNOWN_HOSTS"):
        try:
            append_known_hosts(extra_hosts, settings.known_hosts_file)
        except OSError as e:
            logger.warning(f"Failed to seed known hosts: {e}")
    return settings


def _require_commands(*names: str) -> None:
    missing = [name for name in names if shutil.which(name) is None]
    if missing:
        logger.error(f"Error: Missing required command(s): {' '.join(missing)}")
        logger.error("Please install the missing command(s) before running.")
        raise SystemExit(1)


def _on_terminate(signum, frame) -> None:
    logger.info("terminating")
    raise SystemExit(0)


def run(request: SyncRequest, settings: PullerSettings, interval: float) -> int:
    """Sync once, or forever every `interval` seconds.

    Returns:
        Exit code of the single sync (0 ok, 1 error); never returns when polling
    """
    if interval <= 0:
        return 0 if sync_once(request, settings).ok else 1

    signal.signal(signal.SIGTERM, _on_terminate)
    signal.signal(signal.SIGINT, _on_terminate)
    logger.info(f"Polling every {interval:g}s")
    while True:
        try:
            outcome = sync_once(request, settings)
        except Exception as e:
            logger.exception(f"Sync attempt crashed: {e}")
            logger.info(f"Retrying in {interval:g}s")
        else:
            if not outcome.ok:
                logger.info(f"Sync attempt failed ({outcome.error_kind}), retrying in {interval:g}s")
        time.sleep(interval)


_common_options = [
    click.option("--force", is_flag=True, help="Overwrite existing destination file"),
    click.option("--backup", is_flag=True, help="Create backup with timestamp before overwriting"),
    click.option(
        "--interval",
        type=float,
        default=0,
        envvar="PULLER_INTERVAL",
        show_default=True,
        help="Seconds between syncs; 0 syncs once and exits",
    ),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Pull a configuration file from a git repository or an HTTP(S) URL."""
    setup_logging(verbose)


@cli.command("git")
@common_options
@click.argument("repo_url")
@click.argument("src_path")
@click.argument("dest_path", type=click.Path(path_type=Path))
def git_cmd(force: bool, backup: bool, interval: float, repo_url: str, src_path: str, dest_path: Path) -> None:
    """Pull SRC_PATH from the repository at REPO_URL into DEST_PATH.

    \b
    Examples:
      liteflow-conf-puller git git@github.com:user/configs.git server.conf /etc/liteflow.conf
      liteflow-conf-puller git --backup https://github.com/user/configs.git client.conf ./liteflow.conf
    """
    _require_commands("git")
    settings = _load_settings()
    request = SyncRequest(
        source=GitSource(repo_url=repo_url, src_path=src_path),
        dest_path=dest_path,
        backup=backup,
        force=force,
    )
    sys.exit(run(request, settings, interval))


@cli.command("http")
@common_options
@click.argument("url")
@click.argument("dest_path", type=click.Path(path_type=Path))
def http_cmd(force: bool, backup: bool, interval: float, url: str, dest_path: Path) -> None:
    """Download URL into DEST_PATH.

    \b
    Examples:
      liteflow-conf-puller http https://example.com/liteflow.conf /etc/liteflow.conf
      liteflow-conf-puller http --backup https://configs.example.com/server.json ./liteflow.conf
    """
    settings = _load_settings()
    request = SyncRequest(source=HttpSource(url=url), dest_path=dest_path, backup=backup, force=force)
    sys.exit(run(request, settings, interval))


cli.add_command(http_cmd, name="wget")


def main() -> None:
    cli()
