"""Tests for the command-line entrypoint."""

from pathlib import Path

import pytest
from click.testing import CliRunner
from liteflow_conf_puller import ErrorKind
from liteflow_conf_puller import GitSource
from liteflow_conf_puller import HttpSource
from liteflow_conf_puller import SyncOutcome
from liteflow_conf_puller import cli as cli_module
from liteflow_conf_puller.cli import cli


class StopPolling(Exception):
    pass


class FakeSync:
    """Stands in for sync_once, returning queued outcomes."""

    def __init__(self, *outcomes: SyncOutcome):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, request, settings):
        self.calls.append((request, settings))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


INSTALLED = SyncOutcome(status="installed")
FAILED = SyncOutcome.error(ErrorKind.SOURCE_UNAVAILABLE, "down")


@pytest.fixture
def env(tmp_path):
    return {
        "PULLER_WORK_DIR": str(tmp_path / "work"),
        "PULLER_KNOWN_HOSTS": str(tmp_path / "known_hosts"),
        "PULLER_INTERVAL": None,
        "PULLER_SSH_KNOWN_HOSTS": None,
        "PULLER_DISABLE_SSH_AGENT": None,
    }


@pytest.fixture
def fake_sync(monkeypatch):
    fake = FakeSync(INSTALLED)
    monkeypatch.setattr(cli_module, "sync_once", fake)
    return fake


def test_http_once_success(fake_sync, env):
    result = CliRunner().invoke(cli, ["http", "--backup", "https://example.com/a.conf", "out/a.conf"], env=env)

    assert result.exit_code == 0
    request, settings = fake_sync.calls[0]
    assert request.source == HttpSource(url="https://example.com/a.conf")
    assert request.dest_path == Path("out/a.conf")
    assert request.backup is True
    assert request.force is False
    assert settings.work_dir == Path(env["PULLER_WORK_DIR"])


def test_wget_alias(fake_sync, env):
    result = CliRunner().invoke(cli, ["wget", "--force", "https://example.com/a.conf", "a.conf"], env=env)

    assert result.exit_code == 0
    assert fake_sync.calls[0][0].force is True


def test_failed_sync_exits_nonzero(monkeypatch, env):
    monkeypatch.setattr(cli_module, "sync_once", FakeSync(FAILED))

    result = CliRunner().invoke(cli, ["http", "https://example.com/a.conf", "a.conf"], env=env)

    assert result.exit_code == 1


def test_git_command_builds_git_request(fake_sync, env, monkeypatch):
    monkeypatch.setattr(cli_module.shutil, "which", lambda name: f"/usr/bin/{name}")

    result = CliRunner().invoke(
        cli, ["git", "git@github.com:user/configs.git", "server.conf", "/etc/liteflow.conf"], env=env
    )

    assert result.exit_code == 0
    request = fake_sync.calls[0][0]
    assert request.source == GitSource(repo_url="git@github.com:user/configs.git", src_path="server.conf")
    assert request.dest_path == Path("/etc/liteflow.conf")


def test_git_command_requires_git(fake_sync, env, monkeypatch):
    monkeypatch.setattr(cli_module.shutil, "which", lambda name: None)

    result = CliRunner().invoke(cli, ["git", "repo", "server.conf", "dest.conf"], env=env)

    assert result.exit_code == 1
    assert fake_sync.calls == []


def test_missing_arguments_is_usage_error(fake_sync, env):
    result = CliRunner().invoke(cli, ["http", "https://example.com/a.conf"], env=env)

    assert result.exit_code == 2
    assert fake_sync.calls == []


def test_invalid_environment_exits(fake_sync, env):
    env["PULLER_DISABLE_SSH_AGENT"] = "perhaps"

    result = CliRunner().invoke(cli, ["http", "https://example.com/a.conf", "a.conf"], env=env)

    assert result.exit_code == 1
    assert fake_sync.calls == []


def test_known_hosts_seeded_from_env(fake_sync, env):
    env["PULLER_SSH_KNOWN_HOSTS"] = "github.com ssh-ed25519 AAAAexample"

    CliRunner().invoke(cli, ["http", "https://example.com/a.conf", "a.conf"], env=env)

    assert Path(env["PULLER_KNOWN_HOSTS"]).read_text() == "github.com ssh-ed25519 AAAAexample\n"


def test_polling_survives_failures(monkeypatch, env):
    """Failed or crashed syncs never stop the loop; it sleeps the interval between attempts."""
    fake = FakeSync(FAILED, OSError("File name too long"), INSTALLED, FAILED)
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 4:
            raise StopPolling

    monkeypatch.setattr(cli_module, "sync_once", fake)
    monkeypatch.setattr(cli_module.time, "sleep", fake_sleep)
    monkeypatch.setattr(cli_module.signal, "signal", lambda *args: None)

    result = CliRunner().invoke(cli, ["http", "--interval", "5", "https://example.com/a.conf", "a.conf"], env=env)

    assert isinstance(result.exception, StopPolling)
    assert len(fake.calls) == 4
    assert sleeps == [5.0, 5.0, 5.0, 5.0]


def test_interval_from_environment(monkeypatch, env):
    fake = FakeSync(INSTALLED)

    def stop(seconds):
        raise StopPolling

    monkeypatch.setattr(cli_module, "sync_once", fake)
    monkeypatch.setattr(cli_module.time, "sleep", stop)
    monkeypatch.setattr(cli_module.signal, "signal", lambda *args: None)
    env["PULLER_INTERVAL"] = "60"

    result = CliRunner().invoke(cli, ["http", "https://example.com/a.conf", "a.conf"], env=env)

    assert isinstance(result.exception, StopPolling)
    assert len(fake.calls) == 1


def test_terminate_handler_exits_cleanly():
    with pytest.raises(SystemExit) as exc_info:
        cli_module._on_terminate(15, None)

    assert exc_info.value.code == 0
