"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from liteflow_conf_puller import PullConfigError
from liteflow_conf_puller import PullerSettings
from liteflow_conf_puller.settings import parse_bool


@pytest.mark.parametrize("value", ["1", "true", "YES", "On", " yes "])
def test_parse_bool_truthy(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", [None, "", "0", "false", "No", "OFF"])
def test_parse_bool_falsy(value):
    assert parse_bool(value) is False


def test_parse_bool_rejects_garbage():
    with pytest.raises(PullConfigError, match="Invalid boolean for FLAG"):
        parse_bool("maybe", "FLAG")


def test_from_env_defaults():
    settings = PullerSettings.from_env({"PULLER_DEPLOYMENT_PATH": "/opt/app"})

    assert settings.git_ssh_command is None
    assert settings.ssh_auth_sock is None
    assert settings.disable_ssh_agent is False
    assert settings.strict_host_key_checking == "accept-new"
    assert settings.work_dir == Path("/tmp")
    assert settings.http_timeout is None
    assert settings.installation_key == "_opt_app"
    assert settings.git_cache_dir == Path("/tmp/liteflow_git._opt_app")


def test_from_env_reads_all_variables():
    settings = PullerSettings.from_env(
        {
            "GIT_SSH_COMMAND": "ssh -i /k",
            "SSH_AUTH_SOCK": "/run/agent.sock",
            "PULLER_DISABLE_SSH_AGENT": "yes",
            "PULLER_SSH_KEY": "/keys/deploy",
            "PULLER_STRICT_HOST_KEY_CHECKING": "YES",
            "PULLER_KNOWN_HOSTS": "/etc/ssh/ssh_known_hosts",
            "SUDO_USER": "alice",
            "PULLER_HTTP_TOKEN": "tok",
            "PULLER_HTTP_AUTH_HEADER": "X-Api-Key: abc",
            "PULLER_HTTP_TIMEOUT": "30",
            "PULLER_WORK_DIR": "/var/lib/puller",
            "PULLER_DEPLOYMENT_PATH": "/srv/app",
        }
    )

    assert settings.git_ssh_command == "ssh -i /k"
    assert settings.ssh_auth_sock == "/run/agent.sock"
    assert settings.disable_ssh_agent is True
    assert settings.ssh_key_path == Path("/keys/deploy")
    assert settings.strict_host_key_checking == "yes"
    assert settings.known_hosts_file == Path("/etc/ssh/ssh_known_hosts")
    assert settings.sudo_user == "alice"
    assert settings.http_timeout == 30.0
    assert settings.work_dir == Path("/var/lib/puller")
    assert settings.git_cache_dir == Path("/var/lib/puller/liteflow_git._srv_app")


def test_from_env_temp_dir_fallback_order():
    assert PullerSettings.from_env({"TMP": "/b", "TEMP": "/c"}).work_dir == Path("/b")
    assert PullerSettings.from_env({"TMPDIR": "/a", "TMP": "/b"}).work_dir == Path("/a")
    assert PullerSettings.from_env({"PULLER_WORK_DIR": "/w", "TMPDIR": "/a"}).work_dir == Path("/w")


def test_from_env_invalid_strictness():
    with pytest.raises(PullConfigError, match="Invalid puller configuration"):
        PullerSettings.from_env({"PULLER_STRICT_HOST_KEY_CHECKING": "sometimes"})


def test_from_env_invalid_flag():
    with pytest.raises(PullConfigError, match="PULLER_DISABLE_SSH_AGENT"):
        PullerSettings.from_env({"PULLER_DISABLE_SSH_AGENT": "perhaps"})


def test_http_header_precedence():
    """An explicit header wins over a bearer token."""
    assert PullerSettings(http_token="tok").http_header() == "Authorization: Bearer tok"
    assert PullerSettings(http_token="tok", http_auth_header="X-Api-Key: k").http_header() == "X-Api-Key: k"
    assert PullerSettings().http_header() is None
