"""Shared fixtures: isolated settings and a local git remote."""

import subprocess
from pathlib import Path

import pytest
from liteflow_conf_puller import PullerSettings


def _git(*args: str, cwd: Path) -> str:
    result = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Puller Test",
            "-c",
            "user.email=puller@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class RemoteRepo:
    """Bare repository plus a work tree used to push new commits to it."""

    def __init__(self, root: Path):
        self.bare = root / "remote.git"
        self.work = root / "authoring"
        self.bare.mkdir(parents=True)
        self.work.mkdir(parents=True)
        _git("init", "--bare", cwd=self.bare)
        _git("symbolic-ref", "HEAD", "refs/heads/main", cwd=self.bare)
        _git("init", cwd=self.work)
        _git("remote", "add", "origin", str(self.bare), cwd=self.work)

    @property
    def url(self) -> str:
        return self.bare.as_uri()

    def commit(self, files: dict[str, str | None], message: str = "update") -> str:
        """Write (or delete, when None) files, commit and push to main."""
        for name, content in files.items():
            path = self.work / name
            if content is None:
                path.unlink(missing_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        _git("add", "-A", cwd=self.work)
        _git("commit", "--allow-empty", "-m", message, cwd=self.work)
        _git("push", "origin", "HEAD:refs/heads/main", cwd=self.work)
        return _git("rev-parse", "HEAD", cwd=self.work)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated under tmp_path (no agent, no ambient overrides)."""
    return PullerSettings(
        work_dir=tmp_path / "work",
        deployment_path=Path("/opt/puller-test"),
        known_hosts_file=tmp_path / "known_hosts",
    )


@pytest.fixture
def remote_repo(tmp_path):
    return RemoteRepo(tmp_path / "origin")
