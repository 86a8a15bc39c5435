"""Shared test fixtures for gitfusion tests."""

import os
import stat
from collections.abc import Callable
from pathlib import Path
from typing import Any, NamedTuple

import pytest
import yaml
from typer.testing import CliRunner

FAKE_GIT_SCRIPT = """#!/bin/sh
if [ "$1" = "--version" ]; then
    echo "git version 2.43.0"
    exit 0
fi
printf '%s\\n' "$@" > "$FAKE_GIT_ARGS"
pwd > "$FAKE_GIT_CWD"
cat "$FAKE_GIT_STDOUT"
cat "$FAKE_GIT_STDERR" >&2
exit 128
"""


class FakeGit(NamedTuple):
    """Files used to script and inspect the fake git executable."""

    stdout_file: Path
    stderr_file: Path
    args_file: Path
    cwd_file: Path

    def set_output(self, stdout: str, stderr: str = "") -> None:
        self.stdout_file.write_text(stdout)
        self.stderr_file.write_text(stderr)

    def args(self) -> list[str]:
        return self.args_file.read_text().splitlines()

    def cwd(self) -> Path:
        return Path(self.cwd_file.read_text().strip())


def sample_raw_config() -> dict[str, Any]:
    """A raw Git Fusion configuration with a global section and three entries."""
    return {
        "enabled": True,
        "global": {
            "password": "global-secret",
            "perforce": {"user": "p4global", "port": "ignored:1666"},
            "auto_create": {
                "path_template": "//gitswarm/projects/{namespace}/{project-path}",
                "repo_name_template": "gitswarm-{namespace}-{project-path}",
            },
            "url": "https://ignored.example.com",
            "label": "Ignored",
        },
        "production": {
            "url": "https://gf.example.com",
            "label": "Production",
            "perforce": {"port": "ssl:p4.example.com:1666"},
        },
        "staging": {
            "url": "git@staging.example.com:@info",
            "user": "stage-user",
        },
        "broken": {
            "label": "No URL here",
        },
    }


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def raw_config() -> dict[str, Any]:
    """Provide a fresh sample raw configuration."""
    return sample_raw_config()


ConfigWriter = Callable[..., Path]


@pytest.fixture
def write_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigWriter:
    """Factory fixture that writes a config file and points GITFUSION_CONFIG at it.

    Usage:
        path = write_config({"production": {"url": "https://gf"}})
    """

    def _write(git_fusion: Any = None, **top_level: Any) -> Path:
        path = tmp_path / "config.yaml"
        data = {"git_fusion": git_fusion if git_fusion is not None else sample_raw_config(), **top_level}
        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
        monkeypatch.setenv("GITFUSION_CONFIG", str(path))
        return path

    return _write


@pytest.fixture
def fake_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    """Put a scripted ``git`` executable first on PATH.

    The fake records its arguments and working directory, prints the
    configured stdout and stderr, and exits non-zero like a Git Fusion
    command clone does.
    """
    bin_dir = tmp_path / "fake-bin"
    bin_dir.mkdir()
    git = bin_dir / "git"
    git.write_text(FAKE_GIT_SCRIPT)
    git.chmod(git.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    state_dir = tmp_path / "fake-git-state"
    state_dir.mkdir()
    fake = FakeGit(
        stdout_file=state_dir / "stdout",
        stderr_file=state_dir / "stderr",
        args_file=state_dir / "args",
        cwd_file=state_dir / "cwd",
    )
    fake.set_output("")

    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("FAKE_GIT_STDOUT", str(fake.stdout_file))
    monkeypatch.setenv("FAKE_GIT_STDERR", str(fake.stderr_file))
    monkeypatch.setenv("FAKE_GIT_ARGS", str(fake.args_file))
    monkeypatch.setenv("FAKE_GIT_CWD", str(fake.cwd_file))
    return fake
