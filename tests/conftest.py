"""Shared test fixtures."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from agent_dispatch.providers import echo_agent


def write_fake_codex(bin_dir: Path, *extra_args: str, name: str = "codex") -> Path:
    """Write an executable launcher that runs the local echo agent."""

    bin_dir.mkdir(parents=True, exist_ok=True)
    extra = " ".join(extra_args)
    launcher = bin_dir / name
    launcher.write_text(
        f'#!/usr/bin/env sh\nexec "{sys.executable}" "{echo_agent.__file__}" {extra} "$@"\n',
        "utf-8",
    )
    launcher.chmod(launcher.stat().st_mode | stat.S_IXUSR)
    return launcher


@pytest.fixture()
def codex_env(tmp_path: Path, monkeypatch) -> Path:
    """Credentials and a config file that satisfy the Codex readiness check."""

    config_path = tmp_path / "codex-home" / "config"
    config_path.parent.mkdir(parents=True)
    config_path.write_text("profile: default\n", "utf-8")
    monkeypatch.setenv("CODEX_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.delenv("CODEX_API_KEY", raising=False)
    return config_path


@pytest.fixture()
def make_fake_codex():
    """Factory for echo-agent launchers; POSIX shells only."""

    if os.name == "nt":
        pytest.skip("shell launcher requires a POSIX shell")
    return write_fake_codex


@pytest.fixture()
def fake_codex(tmp_path: Path, make_fake_codex) -> Path:
    return make_fake_codex(tmp_path / "bin")
