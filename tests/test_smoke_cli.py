from __future__ import annotations

import os
from pathlib import Path

import allure
from click.testing import CliRunner

from agent_dispatch.main import agent_dispatch

pytestmark = [
    allure.epic("Provider Dispatch"),
    allure.feature("Smoke CLI"),
]


def test_smoke_runs_synthetic_prompt(codex_env: Path, fake_codex: Path, monkeypatch) -> None:
    monkeypatch.setenv("PATH", f"{fake_codex.parent}{os.pathsep}{os.environ.get('PATH', '')}")

    result = CliRunner().invoke(
        agent_dispatch,
        ["smoke", "--target", "local", "--executable", "codex", "--timeout-seconds", "30"],
    )

    assert result.exit_code == 0, result.output
    assert f"executable: {fake_codex}" in result.output
    assert "target=codex:local ready=yes run=ok" in result.output
    assert "Smoke status: passed" in result.output


def test_smoke_with_attachments(codex_env: Path, fake_codex: Path, tmp_path: Path) -> None:
    guideline = tmp_path / "prompts" / "style.instructions.md"
    guideline.parent.mkdir()
    guideline.write_text("be brief", "utf-8")

    result = CliRunner().invoke(
        agent_dispatch,
        [
            "smoke",
            "--executable",
            str(fake_codex),
            "--attachment",
            str(guideline),
            "--guideline-pattern",
            "**/*.instructions.md",
            "--expect-substring",
            "style.instructions.md",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Attachments detected (1): style.instructions.md." in result.output


def test_smoke_fails_when_environment_not_ready(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CODEX_API_KEY", raising=False)

    result = CliRunner().invoke(agent_dispatch, ["smoke", "--target", "local"])

    assert result.exit_code != 0
    assert "target=codex:local ready=no run=skipped" in result.output
    assert "OPENAI_API_KEY" in result.output
    assert "Agent smoke check failed." in result.output


def test_smoke_fails_when_answer_lacks_substring(codex_env: Path, fake_codex: Path) -> None:
    result = CliRunner().invoke(
        agent_dispatch,
        ["smoke", "--executable", str(fake_codex), "--expect-substring", "NEVER-PRESENT"],
    )

    assert result.exit_code != 0
    assert "run=failed" in result.output
    assert "Smoke status: failed" in result.output


def test_smoke_skip_run_only_checks_readiness(codex_env: Path, fake_codex: Path) -> None:
    result = CliRunner().invoke(
        agent_dispatch,
        ["smoke", "--executable", str(fake_codex), "--skip-run"],
    )

    assert result.exit_code == 0, result.output
    assert "ready=yes run=skipped" in result.output
