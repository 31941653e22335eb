"""Runtime configuration for agent backend targets."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class CodexTargetSettings:
    """Process-based Codex CLI target settings."""

    executable: str = "codex"
    profile: str | None = None
    model: str | None = None
    approval_preset: str | None = None
    timeout_seconds: float | None = None
    cwd: Path | None = None


@dataclass(slots=True)
class VSCodeTargetSettings:
    """Session-based VS Code subagent target settings."""

    command: str = "code"
    wait_for_response: bool = True
    dry_run: bool = False
    subagent_root: str | None = None
    workspace_template: str | None = None


@dataclass(slots=True)
class Settings:
    """Application settings grouped by backend family."""

    target_name: str = "default"
    codex: CodexTargetSettings = field(default_factory=CodexTargetSettings)
    vscode: VSCodeTargetSettings = field(default_factory=VSCodeTargetSettings)

    @classmethod
    def from_env(cls, target_name: str | None = None) -> Settings:
        """Load settings from environment with defaults suited to local runs."""

        return cls(
            target_name=target_name or os.getenv("AGENT_DISPATCH_TARGET", "default"),
            codex=CodexTargetSettings(
                executable=os.getenv("AGENT_DISPATCH_CODEX_EXECUTABLE", "codex"),
                profile=_env_optional("AGENT_DISPATCH_CODEX_PROFILE"),
                model=_env_optional("AGENT_DISPATCH_CODEX_MODEL"),
                approval_preset=_env_optional("AGENT_DISPATCH_CODEX_APPROVAL_PRESET"),
                timeout_seconds=_env_float("AGENT_DISPATCH_CODEX_TIMEOUT_SECONDS"),
                cwd=_env_path("AGENT_DISPATCH_CODEX_CWD"),
            ),
            vscode=VSCodeTargetSettings(
                command=os.getenv("AGENT_DISPATCH_VSCODE_COMMAND", "code"),
                wait_for_response=_env_bool("AGENT_DISPATCH_VSCODE_WAIT", default=True),
                dry_run=_env_bool("AGENT_DISPATCH_VSCODE_DRY_RUN", default=False),
                subagent_root=_env_optional("AGENT_DISPATCH_VSCODE_SUBAGENT_ROOT"),
                workspace_template=_env_optional("AGENT_DISPATCH_VSCODE_WORKSPACE_TEMPLATE"),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if a target setting is unusable."""

        if not self.target_name.strip():
            raise ValueError("AGENT_DISPATCH_TARGET must not be empty.")
        if not self.codex.executable.strip():
            raise ValueError("AGENT_DISPATCH_CODEX_EXECUTABLE must not be empty.")
        if self.codex.timeout_seconds is not None and self.codex.timeout_seconds <= 0:
            raise ValueError("AGENT_DISPATCH_CODEX_TIMEOUT_SECONDS must be > 0.")
        if not self.vscode.command.strip():
            raise ValueError("AGENT_DISPATCH_VSCODE_COMMAND must not be empty.")


def _env_optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_path(name: str) -> Path | None:
    value = _env_optional(name)
    return Path(value) if value is not None else None


def _env_float(name: str) -> float | None:
    value = _env_optional(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
