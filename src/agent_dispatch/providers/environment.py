"""Backend readiness checks computed once per provider instance."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from agent_dispatch.providers.errors import EnvironmentNotReadyError

logger = logging.getLogger(__name__)

CREDENTIAL_ENV_VARS = ("OPENAI_API_KEY", "CODEX_API_KEY")
CONFIG_PATH_ENV_VAR = "CODEX_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path("~") / ".codex" / "config"

T = TypeVar("T")


class OnceCheck(Generic[T]):
    """Run an async check at most once and share its outcome.

    Concurrent first callers await the same in-flight task. The settled
    outcome is kept on the instance so later callers, even on another event
    loop, get it without re-running the check.
    """

    def __init__(self, check: Callable[[], Awaitable[T]]) -> None:
        self._check = check
        self._task: asyncio.Task[T] | None = None
        self._settled = False
        self._result: T | None = None
        self._error: BaseException | None = None

    @property
    def settled(self) -> bool:
        return self._settled

    async def ensure(self) -> T:
        if self._settled:
            if self._error is not None:
                raise self._error
            return self._result  # type: ignore[return-value]
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        return await asyncio.shield(self._task)

    async def _run(self) -> T:
        try:
            result = await self._check()
        except Exception as error:
            self._error = error
            self._settled = True
            raise
        self._result = result
        self._settled = True
        return result


@dataclass(frozen=True, slots=True)
class CodexEnvironment:
    """Preconditions resolved for the process backend."""

    config_path: Path
    executable: str


async def validate_codex_environment(
    executable: str,
    env: Mapping[str, str] | None = None,
) -> CodexEnvironment:
    """Check credentials, configuration file and executable, in that order."""

    environ = os.environ if env is None else env
    if not any(environ.get(name, "").strip() for name in CREDENTIAL_ENV_VARS):
        raise EnvironmentNotReadyError(
            "Codex provider requires OPENAI_API_KEY or CODEX_API_KEY "
            "to be set before running evals",
        )

    config_path = resolve_codex_config_path(environ.get(CONFIG_PATH_ENV_VAR))
    if not await asyncio.to_thread(config_path.exists):
        raise EnvironmentNotReadyError(
            f"Codex configuration (~/.codex/config) was not found: {config_path}",
        )

    resolved = await asyncio.to_thread(locate_executable, executable, environ.get("PATH"))
    logger.debug("Codex environment ready: executable=%s config=%s", resolved, config_path)
    return CodexEnvironment(config_path=config_path, executable=resolved)


def resolve_codex_config_path(override: str | None) -> Path:
    if override and override.strip():
        return Path(os.path.abspath(override.strip()))
    return DEFAULT_CONFIG_PATH.expanduser()


def locate_executable(candidate: str, search_path: str | None = None) -> str:
    """Resolve *candidate* to a concrete executable location.

    Values containing a path separator are checked directly, bare names are
    looked up on ``PATH``.
    """

    if "/" in candidate or "\\" in candidate:
        resolved = os.path.abspath(candidate)
        if not os.path.exists(resolved):
            raise EnvironmentNotReadyError(
                f"Codex executable '{candidate}' was not found: {resolved}",
            )
        return resolved

    found = shutil.which(candidate, path=search_path)
    if found is None:
        raise EnvironmentNotReadyError(f"Codex executable '{candidate}' was not found on PATH")
    return found
