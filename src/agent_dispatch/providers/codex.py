"""Process-based provider running the Codex CLI once per request."""

from __future__ import annotations

import logging
import math
import os
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

from agent_dispatch.config import CodexTargetSettings
from agent_dispatch.providers.attachments import collect_guideline_files, normalize_attachments
from agent_dispatch.providers.base import ProviderKind, ProviderRequest, ProviderResponse
from agent_dispatch.providers.environment import (
    CodexEnvironment,
    OnceCheck,
    validate_codex_environment,
)
from agent_dispatch.providers.errors import (
    ExecutableNotFoundError,
    NonZeroExitError,
    ProviderTimeoutError,
    RequestAbortedError,
)
from agent_dispatch.providers.preread import build_prompt_document
from agent_dispatch.providers.process_runner import ExecutionResult, ProcessRunOptions, run_process
from agent_dispatch.providers.response_parser import extract_assistant_text, parse_agent_json
from agent_dispatch.providers.workspace import WorkspaceManager

logger = logging.getLogger(__name__)

ProcessRunner = Callable[[ProcessRunOptions], Awaitable[ExecutionResult]]


class CodexProvider:
    """Run each request through the Codex CLI inside a throwaway workspace."""

    kind = ProviderKind.CODEX
    supports_batch = False

    def __init__(
        self,
        target_name: str,
        settings: CodexTargetSettings,
        *,
        runner: ProcessRunner = run_process,
        workspace_manager: WorkspaceManager | None = None,
    ) -> None:
        self.id = f"{self.kind.value}:{target_name}"
        self.target_name = target_name
        self.settings = settings
        self._runner = runner
        self._workspaces = workspace_manager or WorkspaceManager()
        self._environment = OnceCheck(self._validate_environment)
        self._resolved_executable: str | None = None

    async def invoke(self, request: ProviderRequest) -> ProviderResponse:
        if request.aborted:
            raise RequestAbortedError("Codex provider request was aborted before execution")

        await self._environment.ensure()

        attachments = normalize_attachments(request.attachments)
        guideline_originals = frozenset(
            collect_guideline_files(attachments, request.guideline_patterns),
        )

        started = time.monotonic()
        async with self._workspaces.open() as workspace:
            mirrored = await self._workspaces.mirror(attachments, workspace, guideline_originals)
            prompt_content = build_prompt_document(
                request,
                mirrored.paths,
                guideline_patterns=request.guideline_patterns,
                guideline_overrides=mirrored.guideline_mirrors,
            )
            prompt_file = await self._workspaces.write_prompt(workspace, prompt_content)

            args = self.build_args()
            result = await self._execute(
                args=args,
                cwd=self._resolve_cwd(workspace),
                prompt=prompt_content,
                request=request,
            )

            if result.timed_out:
                raise ProviderTimeoutError(
                    f"Codex CLI timed out{format_timeout_suffix(self.settings.timeout_seconds)}",
                    timeout_seconds=self.settings.timeout_seconds,
                )
            if result.exit_code != 0:
                detail = pick_detail(result.stderr, result.stdout)
                prefix = f"Codex CLI exited with code {result.exit_code}"
                raise NonZeroExitError(
                    f"{prefix}: {detail}" if detail else prefix,
                    exit_code=result.exit_code,
                    detail=detail,
                )

            parsed = parse_agent_json(result.stdout)
            text = extract_assistant_text(parsed)

        logger.info(
            "Codex invocation completed: target=%s case=%s elapsed=%.1fs",
            self.target_name,
            request.eval_case_id,
            time.monotonic() - started,
        )
        return ProviderResponse(
            text=text,
            raw={
                "response": parsed,
                "stdout": result.stdout,
                "stderr": result.stderr,
                "exit_code": result.exit_code,
                "args": list(args),
                "executable": self._executable,
                "prompt_file": str(prompt_file),
                "workspace": str(workspace),
                "attachments": list(mirrored.paths) if mirrored.paths else None,
            },
        )

    async def check_environment(self) -> CodexEnvironment:
        """Run (or reuse) the memoized readiness check."""

        return await self._environment.ensure()

    def build_args(self) -> tuple[str, ...]:
        args = ["--quiet", "--json"]
        if self.settings.profile:
            args.extend(["--profile", self.settings.profile])
        if self.settings.model:
            args.extend(["--model", self.settings.model])
        if self.settings.approval_preset:
            args.extend(["--approval-preset", self.settings.approval_preset])
        return tuple(args)

    @property
    def _executable(self) -> str:
        return self._resolved_executable or self.settings.executable

    async def _validate_environment(self) -> CodexEnvironment:
        environment = await validate_codex_environment(self.settings.executable)
        self._resolved_executable = environment.executable
        return environment

    def _resolve_cwd(self, workspace: Path) -> Path:
        if self.settings.cwd is None:
            return workspace
        return Path(os.path.abspath(self.settings.cwd))

    async def _execute(
        self,
        *,
        args: tuple[str, ...],
        cwd: Path,
        prompt: str,
        request: ProviderRequest,
    ) -> ExecutionResult:
        try:
            return await self._runner(
                ProcessRunOptions(
                    executable=self._executable,
                    args=args,
                    cwd=cwd,
                    prompt=prompt,
                    timeout_seconds=self.settings.timeout_seconds,
                    env=os.environ.copy(),
                    signal=request.signal,
                ),
            )
        except ExecutableNotFoundError as error:
            raise ExecutableNotFoundError(
                f"Codex executable '{self.settings.executable}' was not found. "
                "Update the target executable setting or add it to PATH.",
                executable=self.settings.executable,
            ) from error


def pick_detail(stderr: str, stdout: str) -> str | None:
    """Prefer the error stream, fall back to output."""

    error_text = stderr.strip()
    if error_text:
        return error_text
    output_text = stdout.strip()
    return output_text or None


def format_timeout_suffix(timeout_seconds: float | None) -> str:
    if not timeout_seconds or timeout_seconds <= 0:
        return ""
    return f" after {math.ceil(timeout_seconds)}s"
