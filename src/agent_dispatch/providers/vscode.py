"""Session-based provider driving VS Code subagents through an automation harness."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from agent_dispatch.config import VSCodeTargetSettings
from agent_dispatch.providers.attachments import merge_attachments, normalize_attachments
from agent_dispatch.providers.base import ProviderKind, ProviderRequest, ProviderResponse
from agent_dispatch.providers.errors import (
    BatchCountMismatchError,
    RequestAbortedError,
    SessionDispatchError,
)
from agent_dispatch.providers.preread import build_prompt_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionSubmission:
    """Payload handed to the automation harness for one session."""

    user_queries: tuple[str, ...]
    extra_attachments: tuple[str, ...] | None
    wait: bool
    dry_run: bool
    command: str
    session_root: str | None = None
    workspace_template: str | None = None
    silent: bool = True


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Harness reply: exit code plus one or many response file references."""

    exit_code: int
    response_file: str | None = None
    response_files: tuple[str, ...] | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ProvisionOutcome:
    created: tuple[str, ...] = ()
    skipped_existing: tuple[str, ...] = ()


class SessionDispatcher(Protocol):
    """Automation harness contract used by session-based providers."""

    async def dispatch_agent_session(self, submission: SessionSubmission) -> SessionOutcome:
        """Run one query in one session."""

    async def dispatch_batch_agent(self, submission: SessionSubmission) -> SessionOutcome:
        """Run every query of *submission* in one session."""

    async def provision_subagents(
        self,
        *,
        target_root: str,
        subagents: int,
        dry_run: bool,
    ) -> ProvisionOutcome:
        """Make sure *subagents* workspaces exist under *target_root*."""

    def get_subagent_root(self, command: str) -> str:
        """Default subagent root for a VS Code command."""


class VSCodeProvider:
    """Submit prompt documents to VS Code subagents, alone or as a batch."""

    supports_batch = True

    def __init__(
        self,
        target_name: str,
        settings: VSCodeTargetSettings,
        kind: ProviderKind,
        *,
        dispatcher: SessionDispatcher,
    ) -> None:
        if not kind.is_session_based:
            raise ValueError(f"Unsupported session provider kind: {kind.value!r}")
        self.id = f"{kind.value}:{target_name}"
        self.kind = kind
        self.target_name = target_name
        self.settings = settings
        self._dispatcher = dispatcher

    async def invoke(self, request: ProviderRequest) -> ProviderResponse:
        if request.aborted:
            raise RequestAbortedError("VS Code provider request was aborted before dispatch")

        attachments = normalize_attachments(request.attachments)
        prompt_content = build_prompt_document(request, attachments)

        session = await self._dispatcher.dispatch_agent_session(
            self._submission((prompt_content,), attachments),
        )
        if session.exit_code != 0 or not session.response_file:
            raise SessionDispatchError(
                session.error or "VS Code subagent did not produce a response",
            )

        raw = {"session": session, "attachments": attachments}
        if self.settings.dry_run:
            return ProviderResponse(text="", raw=raw)

        text = await _read_response(session.response_file)
        logger.info(
            "VS Code session completed: target=%s case=%s",
            self.target_name,
            request.eval_case_id,
        )
        return ProviderResponse(text=text, raw=raw)

    async def invoke_batch(
        self,
        requests: Sequence[ProviderRequest],
    ) -> list[ProviderResponse]:
        if not requests:
            return []
        if any(request.aborted for request in requests):
            raise RequestAbortedError("VS Code provider batch was aborted before dispatch")

        per_request = [normalize_attachments(request.attachments) for request in requests]
        combined = merge_attachments(per_request)
        user_queries = tuple(
            build_prompt_document(request, attachments)
            for request, attachments in zip(requests, per_request)
        )

        session = await self._dispatcher.dispatch_batch_agent(
            self._submission(user_queries, combined),
        )
        if session.exit_code != 0 or not session.response_files:
            raise SessionDispatchError(
                session.error or "VS Code subagent did not produce batch responses",
            )

        if self.settings.dry_run:
            return [
                ProviderResponse(
                    text="",
                    raw={
                        "session": session,
                        "attachments": attachments,
                        "all_attachments": combined,
                    },
                )
                for attachments in per_request
            ]

        if len(session.response_files) != len(requests):
            raise BatchCountMismatchError(
                f"VS Code batch returned {len(session.response_files)} responses "
                f"for {len(requests)} requests",
                expected=len(requests),
                actual=len(session.response_files),
            )

        responses: list[ProviderResponse] = []
        for attachments, response_file in zip(per_request, session.response_files):
            responses.append(
                ProviderResponse(
                    text=await _read_response(response_file),
                    raw={
                        "session": session,
                        "attachments": attachments,
                        "all_attachments": combined,
                        "response_file": response_file,
                    },
                ),
            )
        logger.info(
            "VS Code batch completed: target=%s requests=%d",
            self.target_name,
            len(requests),
        )
        return responses

    def _submission(
        self,
        user_queries: tuple[str, ...],
        attachments: tuple[str, ...] | None,
    ) -> SessionSubmission:
        return SessionSubmission(
            user_queries=user_queries,
            extra_attachments=attachments,
            wait=self.settings.wait_for_response,
            dry_run=self.settings.dry_run,
            command=self.settings.command,
            session_root=self.settings.subagent_root,
            workspace_template=self.settings.workspace_template,
            silent=True,
        )


@dataclass(slots=True)
class EnsureSubagentsResult:
    provisioned: bool
    message: str | None = None
    created: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)


async def ensure_vscode_subagents(
    dispatcher: SessionDispatcher,
    *,
    kind: ProviderKind,
    count: int,
    verbose: bool = False,
) -> EnsureSubagentsResult:
    """Provision *count* subagents for *kind*.

    Provisioning failures are reported in the result; subagents may already
    exist, so callers can keep going.
    """

    command = "code-insiders" if kind is ProviderKind.VSCODE_INSIDERS else "code"
    subagent_root = dispatcher.get_subagent_root(command)
    if verbose:
        logger.info("Provisioning %d subagent(s) via: subagent %s provision", count, command)

    try:
        outcome = await dispatcher.provision_subagents(
            target_root=subagent_root,
            subagents=count,
            dry_run=False,
        )
    except Exception as error:  # noqa: BLE001
        if verbose:
            logger.warning("Provisioning failed (continuing anyway): %s", error)
        return EnsureSubagentsResult(provisioned=False, message=f"Provisioning failed: {error}")

    if verbose:
        logger.info(
            "Subagents available: %d (created=%d reused=%d)",
            len(outcome.created) + len(outcome.skipped_existing),
            len(outcome.created),
            len(outcome.skipped_existing),
        )
    return EnsureSubagentsResult(
        provisioned=True,
        message=(
            f"Provisioned {count} subagent(s): {len(outcome.created)} created, "
            f"{len(outcome.skipped_existing)} reused"
        ),
        created=list(outcome.created),
        reused=list(outcome.skipped_existing),
    )


async def _read_response(response_file: str) -> str:
    return await asyncio.to_thread(Path(response_file).read_text, "utf-8")
