"""Provider contract shared by process-based and session-based backends."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class ProviderKind(str, Enum):
    """Backend families known to the dispatcher."""

    CODEX = "codex"
    VSCODE = "vscode"
    VSCODE_INSIDERS = "vscode-insiders"

    @property
    def is_session_based(self) -> bool:
        return self in (ProviderKind.VSCODE, ProviderKind.VSCODE_INSIDERS)


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    """One evaluation prompt with its file attachments."""

    prompt: str
    attachments: tuple[str, ...] | None = None
    guideline_patterns: tuple[str, ...] | None = None
    signal: asyncio.Event | None = field(default=None, compare=False)
    eval_case_id: str | None = None

    @property
    def aborted(self) -> bool:
        return self.signal is not None and self.signal.is_set()


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    """Answer text plus backend diagnostics that the dispatcher never interprets."""

    text: str
    raw: dict[str, Any] = field(default_factory=dict)


class Provider(Protocol):
    """Protocol implemented by every backend provider."""

    id: str
    kind: ProviderKind
    target_name: str
    supports_batch: bool

    async def invoke(self, request: ProviderRequest) -> ProviderResponse:
        """Dispatch a single request and return the backend answer."""


class BatchProvider(Provider, Protocol):
    """Provider able to carry many requests in one backend session."""

    async def invoke_batch(
        self,
        requests: Sequence[ProviderRequest],
    ) -> list[ProviderResponse]:
        """Dispatch all requests together; responses follow request order."""
