"""Provider construction from settings."""

from __future__ import annotations

from agent_dispatch.config import Settings
from agent_dispatch.providers.base import Provider, ProviderKind
from agent_dispatch.providers.codex import CodexProvider
from agent_dispatch.providers.vscode import SessionDispatcher, VSCodeProvider


def create_provider(
    kind: ProviderKind | str,
    settings: Settings,
    *,
    target_name: str | None = None,
    dispatcher: SessionDispatcher | None = None,
) -> Provider:
    """Build the provider for *kind* using the matching settings block."""

    try:
        resolved_kind = ProviderKind(kind.strip().lower() if isinstance(kind, str) else kind)
    except ValueError as error:
        raise ValueError(f"Unsupported provider kind: {kind!r}") from error

    name = target_name or settings.target_name
    if resolved_kind is ProviderKind.CODEX:
        return CodexProvider(name, settings.codex)

    if dispatcher is None:
        raise ValueError(f"Provider kind {resolved_kind.value!r} requires a session dispatcher.")
    return VSCodeProvider(name, settings.vscode, resolved_kind, dispatcher=dispatcher)
