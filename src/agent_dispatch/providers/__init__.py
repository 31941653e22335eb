"""Agent backend providers and the shared dispatch engine."""

from agent_dispatch.providers.base import (
    BatchProvider,
    Provider,
    ProviderKind,
    ProviderRequest,
    ProviderResponse,
)
from agent_dispatch.providers.codex import CodexProvider
from agent_dispatch.providers.errors import (
    AttachmentMirrorError,
    BatchCountMismatchError,
    EnvironmentNotReadyError,
    ExecutableNotFoundError,
    InvalidResponseFormatError,
    MissingAssistantMessageError,
    NonZeroExitError,
    ProviderError,
    ProviderTimeoutError,
    RequestAbortedError,
    SessionDispatchError,
)
from agent_dispatch.providers.factory import create_provider
from agent_dispatch.providers.vscode import (
    SessionDispatcher,
    SessionOutcome,
    SessionSubmission,
    VSCodeProvider,
    ensure_vscode_subagents,
)

__all__ = [
    "AttachmentMirrorError",
    "BatchCountMismatchError",
    "BatchProvider",
    "CodexProvider",
    "EnvironmentNotReadyError",
    "ExecutableNotFoundError",
    "InvalidResponseFormatError",
    "MissingAssistantMessageError",
    "NonZeroExitError",
    "Provider",
    "ProviderError",
    "ProviderKind",
    "ProviderRequest",
    "ProviderResponse",
    "ProviderTimeoutError",
    "RequestAbortedError",
    "SessionDispatchError",
    "SessionDispatcher",
    "SessionOutcome",
    "SessionSubmission",
    "VSCodeProvider",
    "create_provider",
    "ensure_vscode_subagents",
]
