"""Typed failures raised by providers."""

from __future__ import annotations


class ProviderError(RuntimeError):
    """Base class for every provider invocation failure."""


class RequestAbortedError(ProviderError):
    """Cancellation signal was already set when the request arrived."""


class EnvironmentNotReadyError(ProviderError):
    """A backend precondition (credentials, config, executable) is missing."""


class ExecutableNotFoundError(ProviderError):
    """Backend executable could not be spawned."""

    def __init__(self, message: str, *, executable: str) -> None:
        super().__init__(message)
        self.executable = executable


class ProviderTimeoutError(ProviderError):
    """Backend process exceeded its timeout and was terminated."""

    def __init__(self, message: str, *, timeout_seconds: float | None) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class NonZeroExitError(ProviderError):
    """Backend process exited with a failure code."""

    def __init__(self, message: str, *, exit_code: int, detail: str | None) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.detail = detail


class InvalidResponseFormatError(ProviderError):
    """Backend output could not be parsed as a JSON document."""

    def __init__(self, message: str, *, preview: str) -> None:
        super().__init__(message)
        self.preview = preview


class MissingAssistantMessageError(ProviderError):
    """Parsed backend output carries no assistant text."""


class AttachmentMirrorError(ProviderError):
    """An attachment could not be copied into the invocation workspace."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class SessionDispatchError(ProviderError):
    """Session harness reported a failure or returned no response reference."""


class BatchCountMismatchError(ProviderError):
    """Session harness returned a different number of responses than requests."""

    def __init__(self, message: str, *, expected: int, actual: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
