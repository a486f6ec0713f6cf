"""Central application exception hierarchy.

This module defines the base application exception ``AppError`` and the
specialized subclasses used throughout the codebase: configuration problems,
failures of the upstream WebQuery service, malformed document structure
seen by the extraction engine and output I/O failures.
Using a centralized hierarchy makes error handling and testing consistent.
"""

from __future__ import annotations

from typing import Any, Mapping


class AppError(Exception):
    """Base exception for all application-level errors.

    Parameters
    ----------
    code : str
        Machine-readable error code (e.g., ``'SINK_IO_ERROR'``).
    message : str
        Human-readable message describing the error.
    context : Mapping[str, Any] | None, optional
        Optional structured context for logging.
    transient : bool, optional
        Whether the error is temporary and may be retried.

    Attributes
    ----------
    code : str
        Stable machine-readable error code.
    message : str
        Human-readable message.
    context : dict
        Structured, non-sensitive context for logging.
    transient : bool
        True if the error is transient.

    Examples
    --------
    >>> e = AppError('CODE', 'message', context={'k': 'v'}, transient=True)
    >>> e.code
    'CODE'
    """

    __slots__ = ("code", "message", "context", "transient")

    def __init__(
        self,
        code: str,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context or {})
        self.transient = bool(transient)

    def __str__(self) -> str:
        """Return a compact string representation of the error."""
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return a log-safe dictionary representation of the error."""
        return {
            "error_code": self.code,
            "message": self.message,
            "context": self.context,
            "is_transient": self.transient,
        }


class ConfigurationError(AppError):
    """Raised for invalid or missing configuration."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "CONFIGURATION_ERROR", message, context=context, transient=False
        )


class StructuralInputError(AppError):
    """Raised when the structural event sequence of a document is malformed.

    The extraction engine treats this as fatal for the current document: the
    sink is aborted and no partial output is guaranteed to be valid.
    """

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "STRUCTURAL_INPUT_ERROR", message, context=context, transient=False
        )


class SinkIOError(AppError):
    """Raised when the output resource cannot be opened, written or closed.

    Parameters
    ----------
    operation : str
        The failing sink operation: ``'open'``, ``'append'`` or ``'finish'``.
    message : str
        Human-readable message describing the error.
    context : Mapping[str, Any] | None, optional
        Additional structured context (e.g. the output path).
    """

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        merged = {"operation": operation, **dict(context or {})}
        super().__init__("SINK_IO_ERROR", message, context=merged, transient=False)

    @property
    def operation(self) -> str:
        """Return the sink operation that failed."""
        return str(self.context["operation"])


class RetryExhaustedError(AppError):
    """Raised when retry attempts for a transient error have been exhausted."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "RETRY_EXHAUSTED_ERROR", message, context=context, transient=False
        )


class ExternalServiceError(AppError):
    """Raised for unexpected failures from an external service."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = True,
    ) -> None:
        super().__init__(
            "EXTERNAL_SERVICE_ERROR", message, context=context, transient=transient
        )
