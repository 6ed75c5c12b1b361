"""
Exceptions for Cerebro.

Exception Hierarchy:
    CerebroError (base)
    ├── AuthenticationError (no active session)
    ├── PersistenceError (storage constraint violations)
    └── ClassifierError (classifier transport or malformed output)
        └── ClassificationServiceError (model-side failures)

Only AuthenticationError and PersistenceError reach callers of the capture
pipeline. ClassifierError is absorbed by the classifier, which degrades to
an unavailable classification instead.
"""


class CerebroError(Exception):
    """
    Base exception for all Cerebro errors.

    Attributes:
        message: Human-readable error message
        context: Additional context passed as keyword arguments
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class AuthenticationError(CerebroError):
    """Raised when a capture is attempted without an authenticated user."""


class PersistenceError(CerebroError):
    """
    Raised when a row cannot be written to storage.

    Carries the table name so callers can tell entry and goal saves apart.
    """

    def __init__(self, message: str, table: str, **context: object) -> None:
        super().__init__(message, table=table, **context)
        self.table = table


class ClassifierError(CerebroError):
    """Raised by a classifier transport on network, HTTP or shape errors."""

    def __init__(self, message: str, transport: str, **context: object) -> None:
        super().__init__(message, transport=transport, **context)
        self.transport = transport


class ClassificationServiceError(ClassifierError):
    """Raised when the language model call or its JSON reply fails."""

    def __init__(self, message: str, provider: str, **context: object) -> None:
        super().__init__(message, transport=provider, **context)
        self.provider = provider
