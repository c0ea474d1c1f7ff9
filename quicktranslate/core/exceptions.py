"""
Exception hierarchy for the translation request pipeline.

Every failure a translation request can end with is a TranslationError
subclass. The `kind` of an error is the key the UI uses to pick a
human-readable message; raw transport exceptions never reach the user.
"""

from typing import Optional, Dict, Any


class TranslationError(Exception):
    """Base exception for all translation-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
        recoverable: Whether retrying the same request may succeed
        attempts: Number of network attempts made before this error surfaced
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable
        self.attempts = 0

    @property
    def kind(self) -> str:
        """Error kind used for user-facing message lookup."""
        return type(self).__name__

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


# ============================================================================
# Input validation errors (rejected before any request is made)
# ============================================================================

class InvalidLanguageError(TranslationError):
    """Raised when a language code is not part of the configured catalog."""

    def __init__(self, code: str, available: Optional[list] = None):
        ctx: Dict[str, Any] = {'code': code}
        if available:
            ctx['available'] = ", ".join(available)
        super().__init__(f"Unsupported language code '{code}'", ctx, recoverable=False)
        self.code = code


class EmptyInputError(TranslationError):
    """Raised when the text to translate is empty or whitespace only."""

    def __init__(self, message: str = "Nothing to translate"):
        super().__init__(message, recoverable=False)


# ============================================================================
# Network boundary errors
# ============================================================================

class NetworkError(TranslationError):
    """Raised when the request cannot complete (connectivity, DNS, TLS).

    This is recoverable by retrying the request.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


class TranslationTimeoutError(TranslationError):
    """Raised when the endpoint does not answer within the deadline.

    This is recoverable by retrying the request.
    """

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if timeout is not None:
            ctx['timeout'] = timeout
        super().__init__(message, ctx, recoverable=True)
        self.timeout = timeout

    @property
    def kind(self) -> str:
        # The class name avoids shadowing the builtin TimeoutError
        return "TimeoutError"


class MalformedResponseError(TranslationError):
    """Raised when the response body is unparseable or lacks output_text.

    Retrying would return the same body, so this is not recoverable.
    """

    def __init__(
        self,
        message: str,
        body_preview: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if body_preview:
            ctx['body_preview'] = body_preview[:200]
        super().__init__(message, ctx, recoverable=False)


class RemoteError(TranslationError):
    """Raised when the endpoint answers with a non-success status.

    Attributes:
        status_code: HTTP status returned by the endpoint
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body_preview: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if status_code is not None:
            ctx['status_code'] = status_code
        if body_preview:
            ctx['body_preview'] = body_preview[:200]
        super().__init__(message, ctx, recoverable=False)
        self.status_code = status_code


# ============================================================================
# Configuration errors
# ============================================================================

class ConfigurationError(TranslationError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


UNEXPECTED_ERROR_KIND = "UnexpectedError"

USER_MESSAGES: Dict[str, str] = {
    "InvalidLanguageError": "This language is not available.",
    "EmptyInputError": "Please enter some text to translate.",
    "NetworkError": "Network error. Check your connection and the service URL.",
    "TimeoutError": "The translation service took too long to answer.",
    "MalformedResponseError": "Error: could not translate.",
    "RemoteError": "The translation service returned an error.",
    "ConfigurationError": "The translator is not configured correctly.",
    UNEXPECTED_ERROR_KIND: "Something went wrong. Please try again.",
}


def user_message(kind: Optional[str]) -> str:
    """Return the message shown to the user for an error kind."""
    if not kind:
        return ""
    return USER_MESSAGES.get(kind, USER_MESSAGES[UNEXPECTED_ERROR_KIND])
