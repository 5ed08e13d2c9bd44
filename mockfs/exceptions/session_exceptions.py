"""
Session Exceptions

Exceptions related to mock session lifecycle and configuration loading.
These are raised outside of filesystem operations, so they do not carry
an errno.
"""

from typing import Optional, Any


class SessionException(Exception):
    """
    Base exception for session and configuration errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        recoverable: Whether the error can be recovered from
        context: Additional context about the error

    Example:
        >>> raise SessionException("Session failure", error_code=1001)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        recoverable: bool = False,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 0
        self.recoverable = recoverable
        self.context = context or {}

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({context_str})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code}, "
            f"recoverable={self.recoverable})"
        )


class SessionStateError(SessionException):
    """
    A session was used in the wrong lifecycle state.

    Raised when starting a session twice, or touching the filesystem of
    a session that has been disposed.

    Example:
        >>> raise SessionStateError("Session already disposed", state="DISPOSED")
    """

    def __init__(
        self,
        message: str,
        state: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if state:
            ctx["state"] = state
        super().__init__(
            message=message,
            error_code=1001,
            recoverable=True,
            context=ctx
        )
        self.state = state


class ConfigValidationError(SessionException):
    """
    Configuration could not be loaded or has an invalid key.

    Example:
        >>> raise ConfigValidationError("Invalid configuration key: fs.x")
    """

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(
            message=message,
            error_code=1002,
            recoverable=True,
            context=ctx
        )
        self.key = key
