"""Error taxonomy for route registration and dispatch.

Apply-time errors (``HandlerResolutionError`` subclasses and
``UnsupportedMethodToken``) are recorded on the ``ApplyReport`` and logged;
they never abort the apply pass. ``HandlerRuntimeError`` describes a failure
inside a live request: the adapter logs it and forwards the original
exception to the router continuation.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "RoutebookError",
    "HandlerResolutionError",
    "InvalidHandlerShape",
    "MissingHandlerMethod",
    "UnsupportedMethodToken",
    "HandlerRuntimeError",
]


class RoutebookError(Exception):
    """Base class for every error raised by routebook."""


class HandlerResolutionError(RoutebookError):
    """A declared handler could not be turned into a callable."""

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InvalidHandlerShape(HandlerResolutionError, TypeError):
    """Handler is neither callable nor a ``(subject, method_name)`` pair."""


class MissingHandlerMethod(HandlerResolutionError, AttributeError):
    """Named method is absent on both the subject and its instance."""

    def __init__(self, message: str, *, subject: Any = None, method: str = "", path: Optional[str] = None):
        super().__init__(message, path=path)
        self.subject = subject
        self.method = method


class UnsupportedMethodToken(RoutebookError, ValueError):
    """HTTP method token outside the supported set (or unknown to the router)."""

    def __init__(self, token: Any, *, path: Optional[str] = None, reason: str = ""):
        detail = f"Invalid HTTP method: {token!r} for route: {path}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail)
        self.token = token
        self.path = path


class HandlerRuntimeError(RoutebookError):
    """Wraps an exception raised while a handler served a request."""

    def __init__(self, method: str, path: str, original: BaseException):
        super().__init__(f"Error in route {method.upper()} {path}: {original}")
        self.method = method
        self.path = path
        self.original = original
