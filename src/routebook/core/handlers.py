"""Handler references and their resolution.

A route handler can be declared in three shapes and the resolver hides the
difference from the dispatcher:

- a callable taking an ``HttpContext``;
- a ``(subject, method_name)`` pair, where ``subject`` is a class, an
  instance, a module or any namespace object;
- an explicit ``HandlerRef`` variant (``FunctionRef``, ``StaticRef``,
  ``InstanceRef``) when the declarer wants to skip probing.

Resolution order for pairs
--------------------------
1. Static: ``subject`` itself carries a directly callable member. On classes
   this means ``staticmethod``/``classmethod`` or a callable class attribute
   (inspected with ``inspect.getattr_static``); a plain function defined on a
   class is an instance method and does not qualify. On non-class subjects
   any callable attribute qualifies. No instance is created.
2. Instance: ``subject`` is a class; exactly one instance is constructed and
   must expose a callable ``method_name``.
3. Otherwise ``MissingHandlerMethod``.

Any other shape raises ``InvalidHandlerShape``.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from routebook.core.errors import (
    HandlerResolutionError,
    InvalidHandlerShape,
    MissingHandlerMethod,
)

__all__ = [
    "HandlerKind",
    "FunctionRef",
    "StaticRef",
    "InstanceRef",
    "HandlerRef",
    "ResolvedHandler",
    "as_handler_ref",
    "resolve_handler",
]


class HandlerKind(str, Enum):
    FUNCTION = "function"
    STATIC = "static"
    INSTANCE = "instance"


@dataclass(frozen=True)
class FunctionRef:
    func: Callable

    kind = HandlerKind.FUNCTION


@dataclass(frozen=True)
class StaticRef:
    subject: Any
    method: str

    kind = HandlerKind.STATIC


@dataclass(frozen=True)
class InstanceRef:
    cls: type
    method: str

    kind = HandlerKind.INSTANCE


HandlerRef = Union[FunctionRef, StaticRef, InstanceRef]


@dataclass(frozen=True)
class ResolvedHandler:
    """Invocable produced at apply time, plus the reference it came from."""

    ref: HandlerRef
    func: Callable
    receiver: Any = None

    @property
    def kind(self) -> HandlerKind:
        return self.ref.kind

    def __call__(self, context: Any) -> Any:
        return self.func(context)


def _subject_name(subject: Any) -> str:
    if inspect.isclass(subject) or inspect.ismodule(subject):
        return subject.__name__ or "Anonymous"
    return type(subject).__name__


def _has_static_member(subject: Any, method: str) -> bool:
    if not inspect.isclass(subject):
        return callable(getattr(subject, method, None))
    try:
        raw = inspect.getattr_static(subject, method)
    except AttributeError:
        return False
    if isinstance(raw, (staticmethod, classmethod)):
        return True
    if inspect.isfunction(raw):
        return False
    return callable(getattr(subject, method, None))


def as_handler_ref(handler: Any, *, path: Optional[str] = None) -> HandlerRef:
    """Classify a declared handler into one of the ``HandlerRef`` variants."""
    if isinstance(handler, (FunctionRef, StaticRef, InstanceRef)):
        return handler
    if callable(handler):
        return FunctionRef(handler)
    if isinstance(handler, (tuple, list)) and len(handler) == 2:
        subject, method = handler
        if not isinstance(method, str):
            raise InvalidHandlerShape(
                f"Handler method name must be a string for route: {path}", path=path
            )
        if _has_static_member(subject, method):
            return StaticRef(subject, method)
        if inspect.isclass(subject):
            return InstanceRef(subject, method)
        raise MissingHandlerMethod(
            f"Method {method} not found on {_subject_name(subject)}",
            subject=subject,
            method=method,
            path=path,
        )
    raise InvalidHandlerShape(f"Invalid handler format for route: {path}", path=path)


def resolve_handler(handler: Any, *, path: Optional[str] = None) -> ResolvedHandler:
    """Turn a declared handler into a ``ResolvedHandler`` or raise."""
    ref = as_handler_ref(handler, path=path)
    if isinstance(ref, FunctionRef):
        return ResolvedHandler(ref, ref.func)
    if isinstance(ref, StaticRef):
        member = getattr(ref.subject, ref.method, None)
        if not callable(member):
            raise MissingHandlerMethod(
                f"Method {ref.method} not found on {_subject_name(ref.subject)}",
                subject=ref.subject,
                method=ref.method,
                path=path,
            )
        return ResolvedHandler(ref, member, ref.subject)
    try:
        instance = ref.cls()
    except Exception as exc:
        raise HandlerResolutionError(
            f"Cannot instantiate controller {_subject_name(ref.cls)} for route: {path}",
            path=path,
        ) from exc
    member = getattr(instance, ref.method, None)
    if not callable(member):
        raise MissingHandlerMethod(
            f"Method {ref.method} not found in controller instance {_subject_name(ref.cls)}",
            subject=ref.cls,
            method=ref.method,
            path=path,
        )
    return ResolvedHandler(ref, member, instance)
