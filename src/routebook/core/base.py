"""Data shapes shared by the registry, resolver and dispatcher.

``RouteDefinition``
    Frozen record captured by ``BaseRegistry.add``. Fields:

    - ``methods`` – tuple of method tokens, declaration order, no duplicates
    - ``path`` – normalized absolute path
    - ``handler`` – callable, ``(subject, method_name)`` pair or ``HandlerRef``
    - ``middlewares`` – ``global ++ group ++ call-site`` middlewares
    - ``options`` – per-route plugin settings (``{plugin: {key: value}}``)

``HttpContext``
    Read-only bundle handed to every handler regardless of its kind.
"""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Tuple, Union

__all__ = [
    "SUPPORTED_METHODS",
    "ALL_METHODS_TOKEN",
    "RouteDefinition",
    "HttpContext",
    "as_method_tuple",
]

SUPPORTED_METHODS: Tuple[str, ...] = ("get", "post", "put", "patch", "delete", "options", "head")
ALL_METHODS_TOKEN = "all"


def as_method_tuple(methods: Union[str, Iterable[Any]]) -> Tuple[Any, ...]:
    """Wrap a single token and drop duplicates, keeping first occurrence.

    Non-iterable values (``None``, an enum member, ...) are wrapped as they
    are; the dispatcher reports them when the route is applied.
    """
    if isinstance(methods, str) or not isinstance(methods, abc.Iterable):
        methods = (methods,)
    seen: list = []
    for token in methods:
        if token not in seen:
            seen.append(token)
    return tuple(seen)


@dataclass(frozen=True)
class RouteDefinition:
    """One declared route awaiting ``apply``."""

    methods: Tuple[Any, ...]
    path: str
    handler: Any
    middlewares: Tuple[Callable, ...] = ()
    options: Mapping[str, Mapping[str, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def describe(self) -> str:
        tokens = ",".join(str(token).upper() for token in self.methods)
        return f"{tokens} {self.path}"


@dataclass(frozen=True)
class HttpContext:
    """Request/response/continuation triple passed to handlers."""

    request: Any
    response: Any
    next: Callable

    @property
    def req(self) -> Any:
        return self.request

    @property
    def res(self) -> Any:
        return self.response
