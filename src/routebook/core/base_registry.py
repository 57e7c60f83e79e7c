"""Plugin-free route registry.

``BaseRegistry`` holds the registration state and the declaration DSL. Plugin
support is layered on top by :class:`routebook.core.registry.Registry`, which
only overrides the hooks listed at the end of this docstring.

Constructor
-----------
::

    BaseRegistry(name=None, *, apply_use_smartasync=None,
                 apply_context_factory=None, apply_kwargs=None)

- ``name`` labels the registry in log messages.
- ``apply_*`` values become defaults for :meth:`apply`, merged with per-call
  options through ``SmartOptions``.

State
-----
- ``_routes``: append-only list of ``RouteDefinition``.
- ``prefix`` / ``group_middlewares`` / ``global_middlewares``: current scope.
- ``_scope_stack``: LIFO of saved ``(prefix, group, global)`` tuples. Every
  scoping call pushes on entry and pops in a ``finally`` block, so a callback
  raising never leaks its scope.

Declaration
-----------
``add(methods, path, handler, middlewares=(), **options)`` normalizes ``path``
against ``prefix`` and appends a route whose middlewares are
``global ++ group ++ middlewares``. It never fails: shape checks on methods and
handler happen in :meth:`apply`. Keyword options named ``<plugin>_<key>`` for
a registered plugin are stored per route as ``{plugin: {key: value}}``; other
options are ignored with a warning.

``get``/``post``/``put``/``patch``/``delete``/``options``/``head`` fix the
method; ``any`` declares the ``all`` token which fans out at apply time.

``group(prefix, callback, middlewares=())`` and
``middleware(middlewares, callback)`` run ``callback`` inside :meth:`scope`.

Hooks for subclasses
--------------------
- ``_is_known_plugin(code)``: decides which options are plugin-scoped.
- ``_wrap_handler(route, handler)``: wraps resolved handlers (default
  passthrough).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from routebook.core.base import ALL_METHODS_TOKEN, RouteDefinition, as_method_tuple
from routebook.core.paths import normalize_path

__all__ = ["BaseRegistry"]

logger = logging.getLogger("routebook")

_Scope = Tuple[str, Tuple[Callable, ...], Tuple[Callable, ...]]


class BaseRegistry:
    """Mutable registration state plus the declaration DSL."""

    __slots__ = (
        "name",
        "prefix",
        "group_middlewares",
        "global_middlewares",
        "_routes",
        "_scope_stack",
        "_apply_defaults",
    )

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        apply_use_smartasync: Optional[bool] = None,
        apply_context_factory: Optional[Callable] = None,
        apply_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.name = name
        self.prefix = ""
        self.group_middlewares: Tuple[Callable, ...] = ()
        self.global_middlewares: Tuple[Callable, ...] = ()
        self._routes: List[RouteDefinition] = []
        self._scope_stack: List[_Scope] = []
        defaults: Dict[str, Any] = dict(apply_kwargs or {})
        if apply_use_smartasync is not None:
            defaults.setdefault("use_smartasync", apply_use_smartasync)
        if apply_context_factory is not None:
            defaults.setdefault("context_factory", apply_context_factory)
        self._apply_defaults = defaults

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def routes(self) -> Tuple[RouteDefinition, ...]:
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(tuple(self._routes))

    @property
    def depth(self) -> int:
        """Number of currently active scope blocks."""
        return len(self._scope_stack)

    def reset(self) -> None:
        """Drop every declared route and any active scope."""
        self._routes.clear()
        self._scope_stack.clear()
        self.prefix = ""
        self.group_middlewares = ()
        self.global_middlewares = ()

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------
    def add(
        self,
        methods: Any,
        path: str,
        handler: Any,
        middlewares: Sequence[Callable] = (),
        **options: Any,
    ) -> RouteDefinition:
        """Declare a route under the current prefix and middleware scope."""
        route = RouteDefinition(
            methods=as_method_tuple(methods),
            path=normalize_path(self.prefix, path),
            handler=handler,
            middlewares=(
                *self.global_middlewares,
                *self.group_middlewares,
                *tuple(middlewares or ()),
            ),
            options=self._split_route_options(options),
        )
        self._routes.append(route)
        return route

    def get(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("get", path, handler, middlewares, **options)

    def post(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("post", path, handler, middlewares, **options)

    def put(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("put", path, handler, middlewares, **options)

    def patch(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("patch", path, handler, middlewares, **options)

    def delete(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("delete", path, handler, middlewares, **options)

    def options(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("options", path, handler, middlewares, **options)

    def head(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        return self.add("head", path, handler, middlewares, **options)

    def any(self, path: str, handler: Any, middlewares: Sequence[Callable] = (), **options: Any):
        """Declare a route answering every supported method."""
        return self.add(ALL_METHODS_TOKEN, path, handler, middlewares, **options)

    # ------------------------------------------------------------------
    # Scoping
    # ------------------------------------------------------------------
    @contextmanager
    def scope(
        self,
        prefix: str = "",
        middlewares: Iterable[Callable] = (),
        wrap: Iterable[Callable] = (),
    ) -> Iterator["BaseRegistry"]:
        """Push a prefix/middleware scope for the duration of the block.

        ``middlewares`` extend the group middlewares, ``wrap`` extends the
        global ones. Both are restored on exit, including on error.
        """
        self._scope_stack.append(
            (self.prefix, self.group_middlewares, self.global_middlewares)
        )
        try:
            if prefix:
                self.prefix = normalize_path(self.prefix, prefix)
            self.group_middlewares = (*self.group_middlewares, *tuple(middlewares or ()))
            self.global_middlewares = (*self.global_middlewares, *tuple(wrap or ()))
            yield self
        finally:
            self.prefix, self.group_middlewares, self.global_middlewares = (
                self._scope_stack.pop()
            )

    def group(
        self,
        prefix: str,
        callback: Callable[[], Any],
        middlewares: Sequence[Callable] = (),
    ) -> None:
        """Run ``callback`` with ``prefix`` and group ``middlewares`` in effect."""
        with self.scope(prefix, middlewares=middlewares):
            callback()

    def middleware(self, middlewares: Sequence[Callable], callback: Callable[[], Any]) -> None:
        """Run ``callback`` with extra wrapper middlewares in effect."""
        with self.scope(wrap=middlewares):
            callback()

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------
    def apply(self, router: Any, **options: Any):
        """Bind every declared route onto ``router``; returns an ``ApplyReport``."""
        from routebook.core.dispatcher import Dispatcher

        return Dispatcher(self, router, **options).run()

    # ------------------------------------------------------------------
    # Helpers / hooks
    # ------------------------------------------------------------------
    def _split_route_options(self, options: Dict[str, Any]) -> MappingProxyType:
        scoped: Dict[str, Dict[str, Any]] = {}
        for key, value in options.items():
            if "_" in key:
                plugin_name, plug_key = key.split("_", 1)
                if plugin_name and plug_key and self._is_known_plugin(plugin_name):
                    scoped.setdefault(plugin_name, {})[plug_key] = value
                    continue
            logger.warning("[ROUTES] Ignoring unknown route option %r", key)
        return MappingProxyType(scoped)

    def _is_known_plugin(self, prefix: str) -> bool:
        return False

    def _wrap_handler(self, route: RouteDefinition, handler: Callable) -> Callable:
        return handler
