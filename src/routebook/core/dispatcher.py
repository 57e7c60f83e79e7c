"""Apply-time binding of declared routes onto a concrete router.

``Dispatcher(registry, router, **options).run()`` walks ``registry.routes``
once and, per route:

1. resolves the handler (``resolve_handler``); failures are recorded on the
   report, logged, and the route is skipped;
2. wraps the resolved callable through ``registry._wrap_handler`` (plugins);
3. expands the method tokens (``all`` → every supported method) and checks
   each against ``SUPPORTED_METHODS`` and the router surface; a bad token is
   recorded and only that method is skipped;
4. calls ``router.<method>(path, *middlewares, adapter)``.

Options (merged with the registry defaults via ``SmartOptions``):

- ``use_smartasync``: wrap adapters with ``smartasync.smartasync`` so a
  synchronous router can call them directly.
- ``context_factory``: callable ``(request, response, next)`` building the
  object passed to handlers (default ``HttpContext``).

The adapter never lets an exception escape: errors are logged as
``HandlerRuntimeError`` and the original exception is handed to ``next``; a
continuation that raises in turn is logged too.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Tuple

from smartseeds import SmartOptions

from routebook.core.base import (
    ALL_METHODS_TOKEN,
    SUPPORTED_METHODS,
    HttpContext,
    RouteDefinition,
)
from routebook.core.errors import (
    HandlerResolutionError,
    HandlerRuntimeError,
    RoutebookError,
    UnsupportedMethodToken,
)
from routebook.core.handlers import resolve_handler

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from routebook.core.base_registry import BaseRegistry

__all__ = ["ApplyReport", "Dispatcher", "build_adapter"]

logger = logging.getLogger("routebook")


@dataclass
class ApplyReport:
    """Outcome of one apply pass."""

    bound: List[Tuple[str, str]] = field(default_factory=list)
    issues: List[RoutebookError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def __bool__(self) -> bool:
        return self.ok


def build_adapter(
    handler: Callable,
    method: str,
    path: str,
    context_factory: Callable = HttpContext,
) -> Callable:
    """Return the router-facing callable for one (method, path) binding."""

    async def adapter(request: Any, response: Any, next: Callable) -> None:  # noqa: A002
        try:
            context = context_factory(request, response, next)
            result = handler(context)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            error = HandlerRuntimeError(method, path, exc)
            logger.error("[ROUTES] %s", error, exc_info=exc)
            try:
                next(exc)
            except Exception as forward_exc:
                logger.error(
                    "[ROUTES] Continuation failed for %s %s: %s",
                    method.upper(),
                    path,
                    forward_exc,
                    exc_info=forward_exc,
                )

    adapter.__name__ = f"{method}_{path.strip('/').replace('/', '_') or 'root'}"
    adapter.__qualname__ = adapter.__name__
    return adapter


class Dispatcher:
    """Binds the routes of a registry onto one router instance."""

    def __init__(self, registry: "BaseRegistry", router: Any, **options: Any) -> None:
        self.registry = registry
        self.router = router
        opts = SmartOptions(options, defaults=registry._apply_defaults)
        self.use_smartasync = bool(getattr(opts, "use_smartasync", False))
        self.context_factory = getattr(opts, "context_factory", None) or HttpContext

    def run(self) -> ApplyReport:
        report = ApplyReport()
        for route in self.registry.routes:
            self._apply_route(route, report)
        return report

    # ------------------------------------------------------------------
    # Per-route steps
    # ------------------------------------------------------------------
    def _apply_route(self, route: RouteDefinition, report: ApplyReport) -> None:
        try:
            resolved = resolve_handler(route.handler, path=route.path)
        except HandlerResolutionError as exc:
            self._report(report, exc)
            return
        handler = self.registry._wrap_handler(route, resolved)
        methods = self._expand_methods(route)
        if not methods:
            logger.warning("[ROUTES] No HTTP method declared for route: %s", route.path)
        for token in methods:
            try:
                binder = self._binder_for(token, route.path)
            except UnsupportedMethodToken as exc:
                self._report(report, exc)
                continue
            method = token.lower()
            adapter = build_adapter(handler, method, route.path, self.context_factory)
            if self.use_smartasync:
                from smartasync import smartasync  # type: ignore

                adapter = smartasync(adapter)
            binder(route.path, *route.middlewares, adapter)
            report.bound.append((method, route.path))

    def _expand_methods(self, route: RouteDefinition) -> List[Any]:
        expanded: List[Any] = []
        for token in route.methods:
            if isinstance(token, str) and token.lower() == ALL_METHODS_TOKEN:
                candidates = list(SUPPORTED_METHODS)
            else:
                candidates = [token]
            for candidate in candidates:
                key = candidate.lower() if isinstance(candidate, str) else candidate
                if all(
                    (m.lower() if isinstance(m, str) else m) != key for m in expanded
                ):
                    expanded.append(candidate)
        return expanded

    def _binder_for(self, token: Any, path: str) -> Callable:
        if not isinstance(token, str) or token.lower() not in SUPPORTED_METHODS:
            raise UnsupportedMethodToken(token, path=path)
        binder = getattr(self.router, token.lower(), None)
        if not callable(binder):
            raise UnsupportedMethodToken(token, path=path, reason="router has no such operation")
        return binder

    def _report(self, report: ApplyReport, error: RoutebookError) -> None:
        label = f"{self.registry.name}: " if self.registry.name else ""
        logger.error("[ROUTES] %s%s", label, error)
        report.issues.append(error)
