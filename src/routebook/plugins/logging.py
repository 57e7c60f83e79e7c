"""Logging plugin.

Wraps every resolved handler and emits:

- ``before`` (default True): ``"<METHOD> <path> start"``
- ``after`` (default True): ``"<METHOD> <path> end (<ms> ms)"`` with
  ``{elapsed:.2f}`` formatting. Async handlers are timed until they settle.
- Named registries prefix each line with ``[<registry name>]``.

Sinks: ``print`` true → ``print(message)``; else ``log`` true →
``logger.info(message)`` when the logger has handlers, otherwise ``print`` so
messages are not dropped; else nothing. Exceptions propagate and skip the end
message; the dispatcher adapter deals with them.

Options (registry-level via ``plug("logging", ...)`` / ``configure`` or
per-route via ``logging_<key>=...`` on ``add``): ``enabled``, ``before``,
``after``, ``log``, ``print``, plus ``flags`` strings.

The plugin registers itself as ``"logging"`` at import time.
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Callable, Optional

from routebook.core.base import RouteDefinition
from routebook.core.registry import Registry
from routebook.plugins._base_plugin import BasePlugin


class LoggingPlugin(BasePlugin):
    """Logs handler calls with timing."""

    plugin_code = "logging"
    plugin_description = "Logs handler calls with timing"

    __slots__ = ("_logger",)

    _DEFAULTS = {"enabled": True, "before": True, "after": True, "log": True, "print": False}

    def __init__(self, registry, *, logger: Optional[logging.Logger] = None, **cfg):
        self._logger = logger or logging.getLogger("routebook")
        super().__init__(registry, **cfg)

    def configure(
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - shadowing builtin intentionally
    ):
        """Configure logging plugin options (stored by the wrapper)."""

    def _sink(self, cfg: dict) -> Optional[Callable[[str], None]]:
        if cfg.get("print"):
            return print
        if not cfg.get("log"):
            return None
        has_handlers = getattr(self._logger, "hasHandlers", None) or getattr(
            self._logger, "has_handlers", None
        )
        if callable(has_handlers) and has_handlers():
            return self._logger.info
        return print

    def _emit(self, message: str, *, cfg: Optional[dict] = None):
        sink = self._sink(cfg) if cfg is not None else None
        if sink is not None:
            sink(message)

    def wrap_handler(self, registry, route: RouteDefinition, call_next: Callable):
        """Wrap handler with start/end logging and timing."""
        label = route.describe()
        if registry.name:
            label = f"[{registry.name}] {label}"

        def finish(cfg: dict, t0: float) -> None:
            elapsed = (time.perf_counter() - t0) * 1000
            if cfg["after"]:
                self._emit(f"{label} end ({elapsed:.2f} ms)", cfg=cfg)

        async def settle(awaitable, cfg: dict, t0: float):
            result = await awaitable
            finish(cfg, t0)
            return result

        def logged(context):
            cfg = self._effective_config(route)
            if not cfg["enabled"]:
                return call_next(context)
            if cfg["before"]:
                self._emit(f"{label} start", cfg=cfg)
            t0 = time.perf_counter()
            result = call_next(context)
            if inspect.isawaitable(result):
                return settle(result, cfg, t0)
            finish(cfg, t0)
            return result

        return logged

    def _effective_config(self, route: RouteDefinition) -> dict:
        merged = self.configuration(route)
        return {
            key: default if merged.get(key) is None else bool(merged[key])
            for key, default in self._DEFAULTS.items()
        }


Registry.register_plugin(LoggingPlugin)
