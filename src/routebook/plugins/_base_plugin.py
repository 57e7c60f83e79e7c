"""Plugin contract used by the ``Registry`` pipeline.

``BasePlugin``
    Base class every plugin subclasses. Required class attributes:

    - ``plugin_code`` – unique identifier used for registration (e.g. "logging")
    - ``plugin_description`` – human-readable description

    Constructor: ``BasePlugin(registry, **config)``; ``config`` goes through
    ``configure()``.

    ``configure(**config)``
        Subclasses declare accepted options through the method signature.
        ``__init_subclass__`` wraps it so that a ``flags`` string
        (``"enabled,before:off"``) is parsed into booleans, the keywords are
        validated with pydantic's ``validate_call`` and the result is written
        to the registry's ``_plugin_info`` store.

    ``configuration(route=None)``
        Registry-level config merged with the per-route options declared as
        ``<plugin_code>_<key>=...`` on ``add``.

    ``wrap_handler(registry, route, call_next)``
        Returns a callable with the handler signature ``(context)``. Default
        passthrough.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from pydantic import validate_call

from routebook.core.base import RouteDefinition

__all__ = ["BasePlugin"]


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() to handle flags, validation and storage."""
    validated = validate_call(original_configure)

    def wrapper(self: "BasePlugin", *, flags: Optional[str] = None, **kwargs: Any) -> None:
        if flags:
            kwargs.update(self._parse_flags(flags))
        validated(self, **kwargs)
        self._write_config(kwargs)

    wrapper.__doc__ = original_configure.__doc__
    return wrapper


class BasePlugin:
    """Hook interface + configuration helpers for registry plugins."""

    __slots__ = ("name", "_registry")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])

    def __init__(self, registry: Any, **config: Any):
        self.name = self.plugin_code
        self._registry = registry
        self._get_store().setdefault(self.name, {"enabled": True})
        self.configure(**config)

    def configure(self, *, flags: Optional[str] = None) -> None:
        """Base implementation only understands ``flags``."""
        if flags:
            self._write_config(self._parse_flags(flags))

    def _write_config(self, config: Dict[str, Any]) -> None:
        if not config:
            return
        self._get_store().setdefault(self.name, {}).update(config)

    def configuration(self, route: Optional[RouteDefinition] = None) -> Dict[str, Any]:
        merged = dict(self._get_store().get(self.name) or {})
        if route is not None:
            overrides = dict(route.options.get(self.name, {}))
            flags = overrides.pop("flags", None)
            if isinstance(flags, str):
                overrides.update(self._parse_flags(flags))
            merged.update(overrides)
        return merged

    def _parse_flags(self, flags: str) -> Dict[str, bool]:
        """``"enabled,before:off"`` → ``{"enabled": True, "before": False}``."""
        mapping: Dict[str, bool] = {}
        for chunk in filter(None, (part.strip() for part in flags.split(","))):
            key, sep, value = chunk.partition(":")
            mapping[key.strip()] = not sep or value.strip().lower() != "off"
        return mapping

    def wrap_handler(
        self,
        registry: Any,
        route: RouteDefinition,
        call_next: Callable,
    ) -> Callable:
        """Wrap handler invocation; default passthrough."""
        return call_next

    def _get_store(self) -> Dict[str, Any]:
        return getattr(self._registry, "_plugin_info")
