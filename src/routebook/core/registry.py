"""Registry with plugin pipeline.

``Registry`` extends ``BaseRegistry`` with a global plugin registry and
per-registry plugin instances that wrap resolved handlers at apply time.

Global registry
---------------
``Registry.register_plugin(plugin_class, name=None)`` validates that
``plugin_class`` is a ``BasePlugin`` subclass with a ``plugin_code``.
Re-registering a code with a different class raises ``ValueError`` unless an
explicit ``name`` is given. ``available_plugins`` returns a shallow copy.

Attaching plugins
-----------------
``plug(plugin_name, **config)`` instantiates the registered class, appends it
to ``_plugins`` and returns ``self``. Attached plugins are reachable as
attributes (``registry.logging``); unknown names raise ``AttributeError``.
Plugin configuration lives in ``_plugin_info[plugin_code]``.

Wrapping
--------
``_wrap_handler(route, handler)`` layers plugins in reverse order, so the
first attached plugin is the outermost. A plugin whose ``enabled`` config is
false for the route is bypassed at call time.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type

from routebook.core.base import RouteDefinition
from routebook.core.base_registry import BaseRegistry
from routebook.plugins._base_plugin import BasePlugin

__all__ = ["Registry"]

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}


class Registry(BaseRegistry):
    """Route registry with plugin support."""

    __slots__ = BaseRegistry.__slots__ + ("_plugins", "_plugins_by_name", "_plugin_info")

    def __init__(self, *args, **kwargs):
        self._plugins: List[BasePlugin] = []
        self._plugins_by_name: Dict[str, BasePlugin] = {}
        self._plugin_info: Dict[str, Dict[str, Any]] = {}
        super().__init__(*args, **kwargs)

    # ------------------------------------------------------------------
    # Plugin registration
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Make ``plugin_class`` attachable through ``plug(<code>)``.

        The class is keyed by its ``plugin_code`` and refuses to shadow another
        class under that code; an explicit ``name`` aliases it and may replace
        an existing entry.
        """
        if not (isinstance(plugin_class, type) and issubclass(plugin_class, BasePlugin)):
            raise TypeError(f"Cannot register {plugin_class!r}: route plugins subclass BasePlugin")
        if not getattr(plugin_class, "plugin_code", None):
            raise ValueError(f"Route plugin {plugin_class.__name__} declares no plugin_code")
        code = name or plugin_class.plugin_code
        current = _PLUGIN_REGISTRY.setdefault(code, plugin_class)
        if current is plugin_class:
            return
        if name is None:
            raise ValueError(f"Plugin code '{code}' is already taken by {current.__name__}")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **config: Any) -> "Registry":
        """Attach a registered plugin; it wraps every route applied afterwards."""
        if not isinstance(plugin, str):
            raise TypeError(f"plug() takes a plugin code, not {type(plugin).__name__}")
        try:
            plugin_class = _PLUGIN_REGISTRY[plugin]
        except KeyError:
            known = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(
                f"Unknown plugin '{plugin}' for registry '{self.name}' (known: {known})"
            ) from None
        instance = plugin_class(self, **config)
        self._plugins.append(instance)
        self._plugins_by_name.setdefault(instance.name, instance)
        return self

    def iter_plugins(self) -> List[BasePlugin]:
        return list(self._plugins)

    def __getattr__(self, name: str) -> Any:
        try:
            plugins = object.__getattribute__(self, "_plugins_by_name")
        except AttributeError:
            raise AttributeError(name) from None
        plugin = plugins.get(name)
        if plugin is None:
            raise AttributeError(f"No plugin named '{name}' attached to registry '{self.name}'")
        return plugin

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def _is_known_plugin(self, prefix: str) -> bool:
        return prefix in _PLUGIN_REGISTRY

    def _wrap_handler(self, route: RouteDefinition, handler: Callable) -> Callable:
        wrapped = handler
        for plugin in reversed(self._plugins):
            plugin_call = plugin.wrap_handler(self, route, wrapped)
            wrapped = self._create_wrapper(plugin, route, plugin_call, wrapped)
        return wrapped

    def _create_wrapper(
        self,
        plugin: BasePlugin,
        route: RouteDefinition,
        plugin_call: Callable,
        next_handler: Callable,
    ) -> Callable:
        @wraps(next_handler)
        def wrapper(context):
            if not plugin.configuration(route).get("enabled", True):
                return next_handler(context)
            return plugin_call(context)

        return wrapper
