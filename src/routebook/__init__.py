"""routebook public API surface.

- Public exports: ``Registry``, ``routes`` (the process-wide default
  registry), ``HttpContext``, ``RouteDefinition``, ``ApplyReport``, the
  handler reference variants, ``normalize_path`` and the error taxonomy.
- Built-in plugins (``logging``) are imported lazily via ``import_module`` for
  their side effect of calling ``Registry.register_plugin``.

Import stays lightweight: the only object created here is the default
registry.
"""

from importlib import import_module

__version__ = "0.1.0"

from .core import (
    ApplyReport,
    BaseRegistry,
    FunctionRef,
    HttpContext,
    InstanceRef,
    Registry,
    RouteDefinition,
    StaticRef,
    normalize_path,
)
from .core.errors import (
    HandlerResolutionError,
    HandlerRuntimeError,
    InvalidHandlerShape,
    MissingHandlerMethod,
    RoutebookError,
    UnsupportedMethodToken,
)

for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

routes = Registry(name="default")

__all__ = [
    "ApplyReport",
    "BaseRegistry",
    "FunctionRef",
    "HandlerResolutionError",
    "HandlerRuntimeError",
    "HttpContext",
    "InstanceRef",
    "InvalidHandlerShape",
    "MissingHandlerMethod",
    "Registry",
    "RouteDefinition",
    "RoutebookError",
    "StaticRef",
    "UnsupportedMethodToken",
    "normalize_path",
    "routes",
]
