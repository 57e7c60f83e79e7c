"""Core runtime aggregator.

Exposes the building blocks from a single module; importing it performs only
imports (no plugin registration, no registry instantiation):

* ``paths`` → ``normalize_path``
* ``base`` → ``RouteDefinition``, ``HttpContext``
* ``handlers`` → ``FunctionRef``, ``StaticRef``, ``InstanceRef``, ``resolve_handler``
* ``base_registry`` → ``BaseRegistry`` (plugin-free state + DSL)
* ``registry`` → ``Registry`` (plugin-enabled)
* ``dispatcher`` → ``Dispatcher``, ``ApplyReport``
"""

from .base import HttpContext, RouteDefinition
from .base_registry import BaseRegistry
from .dispatcher import ApplyReport, Dispatcher
from .handlers import FunctionRef, InstanceRef, StaticRef, resolve_handler
from .paths import normalize_path
from .registry import Registry

__all__ = [
    "ApplyReport",
    "BaseRegistry",
    "Dispatcher",
    "FunctionRef",
    "HttpContext",
    "InstanceRef",
    "Registry",
    "RouteDefinition",
    "StaticRef",
    "normalize_path",
    "resolve_handler",
]
