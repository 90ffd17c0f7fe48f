"""Constructor auto-wiring service container.

This package provides an in-process service container for Python that builds
object graphs by inspecting constructor signatures at runtime, caches shared
instances, and detects circular dependencies before they recurse.

Exports:
- `Container`: registers services by name and resolves them with constructor injection.
- `Lifetime`: whether a service is shared (built once) or transient (built per request).
- `Factory`, `TypeRef`, `Instance`: the three ways to produce a service.
- `ServiceDefinition`: a registered name, its producer and its lifetime.
- `ContainerError` and its subclasses `ServiceNotFoundError`,
  `UnresolvableDependencyError` and `CircularDependencyError`.
"""

from ._container import Container
from ._definitions import Factory, Instance, Lifetime, ServiceDefinition, TypeRef
from ._errors import (
    CircularDependencyError,
    ContainerError,
    ServiceNotFoundError,
    UnresolvableDependencyError,
)


__all__ = [
    "CircularDependencyError",
    "Container",
    "ContainerError",
    "Factory",
    "Instance",
    "Lifetime",
    "ServiceDefinition",
    "ServiceNotFoundError",
    "TypeRef",
    "UnresolvableDependencyError",
]
