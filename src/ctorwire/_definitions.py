from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from ._container import Container


class Lifetime(Enum):
    SHARED = "shared"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class Factory:
    """A callable invoked with the container: ``func(container) -> instance``."""

    func: Callable[[Container], Any]


@dataclass(frozen=True)
class TypeRef:
    """A class built by introspecting its constructor."""

    cls: type


@dataclass(frozen=True)
class Instance:
    """A pre-built object returned as-is."""

    value: Any


Producer = Union[Factory, TypeRef, Instance]


@dataclass(frozen=True)
class ServiceDefinition:
    name: str
    producer: Producer
    lifetime: Lifetime = Lifetime.SHARED


def service_name(token: str | type) -> str:
    """Normalise a registration token to its service name.

    Classes are registered and looked up under their ``__name__``.
    """
    if isinstance(token, str):
        return token
    if inspect.isclass(token):
        return token.__name__
    msg = f"Service names must be strings or classes, got {token!r}"
    raise TypeError(msg)


def as_producer(value: object) -> Producer:
    """Wrap a raw registration value into its producer variant.

    - classes become `TypeRef`
    - other callables become `Factory`
    - anything else becomes `Instance`

    Wrap a callable in `Instance` explicitly to register it as a plain value.
    """
    if isinstance(value, (Factory, TypeRef, Instance)):
        return value
    if inspect.isclass(value):
        return TypeRef(value)
    if callable(value):
        return Factory(value)
    return Instance(value)


class DefinitionStore:
    """Holds one `ServiceDefinition` per service name."""

    def __init__(self) -> None:
        self._definitions: dict[str, ServiceDefinition] = {}

    def register(self, definition: ServiceDefinition) -> None:
        if definition.name in self._definitions:
            logger.debug("Overwriting definition for service '%s'", definition.name)
        self._definitions[definition.name] = definition

    def lookup(self, name: str) -> ServiceDefinition | None:
        return self._definitions.get(name)

    def names(self) -> Iterator[str]:
        return iter(list(self._definitions))

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
