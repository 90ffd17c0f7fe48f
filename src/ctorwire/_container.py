from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._cache import MISSING, InstanceCache
from ._definitions import (
    DefinitionStore,
    Factory,
    Instance,
    Lifetime,
    ServiceDefinition,
    TypeRef,
    as_producer,
    service_name,
)
from ._errors import ServiceNotFoundError
from ._resolver import Resolver


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    T = TypeVar("T")

    Token = type[T] | str


class Container:
    """Service container with constructor auto-wiring.

    - register types, factories or pre-built instances under a name
    - resolve with constructor injection
    - lifetimes: shared / transient
    - circular dependencies detected eagerly.
    """

    def __init__(self, *, default_lifetime: Lifetime | str = Lifetime.SHARED) -> None:
        self._store = DefinitionStore()
        self._cache = InstanceCache()
        self._resolver = Resolver(self)
        self._lock = threading.RLock()
        self._default_lifetime = Lifetime(default_lifetime)

    def register(
        self,
        name: Token[Any],
        producer: object,
        lifetime: Lifetime | str | None = None,
    ) -> None:
        """Register how to produce the service ``name``.

        ``producer`` is a `Factory`, `TypeRef` or `Instance`, or a raw value
        wrapped by `as_producer`. Re-registering a name replaces its definition
        and drops any cached instance.

        Example:
          container.register("Logger", Logger)
          container.register("db", lambda c: create_db(c.get("settings")), Lifetime.TRANSIENT)

        """
        key = service_name(name)
        definition = ServiceDefinition(
            name=key,
            producer=as_producer(producer),
            lifetime=self._default_lifetime if lifetime is None else Lifetime(lifetime),
        )

        with self._lock:
            self._store.register(definition)
            self._cache.invalidate(key)

        logger.debug("Registered '%s' as %s (%s)", key, type(definition.producer).__name__, definition.lifetime.value)

    def register_instance(self, name: Token[Any], instance: object) -> None:
        """Register a pre-built instance (always shared)."""
        self.register(name, Instance(instance), Lifetime.SHARED)

    @overload
    def get(self, name: type[T]) -> T: ...

    @overload
    def get(self, name: str) -> Any: ...

    def get(self, name: Token[Any]) -> Any:
        """Resolve the service registered under ``name``.

        Unregistered names are never auto-constructed, even when ``name`` is a class.
        The container lock is held while factories run, so a factory must not wait on
        another thread that resolves from this container or both will deadlock.
        """
        key = service_name(name)
        with self._lock:
            definition = self._store.lookup(key)
            if definition is None:
                raise ServiceNotFoundError(key)

            shared = definition.lifetime is Lifetime.SHARED

            # Return cached shared instance if present
            if shared:
                cached = self._cache.get(key)
                if cached is not MISSING:
                    logger.debug("Cache hit for '%s'", key)
                    return cached

            instance = self._produce(definition)

            # Only completed builds are cached
            if shared:
                self._cache.put(key, instance)
                logger.debug("Cached shared instance of '%s'", key)

            return instance

    def try_get(self, name: Token[Any]) -> Any | None:
        """Resolve ``name`` if registered; return None otherwise."""
        try:
            return self.get(name)
        except ServiceNotFoundError as exc:
            if exc.name != service_name(name):
                # a nested dependency is missing, not this service
                raise
            return None

    def is_registered(self, name: Token[Any]) -> bool:
        return service_name(name) in self._store

    def definition(self, name: Token[Any]) -> ServiceDefinition | None:
        """The current definition registered under ``name``, if any."""
        with self._lock:
            return self._store.lookup(service_name(name))

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, (str, type)):
            return False
        return self.is_registered(name)

    def clear(self) -> None:
        """Tear down: drop every cached shared instance, keep the registrations."""
        with self._lock:
            self._cache.clear()

    def _produce(self, definition: ServiceDefinition) -> Any:
        producer = definition.producer
        if isinstance(producer, Instance):
            return producer.value

        if isinstance(producer, TypeRef):
            return self._resolver.build(producer.cls, name=definition.name)

        if isinstance(producer, Factory):
            with self._resolver.resolving(definition.name):
                return producer.func(self)

        msg = f"Unsupported producer for '{definition.name}': {producer!r}"
        raise TypeError(msg)
