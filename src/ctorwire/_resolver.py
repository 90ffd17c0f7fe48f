from __future__ import annotations

import abc
import inspect
import logging
import threading
import types
import typing
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, Union, cast, get_type_hints

from ._definitions import Instance, TypeRef
from ._errors import CircularDependencyError, UnresolvableDependencyError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextlib import AbstractContextManager

    from ._container import Container

    T = TypeVar("T")

_EMPTY = inspect.Parameter.empty
_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True)
class ConstructorParameter:
    name: str
    # a class, an unresolved forward-reference string, or None
    declared_type: Any
    has_default: bool
    default: Any
    is_optional: bool
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def fallback(self) -> Any:
        """Value used when nothing can be wired: the default, else ``None``."""
        return self.default if self.has_default else None


class ResolutionStack:
    """Names currently being produced, one stack per thread.

    Entering a name that is already on the calling thread's stack raises
    `CircularDependencyError` with the whole chain.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _names(self) -> list[str]:
        names = getattr(self._local, "names", None)
        if names is None:
            names = self._local.names = []
        return names

    @contextmanager
    def enter(self, name: str) -> Iterator[None]:
        names = self._names()
        if name in names:
            raise CircularDependencyError([*names, name])
        names.append(name)
        try:
            yield
        finally:
            names.pop()

    def snapshot(self) -> tuple[str, ...]:
        return tuple(self._names())

    def __contains__(self, name: object) -> bool:
        return name in self._names()

    def __len__(self) -> int:
        return len(self._names())


class Resolver:
    def __init__(self, container: Container) -> None:
        self._container = container
        self._stack = ResolutionStack()

    @property
    def stack(self) -> ResolutionStack:
        return self._stack

    def resolving(self, name: str) -> AbstractContextManager[None]:
        """Guard the production of ``name`` against cycles."""
        return self._stack.enter(name)

    def build(self, cls: type[T], *, name: str | None = None) -> T:
        """Construct ``cls``, wiring each constructor parameter.

        ``name`` is the identity pushed on the resolution stack; it defaults to
        the class name for ad-hoc builds of unregistered dependencies.
        """
        with self._stack.enter(name or cls.__name__):
            logger.debug("Building %s (chain: %s)", cls.__qualname__, self._stack.snapshot())
            args: list[Any] = []
            kwargs: dict[str, Any] = {}
            for param in describe_parameters(cls):
                value = self._resolve_parameter(cls, param)
                if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                    args.append(value)
                else:
                    kwargs[param.name] = value

            # constructor errors propagate unchanged
            return cls(*args, **kwargs)

    def _resolve_parameter(self, owner: type, param: ConstructorParameter) -> Any:
        """Resolving param.

        Resolution precedence:
        1. registration under the declared type's name, if it produces that type
        2. ad-hoc construction of the declared type
        3. registration under the parameter name
        4. default
        5. ``None`` for optional parameters
        6. error.
        """
        declared = param.declared_type

        # 1) + 2) type-based
        if declared is not None:
            dependency = _declared_name(declared)
            if dependency is not None and self._registration_matches(dependency, declared):
                return self._container.get(dependency)

            if is_constructible(declared):
                try:
                    return self.build(declared)
                except UnresolvableDependencyError:
                    if not (param.has_default or param.is_optional):
                        raise
                    logger.debug(
                        "Could not build %s for '%s' of %s, using fallback",
                        declared.__name__,
                        param.name,
                        owner.__name__,
                    )
                    return param.fallback

        # 3) name-based
        if self._container.is_registered(param.name):
            return self._container.get(param.name)

        # 4) + 5) default / optional
        if param.has_default or param.is_optional:
            return param.fallback

        # 6) error
        raise UnresolvableDependencyError(owner, param.name, declared)

    def _registration_matches(self, dependency: str, declared: Any) -> bool:
        """Whether the service registered as ``dependency`` can stand in for ``declared``.

        Names are ``__name__`` only, so an unrelated class registered under the
        same name must not be injected. Factories are opaque and always accepted,
        as are forward-reference strings, protocols and ABCs.
        """
        definition = self._container.definition(dependency)
        if definition is None:
            return False
        if not inspect.isclass(declared) or _is_protocol(declared) or isinstance(declared, abc.ABCMeta):
            return True

        producer = definition.producer
        if isinstance(producer, TypeRef):
            matches = issubclass(producer.cls, declared)
        elif isinstance(producer, Instance):
            matches = isinstance(producer.value, declared)
        else:
            matches = True

        if not matches:
            logger.debug(
                "Service '%s' is registered but is not a %s (%s), ignoring it",
                dependency,
                declared.__qualname__,
                declared.__module__,
            )
        return matches


def describe_parameters(cls: type) -> list[ConstructorParameter]:
    """Introspect the ``__init__`` parameters of ``cls`` in declaration order.

    ``self`` and variadic parameters are skipped.
    """
    init = cls.__init__
    if init is object.__init__:
        return []

    try:
        sig = inspect.signature(init)
    except (TypeError, ValueError):
        logger.debug("No introspectable signature for %s, treating as no-arg", cls.__qualname__)
        return []

    hints = _get_init_type_hints(cls, init, sig)
    described = []
    for p in list(sig.parameters.values())[1:]:
        if p.kind in _VARIADIC:
            continue

        annotation = hints.get(p.name, p.annotation)
        declared, optional = _unwrap_optional(None if annotation is _EMPTY else annotation)
        described.append(
            ConstructorParameter(
                name=p.name,
                declared_type=declared,
                has_default=p.default is not _EMPTY,
                default=None if p.default is _EMPTY else p.default,
                is_optional=optional,
                kind=p.kind,
            )
        )
    return described


def is_constructible(tp: Any) -> bool:
    """Whether ``tp`` is a class the resolver may build on its own.

    Builtins (``str``, ``int``, ...), abstract classes, enums and protocols are not.
    """
    if not inspect.isclass(tp) or tp is Any:
        return False
    if getattr(tp, "__module__", "") in ("builtins", "typing"):
        return False
    if inspect.isabstract(tp) or issubclass(tp, Enum):
        return False
    return not _is_protocol(tp)


def _declared_name(declared: Any) -> str | None:
    if isinstance(declared, str):
        return declared
    if inspect.isclass(declared):
        return declared.__name__
    return None


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``.

    Unions of several non-None members carry no single wireable type.
    """
    origin = typing.get_origin(annotation)
    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        members = typing.get_args(annotation)
        non_none = [m for m in members if m is not type(None)]
        optional = len(non_none) < len(members)
        if len(non_none) == 1:
            return non_none[0], optional
        return None, optional

    return annotation, False


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False)) and tp is not Protocol


def _get_init_type_hints(cls: type, init: Any, sig: inspect.Signature) -> dict[str, Any]:
    try:
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = _evaluate_each_annotation(init, sig)

    return cast("dict[str, Any]", hints)


def _evaluate_each_annotation(init: Any, sig: inspect.Signature) -> dict[str, Any]:
    """Evaluate string annotations one by one against the module of ``init``.

    Annotations that still fail are left out, so the raw string is kept and
    looked up as a service name.
    """
    globalns = getattr(inspect.unwrap(init), "__globals__", {})
    hints: dict[str, Any] = {}
    for p in sig.parameters.values():
        annotation = p.annotation
        if annotation is _EMPTY:
            continue
        if not isinstance(annotation, str):
            hints[p.name] = annotation
            continue

        try:
            hints[p.name] = eval(annotation, globalns)  # noqa: S307
        except (NameError, AttributeError, SyntaxError, TypeError):
            logger.debug("Keeping unresolved annotation %r of parameter '%s'", annotation, p.name)
    return hints
