from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence


class ContainerError(RuntimeError):
    """Base class for every error raised by the container itself."""


class ServiceNotFoundError(ContainerError, KeyError):
    """`get` was called with a name that was never registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No service registered under name {name!r}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class UnresolvableDependencyError(ContainerError):
    def __init__(self, owner: type, parameter: str, annotation: Any = None) -> None:
        self.owner = owner
        self.parameter = parameter
        self.annotation = annotation
        ann_repr = "no-annotation" if annotation is None else getattr(annotation, "__name__", repr(annotation))
        msg = (
            f"Cannot satisfy constructor parameter '{parameter}' for {owner.__name__}. "
            f"No registration/default found and the type is not constructible (annotation: {ann_repr})."
        )
        super().__init__(msg)


class CircularDependencyError(ContainerError):
    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.chain)}")
