from __future__ import annotations

import logging
from typing import Any


logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Returned on a cache miss; a cached ``None`` is still a hit.
MISSING: Any = _Missing()


class InstanceCache:
    """Shared instances keyed by service name. Entries live until invalidated or cleared."""

    def __init__(self) -> None:
        self._instances: dict[str, Any] = {}

    def get(self, name: str) -> Any:
        return self._instances.get(name, MISSING)

    def put(self, name: str, instance: object) -> None:
        self._instances[name] = instance

    def invalidate(self, name: str) -> None:
        if self._instances.pop(name, MISSING) is not MISSING:
            logger.debug("Invalidated cached instance of '%s'", name)

    def clear(self) -> None:
        self._instances.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._instances

    def __len__(self) -> int:
        return len(self._instances)
