"""
Resource stores.

A store is a named source of managed resources. The registry only relies
on the ``ResourceStore`` interface; ``InMemoryStore`` keeps resources in a
dict and backs the built-in ``local`` store.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from beanscope.identity import ObjectName
from beanscope.logger import get_logger
from beanscope.resources.base import ManagedResource

logger = get_logger(__name__)


class ResourceStore(ABC):
    """
    Abstract base class for resource stores.

    Subclasses provide lookup and registration; the ``StoreRegistry``
    fans queries out across every registered store.
    """

    def __init__(self, name: str):
        self.name = name
        self.registered_at: datetime = datetime.now()

    @abstractmethod
    def query(self, pattern: ObjectName) -> list[ManagedResource]:
        """
        Find resources matching a name or pattern.

        Args:
            pattern: A concrete name or a pattern.

        Returns:
            Matching resources, ordered by canonical name.
        """
        pass

    @abstractmethod
    def get(self, name: ObjectName) -> ManagedResource | None:
        """Exact lookup of a concrete name."""
        pass

    @abstractmethod
    def register(self, resource: ManagedResource) -> None:
        pass

    @abstractmethod
    def unregister(self, name: ObjectName | str) -> bool:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def verify(self) -> bool:
        """Check the store is usable; unusable stores are skipped by queries."""
        return True

    def to_dict(self) -> dict[str, Any]:
        """Serialize store info for API responses."""
        return {
            "name": self.name,
            "type": type(self).__name__,
            "resources": len(self),
            "registered_at": self.registered_at.isoformat(),
        }


class InMemoryStore(ResourceStore):
    """A store holding resources in process memory."""

    def __init__(self, name: str):
        super().__init__(name)
        self._lock = threading.RLock()
        self._resources: dict[ObjectName, ManagedResource] = {}

    def register(self, resource: ManagedResource) -> None:
        """
        Add a resource.

        Raises:
            ValueError: If a resource with the same name is registered.
        """
        with self._lock:
            if resource.object_name in self._resources:
                raise ValueError(
                    f"Resource {resource.object_name} is already registered in '{self.name}'"
                )
            self._resources[resource.object_name] = resource
        logger.debug(f"Registered {resource.object_name} in store '{self.name}'")

    def unregister(self, name: ObjectName | str) -> bool:
        if isinstance(name, str):
            name = ObjectName.parse(name)
        with self._lock:
            removed = self._resources.pop(name, None)
        if removed is None:
            logger.warning(f"Attempted to unregister unknown resource: {name}")
            return False
        logger.debug(f"Unregistered {name} from store '{self.name}'")
        return True

    def get(self, name: ObjectName) -> ManagedResource | None:
        with self._lock:
            return self._resources.get(name)

    def query(self, pattern: ObjectName) -> list[ManagedResource]:
        with self._lock:
            if not pattern.is_pattern:
                found = self._resources.get(pattern)
                return [found] if found is not None else []
            matches = [r for n, r in self._resources.items() if pattern.matches(n)]
        return sorted(matches, key=lambda r: r.object_name.canonical_name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)
