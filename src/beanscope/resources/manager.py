"""
Registry of resource stores.
Responsible for store registration, cross-store queries and unique lookup.
"""

from typing import Any

from beanscope.errors import ErrorCode, RequestError, ResolutionError
from beanscope.identity import ObjectName
from beanscope.logger import get_logger
from beanscope.resources.base import ManagedResource
from beanscope.resources.store import ResourceStore

logger = get_logger(__name__)


def parse_query(text: str) -> ObjectName:
    """
    Parse a query name, falling back to the lenient form.

    Names written without the required quoting (``a:path=/x,y``) are
    accepted when the lenient parse succeeds.

    Raises:
        RequestError: ``MALFORMED_NAME`` if neither form parses.
    """
    try:
        return ObjectName.parse(text)
    except RequestError as strict_error:
        try:
            name = ObjectName.parse_lenient(text)
        except RequestError:
            raise strict_error from None
        logger.debug(f"Parsed '{text}' leniently as {name}")
        return name


class StoreRegistry:
    """
    Central coordinator for all resource stores.
    """

    def __init__(self):
        self.stores: dict[str, ResourceStore] = {}

    def register_store(self, store: ResourceStore) -> None:
        """
        Add a store to the registry.

        Args:
            store: The store instance to register. Replaces any store of the
                same name.
        """
        logger.info(f"Registering store '{store.name}' with {len(store)} resources")
        self.stores[store.name] = store

    def unregister_store(self, name: str) -> bool:
        store = self.stores.pop(name, None)
        if store:
            logger.info(f"Unregistered store '{name}'")
            return True
        logger.warning(f"Attempted to unregister unknown store: {name}")
        return False

    def get_store(self, name: str) -> ResourceStore | None:
        return self.stores.get(name)

    def list_stores(self) -> list[dict[str, Any]]:
        return [store.to_dict() for store in self.stores.values()]

    def query(self, pattern: str | ObjectName) -> dict[str, list[ManagedResource]]:
        """
        Find matching resources across all usable stores.

        Args:
            pattern: Name or pattern, as text or parsed.

        Returns:
            Store name to its matches; stores without matches are omitted.

        Raises:
            RequestError: ``MALFORMED_NAME`` for an unparseable pattern.
        """
        if isinstance(pattern, str):
            pattern = parse_query(pattern)

        results: dict[str, list[ManagedResource]] = {}
        for name, store in list(self.stores.items()):
            if not store.verify():
                logger.warning(f"Skipping store '{name}': verification failed")
                continue
            matches = store.query(pattern)
            if matches:
                results[name] = matches
        return results

    def locate(self, pattern: str | ObjectName) -> tuple[str, ManagedResource]:
        """
        Find the single resource matching ``pattern``.

        Returns:
            (store name, resource)

        Raises:
            RequestError: For an unparseable pattern.
            ResolutionError: ``RESOURCE_NOT_FOUND`` when nothing matches,
                ``RESOURCE_AMBIGUOUS`` when more than one resource matches
                in any number of stores.
        """
        text = str(pattern)
        matches = self.query(pattern)
        total = sum(len(found) for found in matches.values())
        if total == 0:
            raise ResolutionError(ErrorCode.RESOURCE_NOT_FOUND, query=text)
        if total > 1:
            raise ResolutionError(ErrorCode.RESOURCE_AMBIGUOUS, query=text, count=total)
        store_name, found = next(iter(matches.items()))
        return store_name, found[0]

    @property
    def resource_count(self) -> int:
        return sum(len(store) for store in self.stores.values())
