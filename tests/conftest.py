"""Shared pytest fixtures and configuration."""

import pytest

from beanscope.config import CONFIG
from beanscope.core.filters import EXCLUSIONS
from beanscope.identity import ObjectName
from beanscope.resources import InMemoryStore, ManagedResource, StoreRegistry, managed_operation


class Owner:
    def __init__(self, login: str, team=None):
        self.login = login
        self.team = team


class Team:
    def __init__(self, name: str):
        self.name = name
        self.lead = None


class Cache:
    """Sample target with scalar, nested, sequence and identity attributes."""

    def __init__(self):
        self.size = 12
        self.label = "hot"
        self.owner = Owner("ada", Team("core"))
        self.tags = ["a", None, "b"]
        self.peer = ObjectName.parse("app:type=Peer,name=west")
        self.missing = None
        self.reads = 0

    @property
    def secret(self) -> str:
        self.reads += 1
        return "hunter2"

    @managed_operation(name="evict")
    def evict_all(self) -> None:
        self.size = 0

    @managed_operation(name="evict")
    def evict_one(self, key: str) -> bool:
        self.size -= 1
        return True


class Worker:
    def __init__(self):
        self.jobs = 3


@pytest.fixture(autouse=True)
def reset_state():
    """Keep process-wide configuration and exclusions isolated per test."""
    saved = CONFIG.snapshot
    EXCLUSIONS.clear()
    yield
    EXCLUSIONS.clear()
    CONFIG.replace(**saved.model_dump())


@pytest.fixture
def cache():
    return Cache()


@pytest.fixture
def cache_resource(cache):
    return ManagedResource("app:type=Cache,name=main", cache)


@pytest.fixture
def registry(cache_resource):
    """A registry with one store holding two ``app`` resources."""
    store = InMemoryStore("local")
    store.register(cache_resource)
    store.register(ManagedResource("app:type=Worker", Worker()))
    registry = StoreRegistry()
    registry.register_store(store)
    return registry
