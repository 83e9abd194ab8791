"""
Managed resources for beanscope.

Resources are Python objects published under structured names in one of
several stores; the ``StoreRegistry`` answers name and pattern queries
across all of them.
"""

from beanscope.resources.base import (
    ManagedResource,
    OperationParam,
    OperationSignature,
    managed_operation,
)
from beanscope.resources.manager import StoreRegistry
from beanscope.resources.store import InMemoryStore, ResourceStore

__all__ = [
    "InMemoryStore",
    "ManagedResource",
    "OperationParam",
    "OperationSignature",
    "ResourceStore",
    "StoreRegistry",
    "managed_operation",
]
