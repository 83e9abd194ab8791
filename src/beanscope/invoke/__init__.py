"""
Remote invocation of resource operations.
"""

from beanscope.invoke.decoder import decode
from beanscope.invoke.dispatcher import InvocationDispatcher, InvocationService
from beanscope.invoke.models import (
    InvocationOutcome,
    InvocationRequest,
    MethodParameter,
    OutcomeStatus,
)
from beanscope.invoke.resolver import OperationResolver

__all__ = [
    "InvocationDispatcher",
    "InvocationOutcome",
    "InvocationRequest",
    "InvocationService",
    "MethodParameter",
    "OperationResolver",
    "OutcomeStatus",
    "decode",
]
