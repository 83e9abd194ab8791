"""
Selection of the operation an invocation request targets.
"""

from typing import Any

from beanscope.core.coercion import TypeCoercer, canonical_type
from beanscope.errors import ErrorCode, ResolutionError
from beanscope.invoke.models import MethodParameter
from beanscope.logger import get_logger
from beanscope.resources.base import BoundOperation, ManagedResource, OperationSignature
from beanscope.resources.manager import StoreRegistry

logger = get_logger(__name__)


class OperationResolver:
    """
    Finds the target resource and the overload matching the request.

    Overloads are matched on parameter count, then on the type family of
    each position; parameter names are not used.
    """

    def __init__(self, coercer: TypeCoercer | None = None):
        self.coercer = coercer or TypeCoercer()

    def locate(self, registry: StoreRegistry, name: str) -> tuple[str, ManagedResource]:
        """
        Find the single resource named by ``name``.

        Raises:
            RequestError: For a malformed name.
            ResolutionError: When no resource or more than one resource
                matches, across all stores.
        """
        return registry.locate(name)

    def _check(self, signature: OperationSignature, params: list[MethodParameter]) -> None:
        if len(signature.params) != len(params):
            raise ResolutionError(
                ErrorCode.PARAM_COUNT_MISMATCH,
                operation=signature.name,
                expected=len(signature.params),
                actual=len(params),
            )
        for index, (declared, given) in enumerate(zip(signature.params, params), start=1):
            expected = canonical_type(declared.type_name)
            actual = canonical_type(given.type_name)
            if actual is None or actual != expected:
                raise ResolutionError(
                    ErrorCode.PARAM_TYPE_INVALID,
                    index=index,
                    operation=signature.name,
                    actual=given.type_name,
                    expected=declared.type_name,
                )

    def resolve(
        self, resource: ManagedResource, operation: str, params: list[MethodParameter]
    ) -> BoundOperation:
        """
        Select the overload of ``operation`` matching ``params``.

        Raises:
            ResolutionError: ``OPERATION_NOT_FOUND`` when no operation has
                that name; otherwise, when no overload matches, the mismatch
                reported by the last overload tried.
        """
        candidates = resource.operations(operation)
        if not candidates:
            raise ResolutionError(
                ErrorCode.OPERATION_NOT_FOUND,
                operation=operation,
                resource=str(resource.object_name),
            )

        last_error: ResolutionError | None = None
        for candidate in candidates:
            try:
                self._check(candidate.signature, params)
            except ResolutionError as e:
                last_error = e
                continue
            logger.debug(
                f"Resolved {operation}{candidate.signature.param_types} "
                f"on {resource.object_name}"
            )
            return candidate

        raise last_error

    def coerce(self, signature: OperationSignature, params: list[MethodParameter]) -> list[Any]:
        """
        Convert the raw parameter texts to the signature's types.

        Raises:
            ResolutionError: ``PARAM_VALUE_INVALID`` for a value that does not
                convert, including an empty value for a non-string type.
        """
        return [
            self.coercer.coerce(param.value, declared.type_name, index)
            for index, (declared, param) in enumerate(zip(signature.params, params), start=1)
        ]
