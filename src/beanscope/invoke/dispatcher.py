"""
Execution of resolved operations.

``InvocationDispatcher`` runs one operation under a deadline and a
response size cap; ``InvocationService`` chains decoding, resolution,
coercion and dispatch for one inbound request. Neither raises: every
failure becomes an ``ERROR`` outcome.

A synchronous callee runs on its own daemon thread. When the deadline
passes the dispatcher stops waiting and reports a timeout; the thread is
abandoned and may still run to completion in the background.
"""

import asyncio
import re
import threading
from typing import Any

from beanscope.config import CONFIG
from beanscope.core.coercion import canonical_type
from beanscope.core.values import ValueRenderer, clean_text
from beanscope.errors import BeanScopeError, ErrorCode, InvocationError, RequestError
from beanscope.invoke import decoder
from beanscope.invoke.models import InvocationOutcome
from beanscope.invoke.resolver import OperationResolver
from beanscope.logger import get_logger
from beanscope.resources.base import BoundOperation, ManagedResource
from beanscope.resources.manager import StoreRegistry

logger = get_logger(__name__)

_LIMIT_RE = re.compile(r"\d+\Z")


class _CalleeFailure(Exception):
    """Carries an exception raised by the operation itself."""

    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error


def _settle(future: asyncio.Future, result: Any, error: BaseException | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class InvocationDispatcher:
    """Runs resolved operations under a deadline and a size cap."""

    def __init__(self, renderer: ValueRenderer | None = None, version: str | None = None):
        self.renderer = renderer or ValueRenderer()
        self._version = version

    @property
    def version(self) -> str:
        return self._version or CONFIG.protocol_version

    async def _call(self, operation: BoundOperation, args: list[Any]) -> Any:
        if operation.is_async:
            try:
                return await operation.fn(*args)
            except (KeyboardInterrupt, asyncio.CancelledError):
                raise
            except BaseException as e:
                raise _CalleeFailure(e) from e

        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _target():
            try:
                result = operation.fn(*args)
            except BaseException as e:
                # SystemExit and friends must still settle the caller's future
                outcome = (None, _CalleeFailure(e))
            else:
                outcome = (result, None)
            try:
                loop.call_soon_threadsafe(_settle, future, *outcome)
            except RuntimeError:
                logger.debug(f"'{operation.signature.name}' finished after its caller went away")

        thread = threading.Thread(
            target=_target, name=f"invoke-{operation.signature.name}", daemon=True
        )
        thread.start()
        return await future

    def _render(self, operation: BoundOperation, result: Any) -> InvocationOutcome:
        signature = operation.signature
        if signature.is_void or result is None:
            return InvocationOutcome.success(self.version)

        if canonical_type(signature.returns):
            result_type = signature.returns
        else:
            result_type = self.renderer.type_of(result)

        if self.renderer.is_leaf(result):
            text = self.renderer.text_of(result)
        else:
            text = clean_text(str(result))
        return InvocationOutcome.success(self.version, result_type, text)

    async def execute(
        self,
        resource: ManagedResource,
        operation: BoundOperation,
        args: list[Any],
        max_time: float | None,
        max_size: int,
    ) -> InvocationOutcome:
        """
        Run ``operation`` and render its result.

        Args:
            max_time: Deadline in seconds; 0 or None waits without a deadline.
            max_size: Largest accepted outcome document, in characters.

        Raises:
            InvocationError: On timeout, on any exception raised by the
                operation, or when the outcome document reaches ``max_size``.
        """
        name = operation.signature.name
        logger.info(f"Invoking '{name}' on {resource.object_name}")

        try:
            if max_time:
                result = await asyncio.wait_for(self._call(operation, args), timeout=max_time)
            else:
                result = await self._call(operation, args)
        except asyncio.TimeoutError:
            logger.warning(f"'{name}' on {resource.object_name} timed out after {max_time}s")
            raise InvocationError(
                ErrorCode.INVOCATION_TIMEOUT, operation=name, seconds=max_time
            ) from None
        except _CalleeFailure as failure:
            e = failure.error
            logger.error(f"'{name}' on {resource.object_name} raised {type(e).__name__}: {e}")
            raise InvocationError(
                ErrorCode.INVOCATION_FAILED,
                operation=name,
                error_type=type(e).__name__,
                error=e,
            ) from e

        outcome = self._render(operation, result)
        if outcome.result is not None and len(outcome.to_xml()) >= max_size:
            logger.warning(f"Response of '{name}' exceeds {max_size} characters")
            raise InvocationError(ErrorCode.RESPONSE_TOO_LARGE, limit=max_size)
        return outcome

    async def invoke(
        self,
        resource: ManagedResource,
        operation: BoundOperation,
        args: list[Any],
        max_time: float | None,
        max_size: int,
    ) -> InvocationOutcome:
        """Like ``execute`` but reports failures as an ``ERROR`` outcome."""
        try:
            return await self.execute(resource, operation, args, max_time, max_size)
        except BeanScopeError as e:
            return self.format_error(e)
        except Exception as e:
            logger.exception(f"Failed to build the outcome of '{operation.signature.name}': {e}")
            return self.format_error(e)

    def format_error(self, error: Exception) -> InvocationOutcome:
        if isinstance(error, BeanScopeError):
            return InvocationOutcome.failure(self.version, str(error), error.code)
        wrapped = BeanScopeError(ErrorCode.TRANSFORM_FAILED, error=error)
        return InvocationOutcome.failure(self.version, str(wrapped), wrapped.code)


def _parse_limit(param: str, raw: Any, default: int, minimum: int = 0) -> int:
    if raw is None:
        return default
    text = str(raw).strip()
    if isinstance(raw, bool) or not _LIMIT_RE.match(text) or int(text) < minimum:
        raise RequestError(ErrorCode.INVALID_LIMIT, param=param, value=raw)
    return int(text)


class InvocationService:
    """
    Handles one invocation request end to end.

    decode -> validate limits -> locate resource -> resolve overload ->
    coerce parameters -> dispatch. Errors before dispatch are reported
    without running anything.
    """

    def __init__(
        self,
        registry: StoreRegistry,
        resolver: OperationResolver | None = None,
        dispatcher: InvocationDispatcher | None = None,
        config=None,
    ):
        self.registry = registry
        self.resolver = resolver or OperationResolver()
        self.dispatcher = dispatcher or InvocationDispatcher()
        self._config = config

    @property
    def config(self):
        return self._config or CONFIG

    async def handle(
        self,
        body: str | None,
        declared_length: int | None,
        max_time: Any = None,
        max_size: Any = None,
    ) -> InvocationOutcome:
        config = self.config
        try:
            request = decoder.decode(body, declared_length, config.max_request_size)
            size = _parse_limit(
                "max_size", max_size, config.invoke_max_size, config.min_invoke_response_size
            )
            seconds = _parse_limit("max_time", max_time, config.invoke_max_time)

            _, resource = self.resolver.locate(self.registry, request.resource)
            params = list(request.params)
            operation = self.resolver.resolve(resource, request.operation, params)
            args = self.resolver.coerce(operation.signature, params)
        except BeanScopeError as e:
            logger.info(f"Invoke request rejected: {e}")
            return self.dispatcher.format_error(e)
        except Exception as e:
            logger.exception(f"Unexpected error preparing invocation: {e}")
            return self.dispatcher.format_error(e)

        return await self.dispatcher.invoke(resource, operation, args, seconds, size)

    def reject(self, error: BeanScopeError) -> InvocationOutcome:
        return self.dispatcher.format_error(error)

