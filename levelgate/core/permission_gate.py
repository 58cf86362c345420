from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from .errors import GateError, UnknownOperation
from .levels import MemberLevel, parse_level
from .policy import PermissionPolicy
from .resolver import ArgumentResolver, CallArguments, StructuredObjectResolver

if TYPE_CHECKING:
    from ..registry.operation_registry import OperationDef, OperationRegistry
    from ..trace.trace_emitter import TraceEmitter


logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class PermissionGate:
    """
    Final, non-bypassable gate in front of guarded operations.

    Invariants:
    - deny-by-default: the operation runs only after an allow decision.
    - resolver and policy errors propagate unchanged and the operation never runs.
    - errors raised by the operation itself propagate unchanged.
    - no state is kept between calls; trace failures never change the outcome.
    """

    def __init__(
        self,
        policy: PermissionPolicy,
        registry: Optional[OperationRegistry] = None,
        trace: Optional[TraceEmitter] = None,
    ):
        self._policy = policy
        self._registry = registry
        self._trace = trace

    def invoke(self, operation_id: str, /, *args: Any, **kwargs: Any) -> Any:
        op, impl = self._require_operation(operation_id)
        call = CallArguments.capture(impl, args, kwargs)
        return self.invoke_guarded(impl, op.required_level, call, op.resolver, operation_id=operation_id)

    def invoke_guarded(
        self,
        operation: Callable[..., Any],
        required_level: MemberLevel | str,
        call: CallArguments,
        resolver: ArgumentResolver,
        *,
        operation_id: Optional[str] = None,
    ) -> Any:
        name = operation_id or getattr(operation, "__qualname__", repr(operation))
        required_level = parse_level(required_level)
        logger.debug("%s: required level = %s", name, required_level.name)

        try:
            subject = resolver.resolve(call)
        except GateError as e:
            logger.warning("%s: access subject not resolved (%s)", name, e)
            self._record(
                "resolution_failed",
                operation_id=name,
                required_level=required_level,
                decision="deny",
                reason_codes=[e.code],
                message=e.message,
            )
            raise

        result = self._policy.evaluate(required_level, subject)
        self._record_decision(
            operation_id=name,
            required_level=required_level,
            subject=subject,
            decision=result.decision,
            reason_codes=result.reason_codes,
            message=result.summary,
        )
        if not result.allowed:
            logger.warning("%s: denied %r (%s)", name, subject, ", ".join(result.reason_codes))
            self._policy.require_allow(result)

        logger.info("%s: allowed %r at %s", name, subject, required_level.name)
        return call.invoke(operation)

    def guard(
        self,
        required_level: MemberLevel | str,
        resolver: Optional[ArgumentResolver] = None,
        *,
        operation_id: Optional[str] = None,
    ) -> Callable[[F], F]:
        """
        Decorator form: returns a guarded version of the decorated function.
        """
        level = parse_level(required_level)
        res = resolver if resolver is not None else StructuredObjectResolver()

        def decorator(func: F) -> F:
            name = operation_id or func.__qualname__

            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                call = CallArguments.capture(func, args, kwargs)
                return self.invoke_guarded(func, level, call, res, operation_id=name)

            return wrapper  # type: ignore[return-value]

        return decorator

    def wrap(self, operation_id: str) -> Callable[..., Any]:
        """
        Guarded callable for a registered operation.
        """
        _, impl = self._require_operation(operation_id)

        @functools.wraps(impl)
        def guarded(*args: Any, **kwargs: Any) -> Any:
            return self.invoke(operation_id, *args, **kwargs)

        return guarded

    def _record(self, event_type: str, **fields: Any) -> None:
        if self._trace is None:
            return
        try:
            self._trace.emit(event_type, **fields)
        except Exception:  # noqa: BLE001
            logger.warning("trace sink failed for %s event", event_type, exc_info=True)

    def _record_decision(self, **fields: Any) -> None:
        if self._trace is None:
            return
        try:
            self._trace.emit_decision(**fields)
        except Exception:  # noqa: BLE001
            logger.warning("trace sink failed for decision event", exc_info=True)

    def _require_operation(self, operation_id: str) -> tuple[OperationDef, Callable[..., Any]]:
        if self._registry is None or self._registry.get(operation_id) is None:
            logger.warning("unknown operation %s", operation_id)
            self._record("operation_unknown", operation_id=operation_id, message="Unknown operation")
            raise UnknownOperation(
                code="operation.unknown",
                message=f"Unknown operation: {operation_id}",
                data={"operation_id": operation_id},
            )
        return self._registry.require(operation_id), self._registry.impl(operation_id)
