from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from levelgate.contract_store import shipped_contracts
from levelgate.core.errors import UnknownOperation, ValidationError
from levelgate.core.levels import MemberLevel, parse_level
from levelgate.core.resolver import STRUCTURED_OBJECT, ArgumentResolver, build_resolver


OperationFunc = Callable[..., Any]
F = TypeVar("F", bound=Callable[..., Any])

REQUIRED_PERMISSION_ATTR = "__required_permission__"


@dataclass(frozen=True)
class RequiredPermission:
    required_level: MemberLevel
    strategy: str = STRUCTURED_OBJECT
    caller_param: Optional[str] = None
    resource_param: Optional[str] = None


def required_permission(
    required_level: MemberLevel | str,
    *,
    strategy: str = STRUCTURED_OBJECT,
    caller_param: Optional[str] = None,
    resource_param: Optional[str] = None,
) -> Callable[[F], F]:
    """
    Attach a RequiredPermission to a function. Does not wrap it; enforcement
    happens only when the function is registered and invoked through a gate.
    """
    meta = RequiredPermission(
        required_level=parse_level(required_level),
        strategy=strategy,
        caller_param=caller_param,
        resource_param=resource_param,
    )
    # Fail at decoration time on a bad strategy.
    build_resolver(strategy, caller_param=caller_param, resource_param=resource_param)

    def decorator(func: F) -> F:
        setattr(func, REQUIRED_PERMISSION_ATTR, meta)
        return func

    return decorator


def get_required_permission(func: Callable[..., Any]) -> Optional[RequiredPermission]:
    meta = getattr(func, REQUIRED_PERMISSION_ATTR, None)
    return meta if isinstance(meta, RequiredPermission) else None


@dataclass(frozen=True)
class OperationDef:
    operation_id: str
    required_level: MemberLevel
    resolver: ArgumentResolver
    title: str = ""

    @property
    def strategy(self) -> str:
        return self.resolver.strategy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "title": self.title,
            "required_level": self.required_level.name,
            "strategy": self.strategy,
        }


class OperationRegistry:
    """
    Registry of guarded operations and their required levels.

    Definitions are immutable once registered; duplicate ids are rejected.
    """

    def __init__(self) -> None:
        self._defs: Dict[str, OperationDef] = {}
        self._impls: Dict[str, OperationFunc] = {}

    def register(self, op_def: Dict[str, Any], impl: OperationFunc) -> OperationDef:
        errors = shipped_contracts().validate("operation.schema.json", op_def)
        if errors:
            raise ValidationError(
                code="operation.invalid",
                message="Operation definition validation failed",
                data={"errors": errors, "operation_id": op_def.get("operation_id")},
            )
        operation_id = op_def["operation_id"]
        if operation_id in self._defs:
            raise ValidationError(
                code="operation.duplicate",
                message=f"Duplicate operation_id: {operation_id}",
                data={"operation_id": operation_id},
            )
        if not callable(impl):
            raise ValidationError(code="operation.invalid", message=f"Operation is not callable: {operation_id}")

        definition = OperationDef(
            operation_id=operation_id,
            required_level=parse_level(op_def["required_level"]),
            resolver=build_resolver(
                op_def["strategy"],
                caller_param=op_def.get("caller_param"),
                resource_param=op_def.get("resource_param"),
            ),
            title=op_def.get("title", ""),
        )
        self._defs[operation_id] = definition
        self._impls[operation_id] = impl
        return definition

    def register_function(self, func: OperationFunc, *, operation_id: str, title: str = "") -> OperationDef:
        meta = get_required_permission(func)
        if meta is None:
            raise ValidationError(
                code="operation.invalid",
                message=f"Function carries no required permission: {getattr(func, '__qualname__', func)!r}",
                data={"operation_id": operation_id},
            )
        op_def: Dict[str, Any] = {
            "operation_id": operation_id,
            "title": title,
            "required_level": meta.required_level.name,
            "strategy": meta.strategy,
        }
        if meta.caller_param:
            op_def["caller_param"] = meta.caller_param
        if meta.resource_param:
            op_def["resource_param"] = meta.resource_param
        return self.register(op_def, func)

    def get(self, operation_id: str) -> OperationDef | None:
        return self._defs.get(operation_id)

    def require(self, operation_id: str) -> OperationDef:
        op = self._defs.get(operation_id)
        if op is None:
            raise UnknownOperation(
                code="operation.unknown",
                message=f"Unknown operation: {operation_id}",
                data={"operation_id": operation_id},
            )
        return op

    def impl(self, operation_id: str) -> OperationFunc:
        self.require(operation_id)
        return self._impls[operation_id]

    def list_operations(self) -> List[Dict[str, Any]]:
        return [self._defs[k].to_dict() for k in sorted(self._defs.keys())]
