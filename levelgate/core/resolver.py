from __future__ import annotations

import inspect
import logging
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from .errors import AccessSubjectNotFound, MissingRequiredParameter, ValidationError
from .subject import AccessSubject


logger = logging.getLogger(__name__)

LOGIN_MEMBER_ID_PARAM = "loginMemberId"
ACCESS_NUMBER_PARAM = "accessNumber"

STRUCTURED_OBJECT = "structured_object"
NAMED_PARAMETERS = "named_parameters"

# Attribute pairs that make an argument equivalent to an AccessSubject.
SUBJECT_FIELD_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("caller_id", "resource_id"),
    ("login_member_id", "access_number"),
)

_UNION_TYPES: Tuple[Any, ...] = (typing.Union,) + ((types.UnionType,) if hasattr(types, "UnionType") else ())


@dataclass(frozen=True)
class Param:
    """Typed descriptor for one argument of a flat-parameter call."""

    name: str
    type: Any
    value: Any


@dataclass(frozen=True)
class CallArguments:
    """
    Arguments of one guarded call.

    `values` is what resolvers scan. `names`/`types` run parallel to `values` and are
    only needed by the named-parameter strategy. `args`/`kwargs` are passed through
    to the operation unchanged; when `args` is None the operation receives `values`.
    """

    values: Tuple[Any, ...] = ()
    names: Optional[Tuple[str, ...]] = None
    types: Optional[Tuple[Any, ...]] = None
    args: Optional[Tuple[Any, ...]] = None
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        n = len(self.values)
        if self.names is not None and len(self.names) != n:
            raise ValueError("names must run parallel to values.")
        if self.types is not None and len(self.types) != n:
            raise ValueError("types must run parallel to values.")

    @classmethod
    def of(cls, *values: Any) -> "CallArguments":
        return cls(values=tuple(values))

    @classmethod
    def from_params(cls, params: Sequence[Param]) -> "CallArguments":
        return cls(
            values=tuple(p.value for p in params),
            names=tuple(p.name for p in params),
            types=tuple(p.type for p in params),
        )

    @classmethod
    def unbound(cls, args: Sequence[Any], kwargs: Mapping[str, Any]) -> "CallArguments":
        """
        Call that does not fit the operation's signature: values only, no names or
        types, so each strategy fails with its own error.
        """
        return cls(
            values=tuple(args) + tuple(kwargs.values()),
            args=tuple(args),
            kwargs=dict(kwargs),
        )

    @classmethod
    def bind(cls, func: Callable[..., Any], args: Sequence[Any], kwargs: Mapping[str, Any]) -> "CallArguments":
        """
        Bind a Python call against `func`'s signature, recording declared types from
        its annotations. Defaults are applied so omitted parameters are visible;
        parameters with no value and no default are left out.
        """
        sig = inspect.signature(func)
        bound = sig.bind_partial(*args, **kwargs)
        bound.apply_defaults()
        hints = _type_hints(func)

        values: List[Any] = []
        names: List[str] = []
        declared: List[Any] = []
        for name, value in bound.arguments.items():
            param = sig.parameters[name]
            tp = hints.get(name, Any)
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                for item in value:
                    values.append(item)
                    names.append(name)
                    declared.append(tp)
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                for key, item in value.items():
                    values.append(item)
                    names.append(key)
                    declared.append(tp)
            else:
                values.append(value)
                names.append(name)
                declared.append(tp)

        return cls(
            values=tuple(values),
            names=tuple(names),
            types=tuple(declared),
            args=tuple(args),
            kwargs=dict(kwargs),
        )

    @classmethod
    def capture(cls, func: Callable[..., Any], args: Sequence[Any], kwargs: Mapping[str, Any]) -> "CallArguments":
        try:
            return cls.bind(func, args, kwargs)
        except TypeError:
            return cls.unbound(args, kwargs)

    def invoke(self, operation: Callable[..., Any]) -> Any:
        args = self.values if self.args is None else self.args
        return operation(*args, **self.kwargs)


def _type_hints(func: Callable[..., Any]) -> Dict[str, Any]:
    target = getattr(func, "__func__", func)
    try:
        return typing.get_type_hints(target)
    except Exception:  # noqa: BLE001
        # Unresolvable forward references: fall back to the raw annotations.
        sig = inspect.signature(func)
        return {
            name: p.annotation
            for name, p in sig.parameters.items()
            if p.annotation is not inspect.Parameter.empty
        }


def is_integral_type(tp: Any) -> bool:
    """
    True for int subclasses other than bool, including Optional[int].
    """
    if typing.get_origin(tp) in _UNION_TYPES:
        members = [a for a in typing.get_args(tp) if a is not type(None)]
        return len(members) == 1 and is_integral_type(members[0])
    return isinstance(tp, type) and issubclass(tp, int) and not issubclass(tp, bool)


class ArgumentResolver(Protocol):
    strategy: str

    def resolve(self, call: CallArguments) -> AccessSubject:
        ...


class StructuredObjectResolver:
    """
    Picks the first argument that is an AccessSubject or carries an equivalent field
    pair. Later candidates are ignored.
    """

    strategy = STRUCTURED_OBJECT

    def resolve(self, call: CallArguments) -> AccessSubject:
        for index, value in enumerate(call.values):
            if isinstance(value, AccessSubject):
                logger.debug("access subject found at args[%d]: %r", index, value)
                return value
            pair = _matching_field_pair(value)
            if pair is None:
                continue
            caller_id = getattr(value, pair[0])
            resource_id = getattr(value, pair[1])
            if caller_id is None or resource_id is None:
                raise AccessSubjectNotFound(
                    code="subject.not_found",
                    message="Access subject argument has null fields",
                    data={"index": index, "type": type(value).__name__, "fields": list(pair)},
                )
            subject = AccessSubject(caller_id=caller_id, resource_id=resource_id)
            logger.debug("access subject built from args[%d] (%s): %r", index, type(value).__name__, subject)
            return subject

        raise AccessSubjectNotFound(
            code="subject.not_found",
            message="No access subject among call arguments",
            data={"arg_count": len(call.values)},
        )


def _matching_field_pair(value: Any) -> Optional[Tuple[str, str]]:
    if value is None or isinstance(value, type):
        return None
    for pair in SUBJECT_FIELD_PAIRS:
        if all(hasattr(value, attr) for attr in pair):
            return pair
    return None


class NamedParameterResolver:
    """
    Resolves the subject from a flat parameter list by parameter name and declared
    integral type. The first matching occurrence of each name wins.
    """

    strategy = NAMED_PARAMETERS

    def __init__(self, caller_param: str = LOGIN_MEMBER_ID_PARAM, resource_param: str = ACCESS_NUMBER_PARAM):
        self.caller_param = caller_param
        self.resource_param = resource_param

    def __repr__(self) -> str:
        return f"NamedParameterResolver(caller_param={self.caller_param!r}, resource_param={self.resource_param!r})"

    def resolve(self, call: CallArguments) -> AccessSubject:
        required = [self.caller_param, self.resource_param]
        if call.names is None or call.types is None:
            raise MissingRequiredParameter(
                code="parameter.missing",
                message="Call carries no parameter names or types",
                data={"required": required},
            )

        for i, (name, tp, value) in enumerate(zip(call.names, call.types, call.values)):
            logger.debug("args[%d] %s: %r = %r", i, name, tp, value)

        found: Dict[str, Any] = {}
        for name, tp, value in zip(call.names, call.types, call.values):
            if name in required and name not in found and is_integral_type(tp):
                found[name] = value

        missing = [n for n in required if n not in found]
        if missing:
            raise MissingRequiredParameter(
                code="parameter.missing",
                message="Required parameter not found: {}".format(", ".join(missing)),
                data={"missing": missing},
            )
        null = [n for n in required if found[n] is None]
        if null:
            raise MissingRequiredParameter(
                code="parameter.missing",
                message="Required parameter is null: {}".format(", ".join(null)),
                data={"missing": null},
            )

        return AccessSubject(caller_id=found[self.caller_param], resource_id=found[self.resource_param])


def build_resolver(
    strategy: str,
    *,
    caller_param: Optional[str] = None,
    resource_param: Optional[str] = None,
) -> ArgumentResolver:
    if strategy == STRUCTURED_OBJECT:
        return StructuredObjectResolver()
    if strategy == NAMED_PARAMETERS:
        return NamedParameterResolver(
            caller_param=caller_param or LOGIN_MEMBER_ID_PARAM,
            resource_param=resource_param or ACCESS_NUMBER_PARAM,
        )
    raise ValidationError(
        code="strategy.unknown",
        message=f"Unknown argument resolution strategy: {strategy}",
        data={"allowed": [STRUCTURED_OBJECT, NAMED_PARAMETERS]},
    )
