from .errors import (
    AccessDenied,
    AccessSubjectNotFound,
    GateError,
    MissingRequiredParameter,
    UnknownOperation,
    ValidationError,
)
from .levels import MemberLevel, compare, parse_level
from .subject import AccessSubject
from .resolver import (
    ArgumentResolver,
    CallArguments,
    NamedParameterResolver,
    Param,
    StructuredObjectResolver,
    build_resolver,
)
from .policy import LevelLookup, PermissionPolicy, PolicyResult
from .permission_gate import PermissionGate

__all__ = [
  "AccessDenied",
  "AccessSubjectNotFound",
  "GateError",
  "MissingRequiredParameter",
  "UnknownOperation",
  "ValidationError",
  "MemberLevel",
  "compare",
  "parse_level",
  "AccessSubject",
  "ArgumentResolver",
  "CallArguments",
  "NamedParameterResolver",
  "Param",
  "StructuredObjectResolver",
  "build_resolver",
  "LevelLookup",
  "PermissionPolicy",
  "PolicyResult",
  "PermissionGate",
]
