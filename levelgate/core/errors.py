from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GateError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(GateError):
    pass


class AccessSubjectNotFound(GateError):
    pass


class MissingRequiredParameter(GateError):
    pass


class AccessDenied(GateError):
    pass


class UnknownOperation(GateError):
    pass
