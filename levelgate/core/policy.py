from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .errors import AccessDenied
from .levels import MemberLevel
from .subject import AccessSubject


# Reports a caller's level; None means the caller is unknown.
LevelLookup = Callable[[Any], Optional[MemberLevel]]


@dataclass(frozen=True)
class PolicyResult:
    decision: str  # allow|deny
    reason_codes: List[str]
    summary: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.decision == "allow"


class PermissionPolicy:
    """
    Compares the caller's level against an operation's required level.

    Invariants:
    - allow iff lookup(caller_id) >= required.
    - deny when the caller's level cannot be established.
    - no side effects beyond calling the injected lookup.
    """

    def __init__(self, level_lookup: LevelLookup):
        self._lookup = level_lookup

    def evaluate(self, required: MemberLevel, subject: AccessSubject) -> PolicyResult:
        try:
            level = self._lookup(subject.caller_id)
        except Exception as e:  # noqa: BLE001
            return PolicyResult(
                decision="deny",
                reason_codes=["caller.lookup_failed"],
                summary=f"Level lookup failed for caller {subject.caller_id}: {e!r}",
            )

        if level is None:
            return PolicyResult(
                decision="deny",
                reason_codes=["caller.unknown"],
                summary=f"No member level for caller {subject.caller_id}",
            )

        if not isinstance(level, MemberLevel):
            return PolicyResult(
                decision="deny",
                reason_codes=["caller.level_invalid"],
                summary=f"Level lookup returned a non-level value for caller {subject.caller_id}",
            )

        if level < required:
            return PolicyResult(
                decision="deny",
                reason_codes=["level.insufficient"],
                summary=f"Caller {subject.caller_id} has {level.name}, {required.name} required",
            )

        return PolicyResult(
            decision="allow",
            reason_codes=["level.ok"],
            summary=f"Caller {subject.caller_id} has {level.name}, {required.name} required",
        )

    def require_allow(self, result: PolicyResult) -> None:
        if not result.allowed:
            raise AccessDenied(
                code="access.denied",
                message=result.summary or "Denied by policy",
                data={"reasons": result.reason_codes},
            )
