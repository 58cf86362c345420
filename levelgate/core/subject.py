from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class AccessSubject:
    """
    The (caller, resource) pair a single guarded call is evaluated against.

    Built once per call and dropped when the call completes.
    """

    caller_id: Any
    resource_id: Any

    def __post_init__(self) -> None:
        if self.caller_id is None:
            raise ValueError("caller_id must not be None.")
        if self.resource_id is None:
            raise ValueError("resource_id must not be None.")

    def to_dict(self) -> Dict[str, Any]:
        return {"caller_id": self.caller_id, "resource_id": self.resource_id}
