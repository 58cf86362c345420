from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..core.levels import MemberLevel
from ..core.subject import AccessSubject
from .trace_store_jsonl import TraceStoreJSONL


class TraceEmitter:
    def __init__(self, store: TraceStoreJSONL, run_id: str):
        self._store = store
        self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    def emit(
        self,
        event_type: str,
        *,
        operation_id: str | None = None,
        required_level: MemberLevel | None = None,
        subject: AccessSubject | None = None,
        decision: str | None = None,
        reason_codes: list[str] | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        event: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self._run_id,
            "event_type": event_type,
        }
        if operation_id is not None:
            event["operation_id"] = operation_id
        if required_level is not None:
            event["required_level"] = required_level.name
        if subject is not None:
            event["subject"] = subject.to_dict()
        if decision is not None:
            event["decision"] = decision
        if reason_codes is not None:
            event["reason_codes"] = list(reason_codes)
        if message is not None:
            event["message"] = message
        if data is not None:
            event["data"] = data

        self._store.append(event)

    def emit_decision(
        self,
        *,
        operation_id: str,
        required_level: MemberLevel,
        subject: AccessSubject,
        decision: str,
        reason_codes: list[str],
        message: str | None = None,
    ) -> None:
        self.emit(
            "decision",
            operation_id=operation_id,
            required_level=required_level,
            subject=subject,
            decision=decision,
            reason_codes=reason_codes,
            message=message,
        )
