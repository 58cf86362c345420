from __future__ import annotations

import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Tuple

from levelgate.core.levels import MemberLevel, parse_level

if TYPE_CHECKING:
    from levelgate.config import GateConfig


class MembershipTable:
    """
    In-memory caller -> level table usable as a LevelLookup.

    Readers see an immutable snapshot and never lock; writers build a new snapshot
    and swap it in under a lock. Nothing is persisted.
    """

    def __init__(self, levels: Optional[Mapping[Any, MemberLevel | str]] = None):
        self._lock = threading.Lock()
        initial = {k: parse_level(v) for k, v in (levels or {}).items()}
        self._snapshot: Mapping[Any, MemberLevel] = MappingProxyType(initial)

    @classmethod
    def from_members(cls, members: Iterable[Tuple[Any, MemberLevel | str]]) -> "MembershipTable":
        return cls(dict(members))

    @classmethod
    def from_config(cls, config: "GateConfig") -> "MembershipTable":
        return cls(config.members)

    def lookup(self, caller_id: Any) -> Optional[MemberLevel]:
        return self._snapshot.get(caller_id)

    __call__ = lookup

    def set_level(self, caller_id: Any, level: MemberLevel | str) -> None:
        parsed = parse_level(level)
        with self._lock:
            updated: Dict[Any, MemberLevel] = dict(self._snapshot)
            updated[caller_id] = parsed
            self._snapshot = MappingProxyType(updated)

    def snapshot(self) -> Mapping[Any, MemberLevel]:
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)
