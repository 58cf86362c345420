from __future__ import annotations

from enum import IntEnum
from typing import Any

from .errors import ValidationError


class MemberLevel(IntEnum):
    """
    Membership levels, lowest first.

    The order is total and fixed here; policy code compares levels and nothing else.
    """

    READ = 1
    MAINTAIN = 2
    HOST = 3


def compare(a: MemberLevel, b: MemberLevel) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def parse_level(value: Any) -> MemberLevel:
    """
    Accepts a MemberLevel, a level name (case-insensitive) or a rank.
    """
    if isinstance(value, MemberLevel):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return MemberLevel[value.strip().upper()]
        except KeyError:
            pass
    elif isinstance(value, int) and not isinstance(value, bool):
        try:
            return MemberLevel(value)
        except ValueError:
            pass
    raise ValidationError(
        code="level.invalid",
        message=f"Unknown member level: {value!r}",
        data={"allowed": [lv.name for lv in MemberLevel]},
    )
