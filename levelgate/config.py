from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from levelgate.contract_store import shipped_contracts
from levelgate.core.errors import ValidationError
from levelgate.core.levels import MemberLevel, parse_level


CONFIG_ENV = "LEVELGATE_CONFIG"


@dataclass(frozen=True)
class GateConfig:
    """
    Settings for wiring a gate: who holds which level, and where the trace goes.
    """

    run_id: str = "run_cli"
    trace_path: Path = Path("trace.jsonl")
    members: Dict[int, MemberLevel] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)


def default_config_path() -> Path:
    """
    Resolution order:
    - $LEVELGATE_CONFIG
    - $XDG_CONFIG_HOME/levelgate/gate.yml
    - ~/.config/levelgate/gate.yml
    """
    explicit = os.environ.get(CONFIG_ENV)
    if isinstance(explicit, str) and explicit.strip():
        return Path(explicit).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME")
    if isinstance(base, str) and base.strip():
        return Path(base).expanduser() / "levelgate" / "gate.yml"
    return Path("~/.config").expanduser() / "levelgate" / "gate.yml"


def parse_config(raw: Any) -> GateConfig:
    errors = shipped_contracts().validate("gate_config.schema.json", raw)
    if errors:
        raise ValidationError(code="config.invalid", message="Gate config validation failed", data={"errors": errors})

    members: Dict[int, MemberLevel] = {}
    for entry in raw.get("members", []):
        member_id = entry["member_id"]
        if member_id in members:
            raise ValidationError(
                code="config.duplicate_member",
                message=f"Duplicate member_id in config: {member_id}",
                data={"member_id": member_id},
            )
        members[member_id] = parse_level(entry["level"])

    return GateConfig(
        run_id=raw.get("run_id", "run_cli"),
        trace_path=Path(raw.get("trace_path", "trace.jsonl")).expanduser(),
        members=members,
        meta=dict(raw.get("meta", {})),
    )


def load_config(path: Path) -> GateConfig:
    if not path.exists():
        raise ValidationError(code="config.not_found", message=f"Config file not found: {path}", data={"path": str(path)})
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(code="config.invalid", message=f"Config is not valid YAML: {path}") from e
    return parse_config(raw)
