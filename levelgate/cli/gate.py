from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Dict

from levelgate.bootstrap_operations import build_gate, build_operation_registry
from levelgate.config import GateConfig, default_config_path, load_config
from levelgate.contract_store import shipped_contracts
from levelgate.core.errors import GateError
from levelgate.core.resolver import NAMED_PARAMETERS
from levelgate.services import MemberAccessInfo
from levelgate.trace.replay import Replay


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    - Always includes code/message (via __str__) when it's a GateError
    - Includes structured `data` payload when present
    """
    if isinstance(e, GateError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2, default=str)
    return str(e)


def _load_gate_config(args: argparse.Namespace) -> GateConfig:
    if args.config:
        config = load_config(Path(args.config))
    else:
        path = default_config_path()
        config = load_config(path) if path.exists() else GateConfig()

    overrides: Dict[str, Any] = {}
    if args.trace:
        overrides["trace_path"] = Path(args.trace)
    if args.run_id:
        overrides["run_id"] = args.run_id
    return dataclasses.replace(config, **overrides) if overrides else config


def cmd_list_operations(args: argparse.Namespace) -> int:
    ops = build_operation_registry().list_operations()
    if args.json:
        print(json.dumps(ops, ensure_ascii=False, indent=2))
    else:
        for op in ops:
            print("{operation_id} [{required_level}] - {title}".format(**op))
    return 0


def cmd_invoke(args: argparse.Namespace) -> int:
    config = _load_gate_config(args)
    registry = build_operation_registry()
    gate = build_gate(config, registry=registry)

    try:
        op = registry.require(args.operation_id)
        if op.strategy == NAMED_PARAMETERS:
            kwargs = {op.resolver.caller_param: args.caller, op.resolver.resource_param: args.resource}
            result = gate.invoke(args.operation_id, **kwargs)
        else:
            result = gate.invoke(args.operation_id, MemberAccessInfo(login_member_id=args.caller, access_number=args.resource))
    except GateError as e:
        print(_format_cli_error(e))
        return 2

    print(json.dumps({"operation_id": args.operation_id, "result": result}, ensure_ascii=False))
    return 0


def cmd_check_contracts(_args: argparse.Namespace) -> int:
    store = shipped_contracts()
    errors = store.check_schemas()
    if errors:
        for name, msg in errors:
            print(f"{name}: {msg}")
        return 1
    print("OK: {} schemas".format(len(store.list_schema_names())))
    return 0


def cmd_show_trace(args: argparse.Namespace) -> int:
    events = list(Replay(Path(args.trace)).iter_events())

    if args.event_type:
        events = [e for e in events if e.get("event_type") == args.event_type]

    if args.tail is not None and args.tail >= 0:
        events = events[-args.tail :] if args.tail else []

    for e in events:
        if args.pretty:
            print(json.dumps(e, ensure_ascii=False, indent=2))
        else:
            print(json.dumps(e, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="levelgate", description="Level-based permission gate")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_list = sub.add_parser("list-operations", help="List registered guarded operations")
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=cmd_list_operations)

    p_invoke = sub.add_parser("invoke", help="Invoke a guarded operation through the gate")
    p_invoke.add_argument("operation_id", help="Registered operation id (e.g. objects.read)")
    p_invoke.add_argument("--caller", type=int, required=True, help="Calling member id")
    p_invoke.add_argument("--resource", type=int, required=True, help="Accessed data number")
    p_invoke.add_argument("--config", help="Gate config YAML (default: $LEVELGATE_CONFIG or XDG config)")
    p_invoke.add_argument("--trace", help="Trace output path (jsonl), overrides config")
    p_invoke.add_argument("--run-id", help="Run ID for trace correlation, overrides config")
    p_invoke.set_defaults(func=cmd_invoke)

    p_check = sub.add_parser("check-contracts", help="Validate shipped JSON schemas")
    p_check.set_defaults(func=cmd_check_contracts)

    p_show = sub.add_parser("show-trace", help="Show decision records from a JSONL trace")
    p_show.add_argument("--trace", required=True, help="Trace path (jsonl)")
    p_show.add_argument("--event-type", help="Filter by event_type")
    p_show.add_argument("--tail", type=int, help="Show only last N events")
    p_show.add_argument("--pretty", action="store_true", help="Pretty-print each event as JSON")
    p_show.set_defaults(func=cmd_show_trace)

    ns = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(ns.log_level).upper(), logging.WARNING))
    try:
        return int(ns.func(ns))
    except Exception as e:  # noqa: BLE001
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
