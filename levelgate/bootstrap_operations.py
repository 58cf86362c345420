from __future__ import annotations

from typing import Optional

from levelgate.config import GateConfig
from levelgate.core.permission_gate import PermissionGate
from levelgate.core.policy import LevelLookup, PermissionPolicy
from levelgate.membership import MembershipTable
from levelgate.registry.operation_registry import OperationRegistry
from levelgate.services import CustomObjectAccessService, ParametersAccessService
from levelgate.trace.trace_emitter import TraceEmitter
from levelgate.trace.trace_store_jsonl import TraceStoreJSONL


def build_operation_registry() -> OperationRegistry:
    """
    Register the built-in data access operations shipped with the library.
    """
    reg = OperationRegistry()
    objects = CustomObjectAccessService()
    params = ParametersAccessService()

    reg.register_function(objects.read_infos, operation_id="objects.read", title="Read data (access info object)")
    reg.register_function(objects.maintain_infos, operation_id="objects.maintain", title="Maintain data (access info object)")
    reg.register_function(objects.host_infos, operation_id="objects.host", title="Host data (access info object)")
    reg.register_function(params.read_infos, operation_id="parameters.read", title="Read data (id parameters)")
    reg.register_function(params.maintain_infos, operation_id="parameters.maintain", title="Maintain data (id parameters)")
    reg.register_function(params.host_infos, operation_id="parameters.host", title="Host data (id parameters)")

    return reg


def build_gate(
    config: GateConfig,
    *,
    registry: Optional[OperationRegistry] = None,
    level_lookup: Optional[LevelLookup] = None,
    trace: bool = True,
) -> PermissionGate:
    """
    Wire a gate from config: membership table as the level lookup, JSONL trace sink.
    """
    lookup = level_lookup if level_lookup is not None else MembershipTable.from_config(config)
    emitter = TraceEmitter(store=TraceStoreJSONL(config.trace_path), run_id=config.run_id) if trace else None
    return PermissionGate(
        PermissionPolicy(lookup),
        registry=registry if registry is not None else build_operation_registry(),
        trace=emitter,
    )
