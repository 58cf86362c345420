from __future__ import annotations

from dataclasses import dataclass

from levelgate.core.levels import MemberLevel
from levelgate.core.resolver import NAMED_PARAMETERS, STRUCTURED_OBJECT
from levelgate.registry.operation_registry import required_permission


READ_MESSAGE = "Member {caller} accessed data {resource} with READ permission."
MAINTAIN_MESSAGE = "Member {caller} accessed data {resource} with MAINTAIN permission."
HOST_MESSAGE = "Member {caller} accessed data {resource} with HOST permission."


@dataclass(frozen=True)
class MemberAccessInfo:
    login_member_id: int
    access_number: int


class CustomObjectAccessService:
    """Data access that receives the caller and target as one object."""

    @required_permission(MemberLevel.READ, strategy=STRUCTURED_OBJECT)
    def read_infos(self, info: MemberAccessInfo) -> str:
        return READ_MESSAGE.format(caller=info.login_member_id, resource=info.access_number)

    @required_permission(MemberLevel.MAINTAIN, strategy=STRUCTURED_OBJECT)
    def maintain_infos(self, info: MemberAccessInfo) -> str:
        return MAINTAIN_MESSAGE.format(caller=info.login_member_id, resource=info.access_number)

    @required_permission(MemberLevel.HOST, strategy=STRUCTURED_OBJECT)
    def host_infos(self, info: MemberAccessInfo) -> str:
        return HOST_MESSAGE.format(caller=info.login_member_id, resource=info.access_number)


class ParametersAccessService:
    """Data access that receives the caller and target as separate ids."""

    @required_permission(
        MemberLevel.READ, strategy=NAMED_PARAMETERS, caller_param="login_member_id", resource_param="access_number"
    )
    def read_infos(self, login_member_id: int, access_number: int) -> str:
        return READ_MESSAGE.format(caller=login_member_id, resource=access_number)

    @required_permission(
        MemberLevel.MAINTAIN, strategy=NAMED_PARAMETERS, caller_param="login_member_id", resource_param="access_number"
    )
    def maintain_infos(self, login_member_id: int, access_number: int) -> str:
        return MAINTAIN_MESSAGE.format(caller=login_member_id, resource=access_number)

    @required_permission(
        MemberLevel.HOST, strategy=NAMED_PARAMETERS, caller_param="login_member_id", resource_param="access_number"
    )
    def host_infos(self, login_member_id: int, access_number: int) -> str:
        return HOST_MESSAGE.format(caller=login_member_id, resource=access_number)
