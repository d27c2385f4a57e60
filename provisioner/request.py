"""Build the provider-facing launch request from a :class:`ResourceSpec`."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from provisioner.base.config import ResourceSpec


class ProvisioningRequest(BaseModel):
    """Launch payload handed to :meth:`ComputeBlueprint.submit`.

    Security groups are expressed either as VPC group IDs
    (``security_group_ids``) or as EC2-Classic group names (``groups``),
    never both.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    instance_type: str
    image_id: str
    availability_zone: str | None = None
    key_name: str | None = None
    ssh_port: int | None = None
    private_ip_address: str | None = None
    subnet_id: str | None = None
    tags: dict[str, str] | None = None
    security_group_ids: tuple[str, ...] | None = None
    groups: tuple[str, ...] | None = None

    @model_validator(mode="after")
    def check_security_group_shape(self) -> ProvisioningRequest:
        if self.security_group_ids is not None and self.groups is not None:
            raise ValueError("security_group_ids and groups are mutually exclusive")
        return self

    def payload(self) -> dict[str, Any]:
        """Return the request as a dict with unset fields omitted."""
        return self.model_dump(exclude_none=True)


def build_request(spec: ResourceSpec) -> ProvisioningRequest:
    """Map *spec* onto a :class:`ProvisioningRequest`.

    Non-empty security groups go to ``security_group_ids`` when a subnet is
    set and to ``groups`` otherwise. An empty set populates neither.
    """
    options: dict[str, Any] = {
        "availability_zone": spec.availability_zone,
        "instance_type": spec.instance_type,
        "image_id": spec.ami,
        "key_name": spec.keypair_name,
        "ssh_port": spec.ssh_port,
        "private_ip_address": spec.private_ip_address,
        "subnet_id": spec.subnet_id,
        "tags": dict(spec.tags) or None,
    }
    if spec.security_groups:
        key = "groups" if spec.subnet_id is None else "security_group_ids"
        options[key] = spec.security_groups
    return ProvisioningRequest(**options)
