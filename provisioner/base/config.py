"""
Pydantic configuration models.

Validates provider credentials and the per-region instance settings up
front instead of passing bad values through to the EC2 API.
"""

from __future__ import annotations

import os
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AWSConfig(BaseModel):
    """Configuration for the AWS client.

    Credentials are resolved in order:
    1. Explicit values passed in the config dict.
    2. Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_DEFAULT_REGION).
    3. If neither is set, fields are left as None so boto3 can fall back to its
       own credential chain (instance metadata, ~/.aws/credentials, etc.).
    """

    model_config = ConfigDict(extra="forbid")

    aws_access_key_id: str | None = Field(default=None, description="AWS access key ID")
    aws_secret_access_key: str | None = Field(default=None, description="AWS secret access key")
    region_name: str | None = Field(default=None, description="AWS region (e.g. 'us-east-1')")

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing credentials."""
        env_map = {
            "aws_access_key_id": "AWS_ACCESS_KEY_ID",
            "aws_secret_access_key": "AWS_SECRET_ACCESS_KEY",
            "region_name": "AWS_DEFAULT_REGION",
        }
        for field, env_var in env_map.items():
            if not values.get(field):
                values[field] = os.environ.get(env_var)
        return values


class EBSVolume(BaseModel):
    """An existing EBS volume to attach once the instance is reachable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    volume_id: str = Field(description="EBS volume ID (e.g. 'vol-0abc')")
    device_name: str = Field(description="Device name on the instance (e.g. '/dev/sdf')")


class ResourceSpec(BaseModel):
    """Desired shape of the single instance to launch."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    region: str = Field(description="AWS region to launch in")
    ami: str = Field(description="Image ID to boot")
    instance_type: str = Field(default="m3.medium", description="EC2 instance type")
    availability_zone: str | None = Field(default=None, description="Availability zone")
    ssh_port: int | None = Field(default=None, ge=1, le=65535, description="SSH port")
    keypair_name: str | None = Field(default=None, description="EC2 key pair name")
    private_ip_address: str | None = Field(default=None, description="Fixed private IP")
    security_groups: tuple[str, ...] = Field(
        default=(), description="Security group names, or IDs when a subnet is set"
    )
    subnet_id: str | None = Field(default=None, description="VPC subnet ID")
    tags: dict[str, str] = Field(default_factory=dict, description="Instance tags")
    ebs_volume: EBSVolume | None = Field(default=None, description="Volume to attach")

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: Any) -> Any:
        """Fall back to AWS_DEFAULT_REGION when no region is given."""
        if isinstance(values, dict) and not values.get("region"):
            region = os.environ.get("AWS_DEFAULT_REGION")
            if region:
                values = {**values, "region": region}
        return values

    @field_validator("security_groups", mode="before")
    @classmethod
    def dedupe_security_groups(cls, value: Any) -> Any:
        """Keep the first occurrence of each group, preserving order."""
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(dict.fromkeys(value))


class ProviderConfig(BaseModel):
    """Provider-level settings with per-region overrides.

    ``defaults`` holds :class:`ResourceSpec` fields shared by every region;
    ``regions`` maps a region name to the fields that differ there.
    """

    model_config = ConfigDict(extra="forbid")

    region: str | None = Field(default=None, description="Region used when none is requested")
    defaults: dict[str, Any] = Field(default_factory=dict)
    regions: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("region"):
            values = {**values, "region": os.environ.get("AWS_DEFAULT_REGION")}
        return values

    def get_region_config(self, region: str | None = None) -> ResourceSpec:
        """Merge defaults with the overrides for *region*.

        Tags are merged key by key; every other field is replaced.

        Raises:
            ValueError: If no region is given and none is configured.
            pydantic.ValidationError: If the merged settings are invalid.
        """
        region = region or self.region
        if not region:
            raise ValueError(
                "A region is required. Set it explicitly or via AWS_DEFAULT_REGION."
            )
        overrides = self.regions.get(region, {})
        merged = {**self.defaults, **overrides, "region": region}
        merged["tags"] = {**self.defaults.get("tags", {}), **overrides.get("tags", {})}
        return ResourceSpec(**merged)


# Map provider names to their config models for dynamic validation
CONFIG_REGISTRY: dict[str, type[BaseModel]] = {
    "aws": AWSConfig,
}


def validate_config(cloud_provider: str, config: dict) -> BaseModel:
    """Validate and return a typed config model for the given provider.

    Args:
        cloud_provider: The cloud provider name (e.g. 'aws').
        config: Raw configuration dictionary.

    Returns:
        A validated Pydantic config model.

    Raises:
        ValueError: If the provider is unknown.
        pydantic.ValidationError: If the config is invalid.
    """
    model = CONFIG_REGISTRY.get(cloud_provider)
    if model is None:
        raise ValueError(f"No config model registered for provider: {cloud_provider}")
    return model(**config)


__all__ = [
    "AWSConfig",
    "EBSVolume",
    "ResourceSpec",
    "ProviderConfig",
    "CONFIG_REGISTRY",
    "validate_config",
]
