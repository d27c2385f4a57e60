"""Compute service factory.

Provides :func:`create_compute`, which validates the provider config and
returns a (cached) compute service for the requested cloud provider.
"""

from typing import Any

from provisioner.base import ComputeBlueprint, existing_cloud_providers
from provisioner.base.client_cache import ClientCache
from provisioner.base.config import validate_config
from provisioner.aws.factory import SERVICE_REGISTRY as AWS_SERVICES


# Nested factory registry: cloud_provider -> service registry
_FACTORY_REGISTRY: dict[str, dict[str, type]] = {
    "aws": AWS_SERVICES,
}


def create_compute(
    cloud_provider: existing_cloud_providers,
    config: dict[str, Any],
) -> ComputeBlueprint:
    """Create the compute service for *cloud_provider*.

    Services are cached per provider and validated config, so repeated
    calls share one SDK client.

    Raises:
        ValueError: If the cloud provider is not supported.
        pydantic.ValidationError: If the config is invalid.
    """
    if cloud_provider not in _FACTORY_REGISTRY:
        raise ValueError(f"Unsupported cloud provider: {cloud_provider}")

    service_class = _FACTORY_REGISTRY[cloud_provider]["compute"]
    config_obj = validate_config(cloud_provider, dict(config))
    return ClientCache().get_or_create(
        cloud_provider,
        "compute",
        config_obj.model_dump(),
        lambda: service_class(config_obj),
    )
