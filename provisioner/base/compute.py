"""Compute (instance) service blueprint."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from provisioner.request import ProvisioningRequest

# Lifecycle state reported for instances that do not exist (anymore).
NOT_CREATED = "not_created"


class InstanceHandle(ABC):
    """Live view of a submitted instance."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Provider-assigned instance ID."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Refresh the instance and report whether it has finished booting."""

    @abstractmethod
    def wait_for_ready(self, timeout: float) -> None:
        """Block until :meth:`is_ready` holds.

        Raises:
            ReadinessTimeoutError: If the instance is still not ready after
                *timeout* seconds.
        """


class ComputeBlueprint(ABC):
    """Abstract interface for launching and managing a single instance."""

    @abstractmethod
    def submit(self, request: ProvisioningRequest) -> InstanceHandle:
        """Launch an instance described by *request*.

        Raises:
            SubnetNotFoundError: If the request names a subnet that does not exist.
            ProvisioningFailedError: On any other provider rejection.
        """

    @abstractmethod
    def attach_volume(self, instance_id: str, volume_id: str, device_name: str) -> None:
        """Attach an existing volume to the instance.

        Raises:
            StorageAttachError: If the provider refuses the attachment.
        """

    @abstractmethod
    def get_state(self, instance_id: str | None) -> str:
        """Return the instance's lifecycle state.

        Returns :data:`NOT_CREATED` when *instance_id* is empty, unknown to
        the provider, or already terminated.
        """

    @abstractmethod
    def terminate_instance(self, instance_id: str) -> None:
        """Terminate (destroy) an instance.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
            TeardownError: If the provider refuses the request.
        """
