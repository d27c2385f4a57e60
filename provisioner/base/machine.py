"""Durable machine record blueprint."""

from abc import ABC, abstractmethod


class MachineRecord(ABC):
    """Where the ID of the provisioned instance is remembered.

    The ID is written the moment the provider returns it, so a process
    that dies mid-provisioning still leaves enough behind for cleanup.
    """

    @property
    @abstractmethod
    def id(self) -> str | None:
        """ID of the instance backing this machine, if any."""

    @id.setter
    @abstractmethod
    def id(self, value: str | None) -> None:
        """Persist *value*. Must be durable before returning; ``None`` clears it."""
