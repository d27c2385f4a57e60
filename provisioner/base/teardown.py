"""Teardown (destroy) blueprint."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TeardownRequest:
    """Instruction to destroy one instance.

    Deliberately carries no cancellation token: a teardown started
    because provisioning was interrupted must still run to completion.
    """

    instance_id: str
    force_confirm_destroy: bool = True
    config_validate: bool = False


class TeardownRunner(ABC):
    """Destroys instances on behalf of the provisioner."""

    @abstractmethod
    def run_destroy(self, request: TeardownRequest) -> None:
        """Destroy ``request.instance_id``.

        Must tolerate an instance that is already gone.
        """
