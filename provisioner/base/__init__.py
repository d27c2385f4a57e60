"""Abstract blueprints and core utilities.

The provisioner talks to its collaborators only through the blueprints
defined here. Import them to type-hint your own code or to plug in a
different provider, machine store or teardown.
"""

from .compute import NOT_CREATED, ComputeBlueprint, InstanceHandle
from .machine import MachineRecord
from .communicator import Communicator
from .teardown import TeardownRequest, TeardownRunner
from .cancellation import CancellationToken
from .supported_services import existing_cloud_providers


__all__ = [
    "NOT_CREATED",
    "ComputeBlueprint",
    "InstanceHandle",
    "MachineRecord",
    "Communicator",
    "TeardownRequest",
    "TeardownRunner",
    "CancellationToken",
    "existing_cloud_providers",
]
