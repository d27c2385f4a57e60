"""Cloudjack provisioner — launch one EC2 instance safely.

Entry point for the library::

    from provisioner import Pipeline, RunInstance, ProvisionEnv

    Pipeline(RunInstance).run(env)
"""

from .base import (
    CancellationToken,
    ComputeBlueprint,
    Communicator,
    MachineRecord,
    TeardownRequest,
    TeardownRunner,
)
from .pipeline import Pipeline
from .request import ProvisioningRequest, build_request
from .run_instance import PollResult, ProvisionEnv, ProvisioningOutcome, RunInstance

__all__ = [
    "CancellationToken",
    "ComputeBlueprint",
    "Communicator",
    "MachineRecord",
    "TeardownRequest",
    "TeardownRunner",
    "Pipeline",
    "ProvisioningRequest",
    "build_request",
    "PollResult",
    "ProvisionEnv",
    "ProvisioningOutcome",
    "RunInstance",
]
