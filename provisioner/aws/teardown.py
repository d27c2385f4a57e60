"""Default teardown collaborator: terminate the EC2 instance."""

from __future__ import annotations

import logging

from provisioner.base.compute import NOT_CREATED, ComputeBlueprint
from provisioner.base.exceptions import InstanceNotFoundError
from provisioner.base.logger import pv_logger
from provisioner.base.machine import MachineRecord
from provisioner.base.teardown import TeardownRequest, TeardownRunner

logger = logging.getLogger("provisioner")


class TerminateInstance(TeardownRunner):
    """Terminates an instance and forgets it on the machine record.

    Safe to run more than once: an instance EC2 already reports as gone is
    treated as destroyed.
    """

    def __init__(self, compute: ComputeBlueprint, machine: MachineRecord | None = None) -> None:
        self.compute = compute
        self.machine = machine

    def run_destroy(self, request: TeardownRequest) -> None:
        instance_id = request.instance_id
        logger.debug(
            "Destroying %s (force_confirm_destroy=%s, config_validate=%s)",
            instance_id,
            request.force_confirm_destroy,
            request.config_validate,
        )
        if self.compute.get_state(instance_id) == NOT_CREATED:
            pv_logger.info("Instance is already gone.", instance_id=instance_id, phase="destroy")
        else:
            pv_logger.info("Terminating the instance...", instance_id=instance_id, phase="destroy")
            try:
                self.compute.terminate_instance(instance_id)
            except InstanceNotFoundError:
                logger.info("Instance %s vanished before termination", instance_id)
        if self.machine is not None and self.machine.id == instance_id:
            self.machine.id = None
