"""
Launch a single instance and wait until it can be used.

:class:`RunInstance` is one action in a provisioning pipeline. It submits
the launch request, records the instance ID on the machine record, waits
for EC2 to report the instance running, waits for it to accept
connections, attaches the optional EBS volume and hands control to the
next action.

Cancellation is cooperative. The pipeline sets ``env.cancel`` (usually
from a SIGINT handler); waiting stops at the next poll and the instance is
terminated instead of being handed on. Unhandled failures are cleaned up
by :meth:`RunInstance.recover`, which the pipeline calls on its way out.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from provisioner.base.cancellation import CancellationToken
from provisioner.base.communicator import Communicator
from provisioner.base.compute import NOT_CREATED, ComputeBlueprint, InstanceHandle
from provisioner.base.config import ResourceSpec
from provisioner.base.exceptions import PipelineError, ReadinessTimeoutError
from provisioner.base.logger import pv_logger
from provisioner.base.machine import MachineRecord
from provisioner.base.retry import retryable
from provisioner.base.teardown import TeardownRequest, TeardownRunner
from provisioner.base.timer import timed
from provisioner.request import build_request

logger = logging.getLogger("provisioner")

READY_TIME = "instance_ready_time"
SSH_TIME = "instance_ssh_time"


class ProvisioningOutcome(enum.Enum):
    READY = "ready"
    INTERRUPTED_BEFORE_READY = "interrupted_before_ready"
    INTERRUPTED_DURING_SSH_WAIT = "interrupted_during_ssh_wait"
    FAILED = "failed"


class PollResult(enum.Enum):
    """Result of a single readiness or connectivity check."""

    READY = "ready"
    NOT_YET_READY = "not_yet_ready"
    CANCELLED = "cancelled"


@dataclass
class ProvisionEnv:
    """State shared by the actions of one provisioning run."""

    spec: ResourceSpec
    compute: ComputeBlueprint
    machine: MachineRecord
    communicator: Communicator
    teardown: TeardownRunner
    cancel: CancellationToken = field(default_factory=CancellationToken)
    metrics: dict[str, float] | None = None
    outcome: ProvisioningOutcome | None = None
    provider: str = "aws"

    def context(self, **kwargs: Any) -> dict[str, Any]:
        """Logging context for this run."""
        return {"provider": self.provider, "region": self.spec.region, **kwargs}


class RunInstance:
    """Pipeline action that launches the configured instance.

    Args:
        app: Next action in the pipeline; called with the env once the
            instance is ready.
        ready_tries: Readiness checks before giving up.
        ready_timeout: Seconds each readiness check waits on EC2.
        retry_delay: Pause between readiness checks.
        poll_interval: Pause between connectivity checks.
    """

    def __init__(
        self,
        app: Callable[[ProvisionEnv], Any],
        *,
        ready_tries: int = 30,
        ready_timeout: float = 2.0,
        retry_delay: float = 1.0,
        poll_interval: float = 2.0,
    ) -> None:
        self.app = app
        self.ready_tries = ready_tries
        self.ready_timeout = ready_timeout
        self.retry_delay = retry_delay
        self.poll_interval = poll_interval

    def call(self, env: ProvisionEnv) -> ProvisioningOutcome:
        if env.metrics is None:
            env.metrics = {}

        try:
            outcome = self._provision(env)
        except Exception:
            env.outcome = ProvisioningOutcome.FAILED
            raise

        env.outcome = outcome
        if outcome is not ProvisioningOutcome.READY:
            pv_logger.warning(
                "Provisioning was interrupted; terminating the instance.",
                **env.context(instance_id=env.machine.id, phase="interrupted"),
            )
            self.terminate(env)
            return outcome

        self.app(env)
        return outcome

    def recover(self, env: ProvisionEnv, error: BaseException) -> None:
        """Terminate the instance after an unhandled failure.

        Errors the pipeline reports itself are left alone, as are instances
        that EC2 says no longer exist.
        """
        if isinstance(error, PipelineError):
            return
        if env.compute.get_state(env.machine.id) != NOT_CREATED:
            self.terminate(env)

    def terminate(self, env: ProvisionEnv) -> None:
        """Destroy the instance on the machine record, ignoring cancellation."""
        instance_id = env.machine.id
        if not instance_id:
            logger.debug("No instance recorded, nothing to terminate")
            return
        env.teardown.run_destroy(TeardownRequest(instance_id=instance_id))

    # --- phases ---

    def _provision(self, env: ProvisionEnv) -> ProvisioningOutcome:
        spec = env.spec
        self._announce(env)

        handle = env.compute.submit(build_request(spec))
        # Saved before any waiting so an interrupted run can still be cleaned up.
        env.machine.id = handle.id
        ctx = env.context(instance_id=handle.id)

        pv_logger.info('Waiting for instance to become "ready"...', phase="wait_ready", **ctx)
        env.metrics[READY_TIME], _ = timed(lambda: self._wait_ready(env, handle))
        pv_logger.metric(READY_TIME, env.metrics[READY_TIME], **ctx)
        logger.info("Time to instance ready: %s", env.metrics[READY_TIME])
        if env.cancel.cancelled:
            return ProvisioningOutcome.INTERRUPTED_BEFORE_READY

        pv_logger.info("Waiting for SSH to become available...", phase="wait_ssh", **ctx)
        env.metrics[SSH_TIME], _ = timed(lambda: self._wait_connectivity(env))
        pv_logger.metric(SSH_TIME, env.metrics[SSH_TIME], **ctx)
        logger.info("Time for SSH ready: %s", env.metrics[SSH_TIME])
        if env.cancel.cancelled:
            return ProvisioningOutcome.INTERRUPTED_DURING_SSH_WAIT

        if spec.ebs_volume is not None:
            volume = spec.ebs_volume
            pv_logger.info(
                f"Attaching EBS volume {volume.volume_id} to instance as {volume.device_name}...",
                phase="attach_volume",
                **ctx,
            )
            env.compute.attach_volume(handle.id, volume.volume_id, volume.device_name)
            if env.cancel.cancelled:
                return ProvisioningOutcome.INTERRUPTED_DURING_SSH_WAIT

        pv_logger.info("Machine is booted and ready for use!", phase="ready", **ctx)
        return ProvisioningOutcome.READY

    def _announce(self, env: ProvisionEnv) -> None:
        spec = env.spec
        ctx = env.context(phase="launch")
        if not spec.keypair_name:
            pv_logger.warning(
                "Launching an instance with no keypair specified. Unless you have "
                "baked a way in to the image, SSH access will not be possible.",
                **ctx,
            )
        if spec.subnet_id:
            pv_logger.warning(
                "Launching into a VPC subnet. Make sure the subnet routes to this "
                "host and its security groups allow SSH, or the wait for SSH will "
                "not finish.",
                **ctx,
            )

        lines = [
            "Launching an instance with the following settings...",
            f" -- Type: {spec.instance_type}",
            f" -- AMI: {spec.ami}",
            f" -- Region: {spec.region}",
        ]
        if spec.availability_zone:
            lines.append(f" -- Availability Zone: {spec.availability_zone}")
        if spec.ssh_port:
            lines.append(f" -- SSH Port: {spec.ssh_port}")
        if spec.keypair_name:
            lines.append(f" -- Keypair: {spec.keypair_name}")
        if spec.subnet_id:
            lines.append(f" -- Subnet ID: {spec.subnet_id}")
        if spec.private_ip_address:
            lines.append(f" -- Private IP: {spec.private_ip_address}")
        if spec.security_groups:
            lines.append(f" -- Security Groups: {list(spec.security_groups)}")
        for line in lines:
            pv_logger.info(line, **ctx)

    def _wait_ready(self, env: ProvisionEnv, handle: InstanceHandle) -> PollResult:
        def attempt() -> PollResult:
            if env.cancel.cancelled:
                return PollResult.CANCELLED
            handle.wait_for_ready(self.ready_timeout)
            return PollResult.READY

        return retryable(
            attempt,
            tries=self.ready_tries,
            on=ReadinessTimeoutError,
            delay=self.retry_delay,
            sleep=env.cancel.wait,
        )

    def _poll_connectivity(self, env: ProvisionEnv) -> PollResult:
        if env.cancel.cancelled:
            return PollResult.CANCELLED
        if env.communicator.ready():
            return PollResult.READY
        return PollResult.NOT_YET_READY

    def _wait_connectivity(self, env: ProvisionEnv) -> PollResult:
        # No deadline: only success or cancellation ends this loop.
        while True:
            result = self._poll_connectivity(env)
            if result is not PollResult.NOT_YET_READY:
                return result
            env.cancel.wait(self.poll_interval)
