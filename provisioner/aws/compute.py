"""AWS EC2 implementation of the Compute blueprint."""

from __future__ import annotations

import time
from typing import Any, NoReturn

import boto3
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from provisioner.base.compute import NOT_CREATED, ComputeBlueprint, InstanceHandle
from provisioner.base.config import AWSConfig
from provisioner.base.exceptions import (
    InstanceNotFoundError,
    ProvisionError,
    ProvisioningFailedError,
    ReadinessTimeoutError,
    StorageAttachError,
    SubnetNotFoundError,
    TeardownError,
)
from provisioner.base.retry import retry
from provisioner.request import ProvisioningRequest

_ERROR_MAP: dict[str, type[ProvisionError]] = {
    "InvalidInstanceID.NotFound": InstanceNotFoundError,
    "InvalidInstanceID.Malformed": InstanceNotFoundError,
}

# EC2 reports these for instances that are gone or on their way out.
_GONE_STATES = frozenset({"shutting-down", "terminated"})


def _code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


def _message(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Message", str(e))


def _handle(e: ClientError, msg: str, default: type[ProvisionError] = ProvisionError) -> NoReturn:
    exc = _ERROR_MAP.get(_code(e))
    raise (exc or default)(f"{msg}: {_message(e)}") from e


def _run_instances_params(request: ProvisioningRequest) -> dict[str, Any]:
    """Translate a provisioning request into ``run_instances`` keyword args.

    ``ssh_port`` has no EC2 counterpart and is consumed by the communicator.
    """
    params: dict[str, Any] = {
        "ImageId": request.image_id,
        "InstanceType": request.instance_type,
        "MinCount": 1,
        "MaxCount": 1,
    }
    if request.availability_zone:
        params["Placement"] = {"AvailabilityZone": request.availability_zone}
    if request.key_name:
        params["KeyName"] = request.key_name
    if request.private_ip_address:
        params["PrivateIpAddress"] = request.private_ip_address
    if request.subnet_id:
        params["SubnetId"] = request.subnet_id
    if request.security_group_ids:
        params["SecurityGroupIds"] = list(request.security_group_ids)
    if request.groups:
        params["SecurityGroups"] = list(request.groups)
    if request.tags:
        params["TagSpecifications"] = [
            {
                "ResourceType": "instance",
                "Tags": [{"Key": k, "Value": v} for k, v in request.tags.items()],
            }
        ]
    return params


class Instance(InstanceHandle):
    """Handle on a launched EC2 instance.

    Attributes:
        client: boto3 EC2 client shared with the owning :class:`Compute`.
        poll_interval: Seconds between state refreshes in :meth:`wait_for_ready`.
        state: Last observed EC2 state name, ``None`` before the first refresh.
    """

    def __init__(self, client: Any, instance_id: str, *, poll_interval: float = 1.0) -> None:
        self.client = client
        self.poll_interval = poll_interval
        self.state: str | None = None
        self._id = instance_id

    @property
    def id(self) -> str:
        return self._id

    def is_ready(self) -> bool:
        """Refresh the instance state; ready means ``running``.

        A freshly launched instance may briefly be unknown to
        ``describe_instances``; that counts as not ready.
        """
        try:
            resp = self.client.describe_instances(InstanceIds=[self._id])
        except ClientError as e:
            if _code(e) == "InvalidInstanceID.NotFound":
                return False
            _handle(e, f"Failed to refresh instance '{self._id}'")
        reservations = resp.get("Reservations", [])
        if not reservations or not reservations[0].get("Instances"):
            return False
        self.state = reservations[0]["Instances"][0]["State"]["Name"]
        return self.state == "running"

    def wait_for_ready(self, timeout: float) -> None:
        """Poll until the instance is running.

        Raises:
            ReadinessTimeoutError: If it is still not running after *timeout* seconds.
        """
        deadline = time.monotonic() + timeout
        while not self.is_ready():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ReadinessTimeoutError(
                    self._id,
                    f"Instance '{self._id}' not ready after {timeout:g}s (state: {self.state})",
                )
            time.sleep(min(self.poll_interval, remaining))

    def __repr__(self) -> str:
        return f"Instance(id={self._id!r}, state={self.state!r})"


class Compute(ComputeBlueprint):
    """AWS EC2 compute service.

    Attributes:
        client: boto3 EC2 client.
        region: AWS region name.
        poll_interval: Passed to every :class:`Instance` this service returns.
    """

    def __init__(self, config: AWSConfig, *, poll_interval: float = 1.0) -> None:
        """Initialize the EC2 client.

        Args:
            config: AWS configuration object containing credentials and region.
            poll_interval: Seconds between state refreshes while waiting.
        """
        self.client = boto3.client(
            "ec2",
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            region_name=config.region_name,
        )
        self.region = config.region_name
        self.poll_interval = poll_interval

    def submit(self, request: ProvisioningRequest) -> Instance:
        """Launch one EC2 instance.

        Invalid subnets come back from EC2 as a generic ``*.NotFound``
        error, so the message is inspected to tell them apart.

        Returns:
            Handle on the new instance.

        Raises:
            SubnetNotFoundError: If the subnet does not exist.
            ProvisioningFailedError: On any other EC2 rejection or SDK failure.
        """
        try:
            resp = self.client.run_instances(**_run_instances_params(request))
        except ClientError as e:
            if _code(e).endswith(".NotFound") and "subnet ID" in _message(e):
                raise SubnetNotFoundError(request.subnet_id) from e
            raise ProvisioningFailedError(_message(e)) from e
        except BotoCoreError as e:
            raise ProvisioningFailedError(str(e)) from e
        instance_id = resp["Instances"][0]["InstanceId"]
        return Instance(self.client, instance_id, poll_interval=self.poll_interval)

    def attach_volume(self, instance_id: str, volume_id: str, device_name: str) -> None:
        """Attach an EBS volume to an instance.

        Raises:
            StorageAttachError: If EC2 refuses the attachment.
        """
        try:
            self.client.attach_volume(
                InstanceId=instance_id, VolumeId=volume_id, Device=device_name
            )
        except ClientError as e:
            raise StorageAttachError(
                volume_id,
                device_name,
                f"Failed to attach volume '{volume_id}' to '{instance_id}' "
                f"as {device_name}: {_message(e)}",
            ) from e

    @retry(max_attempts=3, base_delay=1.0, retryable_exceptions=(EndpointConnectionError,))
    def get_state(self, instance_id: str | None) -> str:
        """Return the EC2 state name, or ``not_created`` for gone instances."""
        if not instance_id:
            return NOT_CREATED
        try:
            resp = self.client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if _code(e) in _ERROR_MAP:
                return NOT_CREATED
            _handle(e, f"Failed to read state of instance '{instance_id}'")
        reservations = resp.get("Reservations", [])
        if not reservations or not reservations[0].get("Instances"):
            return NOT_CREATED
        state = reservations[0]["Instances"][0]["State"]["Name"]
        return NOT_CREATED if state in _GONE_STATES else state

    def get_address(self, instance_id: str | None) -> str | None:
        """Return the public IP, falling back to the private IP, if assigned yet."""
        if not instance_id:
            return None
        try:
            resp = self.client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if _code(e) in _ERROR_MAP:
                return None
            _handle(e, f"Failed to read address of instance '{instance_id}'")
        reservations = resp.get("Reservations", [])
        if not reservations or not reservations[0].get("Instances"):
            return None
        inst = reservations[0]["Instances"][0]
        return inst.get("PublicIpAddress") or inst.get("PrivateIpAddress")

    @retry(max_attempts=3, base_delay=1.0, retryable_exceptions=(EndpointConnectionError,))
    def terminate_instance(self, instance_id: str) -> None:
        """Terminate an EC2 instance permanently.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
            TeardownError: If EC2 refuses the request.
        """
        try:
            self.client.terminate_instances(InstanceIds=[instance_id])
        except ClientError as e:
            _handle(e, f"Failed to terminate instance '{instance_id}'", TeardownError)
