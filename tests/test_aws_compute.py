"""Tests for the AWS EC2 Compute service."""

from unittest.mock import patch, MagicMock
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from provisioner.aws.compute import Compute, Instance
from provisioner.base.compute import NOT_CREATED
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
from provisioner.request import ProvisioningRequest


def _client_error(code: str, msg: str = "error") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": msg}}, "op")


def _described(state: str, **extra) -> dict:
    return {
        "Reservations": [
            {"Instances": [{"InstanceId": "i-1", "State": {"Name": state}, **extra}]}
        ]
    }


@pytest.fixture
def svc():
    with patch("provisioner.aws.compute.boto3") as mock_boto:
        mock_client = MagicMock()
        mock_boto.client.return_value = mock_client
        instance = Compute(AWSConfig(
            aws_access_key_id="key",
            aws_secret_access_key="secret",
            region_name="us-east-1",
        ), poll_interval=0)
        yield instance, mock_client


# --- submit ---

class TestSubmit:
    def test_success(self, svc):
        inst, client = svc
        client.run_instances.return_value = {"Instances": [{"InstanceId": "i-abc123"}]}
        handle = inst.submit(ProvisioningRequest(instance_type="t3.micro", image_id="ami-123"))
        assert isinstance(handle, Instance)
        assert handle.id == "i-abc123"
        call_kwargs = client.run_instances.call_args[1]
        assert call_kwargs == {
            "ImageId": "ami-123",
            "InstanceType": "t3.micro",
            "MinCount": 1,
            "MaxCount": 1,
        }

    def test_vpc_params(self, svc):
        inst, client = svc
        client.run_instances.return_value = {"Instances": [{"InstanceId": "i-xyz"}]}
        inst.submit(ProvisioningRequest(
            instance_type="t3.micro",
            image_id="ami-123",
            availability_zone="us-east-1a",
            key_name="mykey",
            ssh_port=2222,
            private_ip_address="10.0.0.5",
            subnet_id="subnet-1",
            security_group_ids=("sg-1", "sg-2"),
            tags={"Name": "web"},
        ))
        call_kwargs = client.run_instances.call_args[1]
        assert call_kwargs["Placement"] == {"AvailabilityZone": "us-east-1a"}
        assert call_kwargs["KeyName"] == "mykey"
        assert call_kwargs["PrivateIpAddress"] == "10.0.0.5"
        assert call_kwargs["SubnetId"] == "subnet-1"
        assert call_kwargs["SecurityGroupIds"] == ["sg-1", "sg-2"]
        assert "SecurityGroups" not in call_kwargs
        assert call_kwargs["TagSpecifications"] == [
            {"ResourceType": "instance", "Tags": [{"Key": "Name", "Value": "web"}]}
        ]

    def test_classic_groups(self, svc):
        inst, client = svc
        client.run_instances.return_value = {"Instances": [{"InstanceId": "i-xyz"}]}
        inst.submit(ProvisioningRequest(
            instance_type="t3.micro", image_id="ami-123", groups=("default",)
        ))
        call_kwargs = client.run_instances.call_args[1]
        assert call_kwargs["SecurityGroups"] == ["default"]
        assert "SecurityGroupIds" not in call_kwargs

    def test_invalid_subnet(self, svc):
        inst, client = svc
        client.run_instances.side_effect = _client_error(
            "InvalidSubnetID.NotFound", "The subnet ID 'subnet-9' does not exist"
        )
        with pytest.raises(SubnetNotFoundError) as exc_info:
            inst.submit(ProvisioningRequest(
                instance_type="t3.micro", image_id="ami-123", subnet_id="subnet-9"
            ))
        assert exc_info.value.subnet_id == "subnet-9"

    def test_other_not_found(self, svc):
        inst, client = svc
        client.run_instances.side_effect = _client_error(
            "InvalidAMIID.NotFound", "The image id '[ami-123]' does not exist"
        )
        with pytest.raises(ProvisioningFailedError) as exc_info:
            inst.submit(ProvisioningRequest(instance_type="t3.micro", image_id="ami-123"))
        assert not isinstance(exc_info.value, SubnetNotFoundError)
        assert "does not exist" in str(exc_info.value)

    def test_error(self, svc):
        inst, client = svc
        client.run_instances.side_effect = _client_error(
            "InsufficientInstanceCapacity", "no capacity"
        )
        with pytest.raises(ProvisioningFailedError, match="no capacity"):
            inst.submit(ProvisioningRequest(instance_type="t3.micro", image_id="ami-123"))

    @pytest.mark.parametrize("error", [
        NoCredentialsError(),
        EndpointConnectionError(endpoint_url="https://ec2.us-east-1.amazonaws.com"),
    ])
    def test_sdk_error(self, svc, error):
        inst, client = svc
        client.run_instances.side_effect = error
        with pytest.raises(ProvisioningFailedError) as exc_info:
            inst.submit(ProvisioningRequest(instance_type="t3.micro", image_id="ami-123"))
        assert exc_info.value.__cause__ is error
        assert str(error) in str(exc_info.value)


# --- instance handle ---

class TestInstance:
    def test_is_ready_running(self):
        client = MagicMock()
        client.describe_instances.return_value = _described("running")
        handle = Instance(client, "i-1")
        assert handle.is_ready() is True
        assert handle.state == "running"

    def test_is_ready_pending(self):
        client = MagicMock()
        client.describe_instances.return_value = _described("pending")
        assert Instance(client, "i-1").is_ready() is False

    def test_not_yet_visible(self):
        client = MagicMock()
        client.describe_instances.side_effect = _client_error("InvalidInstanceID.NotFound")
        assert Instance(client, "i-1").is_ready() is False

    def test_refresh_error(self):
        client = MagicMock()
        client.describe_instances.side_effect = _client_error("UnauthorizedOperation")
        with pytest.raises(ProvisionError):
            Instance(client, "i-1").is_ready()

    def test_wait_for_ready(self):
        client = MagicMock()
        client.describe_instances.side_effect = [
            _described("pending"),
            _described("running"),
        ]
        Instance(client, "i-1", poll_interval=0).wait_for_ready(timeout=5)
        assert client.describe_instances.call_count == 2

    def test_wait_for_ready_timeout(self):
        client = MagicMock()
        client.describe_instances.return_value = _described("pending")
        with pytest.raises(ReadinessTimeoutError) as exc_info:
            Instance(client, "i-1", poll_interval=0).wait_for_ready(timeout=0)
        assert exc_info.value.instance_id == "i-1"
        assert "pending" in str(exc_info.value)


# --- attach_volume ---

class TestAttachVolume:
    def test_success(self, svc):
        inst, client = svc
        inst.attach_volume("i-1", "vol-1", "/dev/sdf")
        client.attach_volume.assert_called_once_with(
            InstanceId="i-1", VolumeId="vol-1", Device="/dev/sdf"
        )

    def test_error(self, svc):
        inst, client = svc
        client.attach_volume.side_effect = _client_error("VolumeInUse", "vol-1 is in use")
        with pytest.raises(StorageAttachError) as exc_info:
            inst.attach_volume("i-1", "vol-1", "/dev/sdf")
        assert exc_info.value.volume_id == "vol-1"
        assert exc_info.value.device_name == "/dev/sdf"
        assert "in use" in str(exc_info.value)


# --- get_state / get_address ---

class TestGetState:
    def test_running(self, svc):
        inst, client = svc
        client.describe_instances.return_value = _described("running")
        assert inst.get_state("i-1") == "running"

    def test_no_id(self, svc):
        inst, client = svc
        assert inst.get_state(None) == NOT_CREATED
        client.describe_instances.assert_not_called()

    @pytest.mark.parametrize("state", ["terminated", "shutting-down"])
    def test_gone(self, svc, state):
        inst, client = svc
        client.describe_instances.return_value = _described(state)
        assert inst.get_state("i-1") == NOT_CREATED

    def test_not_found(self, svc):
        inst, client = svc
        client.describe_instances.side_effect = _client_error("InvalidInstanceID.NotFound")
        assert inst.get_state("i-missing") == NOT_CREATED

    def test_empty_reservations(self, svc):
        inst, client = svc
        client.describe_instances.return_value = {"Reservations": []}
        assert inst.get_state("i-1") == NOT_CREATED

    def test_address(self, svc):
        inst, client = svc
        client.describe_instances.return_value = _described(
            "running", PublicIpAddress="1.2.3.4", PrivateIpAddress="10.0.0.1"
        )
        assert inst.get_address("i-1") == "1.2.3.4"

    def test_private_address_fallback(self, svc):
        inst, client = svc
        client.describe_instances.return_value = _described(
            "running", PrivateIpAddress="10.0.0.1"
        )
        assert inst.get_address("i-1") == "10.0.0.1"


# --- terminate_instance ---

class TestTerminate:
    def test_success(self, svc):
        inst, client = svc
        inst.terminate_instance("i-abc")
        client.terminate_instances.assert_called_once_with(InstanceIds=["i-abc"])

    def test_not_found(self, svc):
        inst, client = svc
        client.terminate_instances.side_effect = _client_error("InvalidInstanceID.NotFound")
        with pytest.raises(InstanceNotFoundError):
            inst.terminate_instance("i-missing")

    def test_generic(self, svc):
        inst, client = svc
        client.terminate_instances.side_effect = _client_error("UnauthorizedOperation")
        with pytest.raises(TeardownError):
            inst.terminate_instance("i-abc")
