"""Tests for the EC2 teardown collaborator."""

from unittest.mock import MagicMock
import pytest

from provisioner.aws.teardown import TerminateInstance
from provisioner.base.compute import NOT_CREATED
from provisioner.base.exceptions import InstanceNotFoundError, TeardownError
from provisioner.base.teardown import TeardownRequest


@pytest.fixture
def compute():
    svc = MagicMock()
    svc.get_state.return_value = "running"
    return svc


class TestTerminateInstance:
    def test_terminates_and_clears_record(self, compute):
        machine = MagicMock(id="i-1")
        TerminateInstance(compute, machine).run_destroy(TeardownRequest("i-1"))
        compute.terminate_instance.assert_called_once_with("i-1")
        assert machine.id is None

    def test_already_gone(self, compute):
        compute.get_state.return_value = NOT_CREATED
        machine = MagicMock(id="i-1")
        TerminateInstance(compute, machine).run_destroy(TeardownRequest("i-1"))
        compute.terminate_instance.assert_not_called()
        assert machine.id is None

    def test_vanished_during_terminate(self, compute):
        compute.terminate_instance.side_effect = InstanceNotFoundError("gone")
        TerminateInstance(compute).run_destroy(TeardownRequest("i-1"))

    def test_idempotent(self, compute):
        compute.get_state.side_effect = ["running", NOT_CREATED]
        runner = TerminateInstance(compute)
        runner.run_destroy(TeardownRequest("i-1"))
        runner.run_destroy(TeardownRequest("i-1"))
        compute.terminate_instance.assert_called_once_with("i-1")

    def test_other_machine_untouched(self, compute):
        machine = MagicMock(id="i-other")
        TerminateInstance(compute, machine).run_destroy(TeardownRequest("i-1"))
        assert machine.id == "i-other"

    def test_failure_propagates(self, compute):
        compute.terminate_instance.side_effect = TeardownError("denied")
        machine = MagicMock(id="i-1")
        with pytest.raises(TeardownError):
            TerminateInstance(compute, machine).run_destroy(TeardownRequest("i-1"))
        assert machine.id == "i-1"
