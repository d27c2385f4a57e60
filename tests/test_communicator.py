"""Tests for the TCP communicator."""

from unittest.mock import patch, MagicMock

from provisioner.base.exceptions import ProvisionError
from provisioner.communicator import TCPCommunicator


class TestTCPCommunicator:
    @patch("provisioner.communicator.socket")
    def test_ready(self, mock_socket):
        conn = MagicMock()
        mock_socket.create_connection.return_value = conn
        comm = TCPCommunicator(lambda: "1.2.3.4", port=2222, timeout=3)
        assert comm.ready() is True
        mock_socket.create_connection.assert_called_once_with(("1.2.3.4", 2222), timeout=3)
        conn.close.assert_called_once()

    @patch("provisioner.communicator.socket")
    def test_refused(self, mock_socket):
        mock_socket.create_connection.side_effect = ConnectionRefusedError()
        assert TCPCommunicator(lambda: "1.2.3.4").ready() is False

    @patch("provisioner.communicator.socket")
    def test_no_address_yet(self, mock_socket):
        assert TCPCommunicator(lambda: None).ready() is False
        mock_socket.create_connection.assert_not_called()

    def test_resolver_error(self):
        def resolver():
            raise ProvisionError("describe failed")

        assert TCPCommunicator(resolver).ready() is False
