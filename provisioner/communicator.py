"""TCP reachability probe."""

from __future__ import annotations

import logging
import socket
from typing import Callable

from provisioner.base.communicator import Communicator
from provisioner.base.exceptions import ProvisionError

logger = logging.getLogger("provisioner")


class TCPCommunicator(Communicator):
    """Ready once a TCP connection to the instance's SSH port succeeds.

    Args:
        host_resolver: Returns the address to probe, or ``None`` while the
            instance has no address yet.
        port: Port to connect to.
        timeout: Connect timeout in seconds.
    """

    def __init__(
        self,
        host_resolver: Callable[[], str | None],
        port: int = 22,
        timeout: float = 5.0,
    ) -> None:
        self.host_resolver = host_resolver
        self.port = port
        self.timeout = timeout

    def ready(self) -> bool:
        try:
            host = self.host_resolver()
        except ProvisionError as e:
            logger.debug("Could not resolve the instance address: %s", e)
            return False
        if not host:
            return False
        try:
            conn = socket.create_connection((host, self.port), timeout=self.timeout)
        except OSError as e:
            logger.debug("%s:%d not reachable yet: %s", host, self.port, e)
            return False
        conn.close()
        return True
