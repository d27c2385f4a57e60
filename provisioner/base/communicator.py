"""Connectivity probe blueprint."""

from abc import ABC, abstractmethod


class Communicator(ABC):
    """Checks whether a control channel into the instance can be opened."""

    @abstractmethod
    def ready(self) -> bool:
        """Return ``True`` once the instance accepts connections.

        ``False`` means "not yet"; implementations do not raise.
        """
