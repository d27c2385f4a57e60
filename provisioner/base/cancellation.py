"""
Cooperative cancellation.

A :class:`CancellationToken` is created by whoever drives the pipeline
(usually a signal handler) and handed to every layer that needs to stop
waiting early. Provisioning code only ever reads it.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """One-way, thread-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Mark the token as cancelled. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to *timeout* seconds, returning early on cancellation.

        Returns:
            ``True`` if the token is cancelled when the call returns.
        """
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
