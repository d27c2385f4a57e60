"""
Provisioner exception hierarchy.

Every failure raised by the provisioner inherits from
:class:`ProvisionError`. Errors the surrounding pipeline reports to the
user on its own derive from :class:`PipelineError`; the recovery hook of
:class:`~provisioner.run_instance.RunInstance` leaves those alone.

Interruption is not an error and has no exception type.
"""


# ── Base ──────────────────────────────────────────────────────────────
class ProvisionError(Exception):
    """Root exception for all provisioner errors."""


class PipelineError(ProvisionError):
    """Error that the pipeline surfaces to the user itself."""


# ── Submission ────────────────────────────────────────────────────────
class ProvisioningFailedError(PipelineError):
    """The provider rejected the instance submission."""


class SubnetNotFoundError(ProvisioningFailedError):
    """The configured subnet does not exist."""

    def __init__(self, subnet_id: str | None) -> None:
        self.subnet_id = subnet_id
        super().__init__(f"Subnet ID not found: {subnet_id}")


# ── Storage ───────────────────────────────────────────────────────────
class StorageAttachError(PipelineError):
    """Attaching a block-storage volume failed."""

    def __init__(self, volume_id: str, device_name: str, message: str) -> None:
        self.volume_id = volume_id
        self.device_name = device_name
        super().__init__(message)


# ── Readiness ─────────────────────────────────────────────────────────
class ReadinessTimeoutError(ProvisionError):
    """The instance did not leave its transitional state in time."""

    def __init__(self, instance_id: str, message: str | None = None) -> None:
        self.instance_id = instance_id
        super().__init__(message or f"Instance '{instance_id}' is not ready yet")


# ── Lifecycle ─────────────────────────────────────────────────────────
class InstanceNotFoundError(ProvisionError):
    """Instance not found."""


class TeardownError(ProvisionError):
    """Destroying an instance failed."""
