"""AWS service factory.

Maps service names to their AWS SDK implementations.
``SERVICE_REGISTRY`` is consumed by :func:`provisioner.factory.create_compute`.
"""

from provisioner.aws.compute import Compute


# Service registry for AWS
SERVICE_REGISTRY: dict[str, type] = {
    "compute": Compute,
}
