"""AWS (EC2) implementations of the provisioner blueprints."""

from .compute import Compute, Instance
from .teardown import TerminateInstance

__all__ = ["Compute", "Instance", "TerminateInstance"]
