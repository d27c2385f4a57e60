"""Provisioner CLI — launch or destroy the instance described by a JSON file.

Usage examples::

    provisioner up --spec instance.json --region us-west-2
    provisioner destroy --state .provisioner/machine.json

The spec file holds a :class:`~provisioner.base.config.ProviderConfig`::

    {"region": "us-east-1",
     "defaults": {"ami": "ami-123", "keypair_name": "me"},
     "regions": {"us-west-2": {"ami": "ami-456"}}}
"""

from __future__ import annotations

import argparse
import json
import signal
import sys
from pathlib import Path
from typing import Any

_DEFAULT_STATE = ".provisioner/machine.json"


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``provisioner`` CLI."""
    parser = argparse.ArgumentParser(
        prog="provisioner",
        description="Launch a single EC2 instance and wait until it is reachable",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default="{}",
        help='JSON AWS config string (e.g. \'{"region_name":"us-east-1"}\')',
    )
    parser.add_argument(
        "--state",
        type=str,
        default=_DEFAULT_STATE,
        help="File the instance ID is recorded in",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("up", help="Launch the instance")
    up.add_argument("--spec", "-s", required=True, help="Path to the JSON instance spec")
    up.add_argument("--region", "-r", default=None, help="Region to launch in")

    sub.add_parser("destroy", help="Terminate the recorded instance")
    return parser


def _fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


def _up(ns: argparse.Namespace, aws_config: dict[str, Any]) -> None:
    from provisioner.aws.teardown import TerminateInstance
    from provisioner.base.compute import NOT_CREATED
    from provisioner.base.config import ProviderConfig
    from provisioner.base.exceptions import ProvisionError
    from provisioner.communicator import TCPCommunicator
    from provisioner.factory import create_compute
    from provisioner.machine import FileMachineRecord
    from provisioner.pipeline import Pipeline
    from provisioner.run_instance import ProvisionEnv, ProvisioningOutcome, RunInstance

    try:
        provider_config = ProviderConfig(**json.loads(Path(ns.spec).read_text()))
        spec = provider_config.get_region_config(ns.region)
    except (OSError, ValueError) as e:
        _fail(f"Invalid spec: {e}")

    aws_config.setdefault("region_name", spec.region)
    try:
        compute = create_compute("aws", aws_config)
    except ValueError as e:
        _fail(f"Error: {e}")
    machine = FileMachineRecord(ns.state)
    if compute.get_state(machine.id) != NOT_CREATED:
        _fail(f"Instance {machine.id} already exists; destroy it first.")

    env = ProvisionEnv(
        spec=spec,
        compute=compute,
        machine=machine,
        communicator=TCPCommunicator(
            lambda: compute.get_address(machine.id), port=spec.ssh_port or 22
        ),
        teardown=TerminateInstance(compute, machine),
    )

    previous = signal.signal(signal.SIGINT, lambda signum, frame: env.cancel.cancel())
    try:
        outcome = Pipeline(RunInstance).run(env)
    except ProvisionError as e:
        _fail(f"Provisioning failed: {e}")
    finally:
        signal.signal(signal.SIGINT, previous)

    print(json.dumps(
        {"outcome": outcome.value, "instance_id": machine.id, "metrics": env.metrics},
        indent=2,
    ))
    if outcome is not ProvisioningOutcome.READY:
        sys.exit(130)


def _destroy(ns: argparse.Namespace, aws_config: dict[str, Any]) -> None:
    from provisioner.aws.teardown import TerminateInstance
    from provisioner.base.exceptions import ProvisionError
    from provisioner.base.teardown import TeardownRequest
    from provisioner.factory import create_compute
    from provisioner.machine import FileMachineRecord

    machine = FileMachineRecord(ns.state)
    if not machine.id:
        print("Instance is not created.")
        return
    try:
        compute = create_compute("aws", aws_config)
        TerminateInstance(compute, machine).run_destroy(TeardownRequest(machine.id))
    except (ProvisionError, ValueError) as e:
        _fail(f"Destroy failed: {e}")
    print("OK")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    try:
        aws_config: dict[str, Any] = json.loads(ns.config)
    except json.JSONDecodeError as e:
        _fail(f"Invalid --config JSON: {e}")

    if ns.command == "up":
        _up(ns, aws_config)
    else:
        _destroy(ns, aws_config)


if __name__ == "__main__":
    main()
