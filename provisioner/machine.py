"""JSON-file backed machine record."""

from __future__ import annotations

import json
import os
from pathlib import Path

from provisioner.base.machine import MachineRecord


class FileMachineRecord(MachineRecord):
    """Stores the instance ID in a small JSON file.

    Writes go to a temporary sibling first and are fsynced before being
    renamed over the real file, so a reader never sees a partial record.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    @property
    def id(self) -> str | None:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return None
        return data.get("id")

    @id.setter
    def id(self, value: str | None) -> None:
        if value is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w") as f:
            json.dump({"id": value}, f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def __repr__(self) -> str:
        return f"FileMachineRecord({str(self.path)!r})"
