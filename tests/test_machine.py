"""Tests for the file machine record."""

import json

from provisioner.machine import FileMachineRecord


class TestFileMachineRecord:
    def test_missing_file(self, tmp_path):
        assert FileMachineRecord(tmp_path / "machine.json").id is None

    def test_set_and_read(self, tmp_path):
        path = tmp_path / "state" / "machine.json"
        record = FileMachineRecord(path)
        record.id = "i-123"
        assert json.loads(path.read_text()) == {"id": "i-123"}
        assert FileMachineRecord(path).id == "i-123"
        assert not path.with_name("machine.json.tmp").exists()

    def test_clear(self, tmp_path):
        path = tmp_path / "machine.json"
        record = FileMachineRecord(path)
        record.id = "i-123"
        record.id = None
        assert not path.exists()
        assert record.id is None
        record.id = None
