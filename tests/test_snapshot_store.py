"""Tests for snapshot save/load/clear and best-effort failure handling."""

import os

import pytest

from conftest import make_session

from exam_engine.errors import RecoveryCorrupt
from exam_engine.services.snapshot_store import FileSlot, MemorySlot, SnapshotStore


class BrokenSlot(MemorySlot):
    def write(self, key, payload):
        raise OSError("No space left on device")

    def remove(self, key):
        raise OSError("read-only file system")


class UnavailableSlot(MemorySlot):
    def check(self):
        raise PermissionError("denied")


class TestRoundTrip:
    def test_memory_round_trip(self):
        store = SnapshotStore(slot=MemorySlot())
        session = make_session(
            4,
            current_index=2,
            selections={"q1": {"A": True}, "q2": {"B": True, "C": False}},
            saved_marks={0: True, 3: True},
        )
        assert store.save(session) is True
        assert store.load() == session

    def test_file_round_trip(self, tmp_path):
        store = SnapshotStore(slot=FileSlot(str(tmp_path)), key="exam_state_v1")
        session = make_session(3, selections={"q3": {"D": True}})
        assert store.save(session) is True
        assert (tmp_path / "exam_state_v1.json").exists()

        # 새 프로세스를 흉내: 같은 디렉토리로 새 저장소 생성
        reopened = SnapshotStore(slot=FileSlot(str(tmp_path)), key="exam_state_v1")
        assert reopened.load() == session

    def test_last_write_wins(self):
        store = SnapshotStore(slot=MemorySlot())
        store.save(make_session(3, current_index=0))
        store.save(make_session(3, current_index=2))
        assert store.load().current_index == 2

    def test_clear(self, tmp_path):
        store = SnapshotStore(slot=FileSlot(str(tmp_path)))
        store.save(make_session(2))
        assert store.clear() is True
        assert store.load() is None
        # 두 번 지워도 문제 없음
        assert store.clear() is True

    def test_file_slot_leaves_no_temp_files(self, tmp_path):
        store = SnapshotStore(slot=FileSlot(str(tmp_path)), key="k")
        store.save(make_session(2))
        store.save(make_session(2, current_index=1))
        assert sorted(os.listdir(tmp_path)) == ["k.json"]


class TestCorruption:
    def test_absent_is_none(self):
        assert SnapshotStore(slot=MemorySlot()).load() is None

    @pytest.mark.parametrize("payload", [
        "{garbage",
        "[]",
        '{"exam_id": "", "started_at": 1, "duration_sec": 5}',
        '{"exam_id": "x", "duration_sec": 5}',
    ])
    def test_corrupt_payload_is_none(self, payload):
        slot = MemorySlot()
        slot.write("exam_state_v1", payload)
        store = SnapshotStore(slot=slot)
        assert store.load() is None
        with pytest.raises(RecoveryCorrupt):
            store.read()


class TestBestEffort:
    def test_write_failure_returns_false(self):
        store = SnapshotStore(slot=BrokenSlot())
        assert store.available is True
        assert store.save(make_session(2)) is False
        assert store.clear() is False

    def test_unavailable_slot_runs_in_memory(self):
        store = SnapshotStore(slot=UnavailableSlot())
        assert store.available is False
        assert store.save(make_session(2)) is False
        assert store.load() is None
        assert store.clear() is False
