"""End-to-end folder scenarios on a real filesystem."""
import hashlib
import json
import os
import re
import pytest
from batchsum.domain.events import FileProcessed, FolderFinished
from batchsum.domain.models import Verdict
from batchsum.pipeline.orchestrator import Orchestrator

pytestmark = pytest.mark.integration


def _log(folder):
    return json.loads((folder / "log.json").read_text(encoding="utf-8"))


def _md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def test_all_readable_folder_is_done(spelled_out_config, event_bus, input_dir, make_folder):
    make_folder("pending_001", {"b.txt": b"world", "a.txt": b"hello"})

    summary = Orchestrator(spelled_out_config, event_bus).run(input_dir)

    done = input_dir / "done_001"
    assert done.is_dir()
    assert not (input_dir / "pending_001").exists()
    log = _log(done)
    assert [r["filename"] for r in log] == ["a.txt", "b.txt"]
    assert [r["status"] for r in log] == ["success", "success"]
    assert log[0]["md5"] == _md5(b"hello")
    assert log[1]["md5"] == _md5(b"world")
    assert all("error" not in r for r in log)
    assert all(re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$", r["timestamp"]) for r in log)
    assert not (done / "log.tmp").exists()
    assert summary.folders_done == 1


def test_unreadable_file_fails_folder(spelled_out_config, event_bus, input_dir, make_folder):
    folder = make_folder("pending_002")
    (folder / "locked.bin").symlink_to(folder / "missing-target")

    summary = Orchestrator(spelled_out_config, event_bus).run(input_dir)

    failed = input_dir / "failed_002"
    assert failed.is_dir()
    log = _log(failed)
    assert len(log) == 1
    assert log[0]["filename"] == "locked.bin"
    assert log[0]["status"] == "error"
    assert log[0]["error"]
    assert "md5" not in log[0]
    assert summary.folders_failed == 1


def test_empty_folder_is_done(spelled_out_config, event_bus, input_dir, make_folder):
    make_folder("pending_003")

    Orchestrator(spelled_out_config, event_bus).run(input_dir)

    done = input_dir / "done_003"
    assert done.is_dir()
    assert _log(done) == []


def test_existing_target_gets_timestamp_suffix(spelled_out_config, event_bus, input_dir, make_folder):
    previous = make_folder("done_004", {"old.txt": b"previous"})
    make_folder("pending_004", {"new.txt": b"fresh"})

    summary = Orchestrator(spelled_out_config, event_bus).run(input_dir)

    renamed = [p.name for p in input_dir.iterdir() if re.fullmatch(r"done_004_\d{8}T\d{6}Z", p.name)]
    assert len(renamed) == 1
    assert (input_dir / renamed[0] / "new.txt").read_bytes() == b"fresh"
    assert sorted(p.name for p in previous.iterdir()) == ["old.txt"]
    assert summary.outcomes[0].destination.name == renamed[0]


def test_mixed_folder_keeps_all_records(spelled_out_config, event_bus, input_dir, make_folder):
    folder = make_folder("pending_005", {f"f{i:02d}.dat": bytes([i]) * (i + 1) for i in range(12)})
    (folder / "broken").symlink_to(folder / "gone")
    (folder / "nested").mkdir()
    (folder / "nested" / "ignored.txt").write_text("nested")

    Orchestrator(spelled_out_config, event_bus).run(input_dir)

    failed = input_dir / "failed_005"
    log = _log(failed)
    assert len(log) == 13
    names = [r["filename"] for r in log]
    assert names == sorted(names)
    assert sum(1 for r in log if r["status"] == "error") == 1
    assert (failed / "nested" / "ignored.txt").exists()


def test_terminal_folders_are_not_reprocessed(spelled_out_config, event_bus, input_dir, make_folder):
    make_folder("done_010", {"a": b"a"})
    make_folder("failed_011", {"b": b"b"})

    summary = Orchestrator(spelled_out_config, event_bus).run(input_dir)

    assert summary.outcomes == []
    assert not (input_dir / "done_010" / "log.json").exists()


def test_rerun_after_completion_is_noop(spelled_out_config, event_bus, input_dir, make_folder):
    make_folder("pending_020", {"a.txt": b"a"})
    orchestrator = Orchestrator(spelled_out_config, event_bus)

    orchestrator.run(input_dir)
    first = (input_dir / "done_020" / "log.json").read_bytes()
    second_summary = orchestrator.run(input_dir)

    assert second_summary.outcomes == []
    assert (input_dir / "done_020" / "log.json").read_bytes() == first


def test_stale_tmp_log_removed_and_not_hashed(spelled_out_config, event_bus, input_dir, make_folder):
    make_folder("pending_030", {"a.txt": b"a", "log.tmp": b"[{"})

    Orchestrator(spelled_out_config, event_bus).run(input_dir)

    done = input_dir / "done_030"
    assert [r["filename"] for r in _log(done)] == ["a.txt"]
    assert not (done / "log.tmp").exists()


def test_events_published(sample_config, event_bus, input_dir, make_folder):
    make_folder("r_001", {"a": b"1", "b": b"2"})
    processed = []
    finished = []
    event_bus.subscribe(FileProcessed, processed.append)
    event_bus.subscribe(FolderFinished, finished.append)

    Orchestrator(sample_config, event_bus).run(input_dir)

    assert sorted(e.record.filename for e in processed) == ["a", "b"]
    assert len(finished) == 1
    assert finished[0].outcome.verdict == Verdict.DONE
    assert finished[0].outcome.destination == input_dir / "d_001"


def test_undecodable_filename_still_done(spelled_out_config, event_bus, input_dir, make_folder):
    folder = make_folder("pending_040", {"a.txt": b"a"})
    (folder / os.fsdecode(b"\xff.bin")).write_bytes(b"binary name")

    summary = Orchestrator(spelled_out_config, event_bus).run(input_dir)

    done = input_dir / "done_040"
    assert done.is_dir()
    log = _log(done)
    assert [r["filename"] for r in log] == ["a.txt", "\ufffd.bin"]
    assert log[1]["status"] == "success"
    assert log[1]["md5"] == _md5(b"binary name")
    assert summary.folders_done == 1


def test_user_log_json_is_hashed(spelled_out_config, event_bus, input_dir, make_folder):
    make_folder("pending_050", {"a.txt": b"a", "log.json": b"user data"})

    Orchestrator(spelled_out_config, event_bus).run(input_dir)

    log = _log(input_dir / "done_050")
    assert [r["filename"] for r in log] == ["a.txt", "log.json"]
    assert log[1]["md5"] == _md5(b"user data")
