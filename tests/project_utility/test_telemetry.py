from __future__ import annotations

import json
from pathlib import Path

from project_utility.telemetry import (
    TelemetryEmitter,
    emit,
    redact,
    register_listener,
    unregister_listener,
)


def test_events_are_written_as_json_lines(tmp_path: Path) -> None:
    emitter = TelemetryEmitter()
    emitter.configure(log_root=tmp_path)

    emitter.emit(
        "agent.respond.completed",
        request_id="req-1",
        conversation_id="c1",
        payload={"provider": "free_text", "message_count": 3},
    )

    lines = (tmp_path / "telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "agent.respond.completed"
    assert record["level"] == "info"
    assert record["conversation_id"] == "c1"
    assert record["payload"]["message_count"] == 3
    assert record["timestamp"].endswith("Z")


def test_listeners_receive_unredacted_snapshots() -> None:
    emitter = TelemetryEmitter()
    received = []
    emitter.add_listener(received.append)

    emitter.emit(
        "agent.respond.failed",
        level="error",
        payload={"code": "INTERNAL", "error": "x" * 500},
        sensitive=["error"],
    )

    (event,) = received
    assert event["event_type"] == "agent.respond.failed"
    assert len(event["payload"]["error"]) == 500


def test_module_level_listener_sees_emitted_events() -> None:
    received = []
    register_listener(received.append)
    try:
        emit("http.request", payload={"status_code": 200})
    finally:
        unregister_listener(received.append)

    assert [event["event_type"] for event in received] == ["http.request"]


def test_unconfigured_emitter_skips_file_sink() -> None:
    emitter = TelemetryEmitter()
    emitter.emit("http.request", payload={"status_code": 200})
    assert emitter.configured is False


def test_redact_clips_named_values_only() -> None:
    shown = redact({"error": "e" * 400, "code": "INTERNAL"}, ["error"])
    assert len(shown["error"]) == 160
    assert shown["code"] == "INTERNAL"


def test_reconfigure_closes_previous_file_sink(tmp_path: Path) -> None:
    emitter = TelemetryEmitter()
    emitter.configure(log_root=tmp_path / "first")
    first = emitter._file
    emitter.configure(log_root=tmp_path / "second")

    assert first is not None and first.closed
    assert emitter._file is not None and not emitter._file.closed

    emitter.emit("http.request", payload={"status_code": 200})
    assert (tmp_path / "second" / "telemetry.jsonl").read_text(encoding="utf-8").strip()
    assert (tmp_path / "first" / "telemetry.jsonl").read_text(encoding="utf-8") == ""
