"""End-to-end runs of the ``meshhessen-state`` command."""

from __future__ import annotations

import json
from pathlib import Path

import meshhessen.logging_setup as log_mod
from meshhessen.main import main

EVENTS = [
    {"type": "node.self", "data": {"num": 256, "long_name": "Home"}},
    {"type": "node.update", "data": {"num": 512, "long_name": "Relay", "latitude": 0.0, "longitude": 1.0, "snr": 6.5}},
    {"type": "node.update", "data": {"num": 768, "long_name": "Attic"}},
    {"type": "channel.update", "data": {"index": 0, "name": "Primary"}},
    {"type": "message.new", "data": {"from_id": 512, "packet_id": 1, "channel_index": 0, "text": "hi"}},
    {"type": "message.new", "data": {"from_id": 512, "packet_id": 1, "channel_index": 0, "text": "hi"}},
    {"type": "message.new", "data": {"from_id": 768, "packet_id": 2, "channel_index": 1, "text": "other"}},
    {"type": "message.new", "data": {"from_id": 512, "to_id": 256, "packet_id": 3, "text": "dm"}},
    {"type": "bogus", "data": {}},
]


def _isolate(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(log_mod, "LOG_DIR", tmp_path / "state")
    monkeypatch.setattr(log_mod, "LOG_FILE", tmp_path / "state" / "meshhessen.log")
    monkeypatch.setattr(log_mod, "_configured", True)
    for key in ("LOG_LEVEL", "MESHHESSEN_MY_LATITUDE", "MESHHESSEN_MY_LONGITUDE", "MESHHESSEN_DEBUG_MESSAGES"):
        monkeypatch.delenv(key, raising=False)


def _write_events(tmp_path: Path) -> Path:
    path = tmp_path / "events.jsonl"
    lines = ["# captured from a test bench", ""] + [json.dumps(e) for e in EVENTS]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_replay_prints_summary(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    events = _write_events(tmp_path)

    rc = main(["replay", str(events), "--lat", "0", "--lon", "0"])

    assert rc == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["applied_events"] == 8
    assert summary["own_node"] == "!00000100"
    assert [n["name"] for n in summary["nodes"]] == ["Attic", "Relay"]
    relay = summary["nodes"][1]
    assert relay["distance"] == "111.2 km"
    assert relay["snr"] == "6.5 dB"
    assert summary["nodes"][0]["distance"] == "-"
    assert summary["channels"] == [
        {"index": 0, "name": "Primary", "messages": 1, "unread": 0},
        {"index": 1, "name": "Channel 1", "messages": 1, "unread": 1},
    ]
    assert summary["total_unread"] == 1
    assert summary["conversations"] == [{"partner": "Relay", "messages": 1, "unread": True}]
    assert summary["dm_unread"] == 1
    assert "debug_log" not in summary


def test_replay_filter_and_debug(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    events = _write_events(tmp_path)

    rc = main(["replay", str(events), "--filter", "rel", "--debug"])

    assert rc == 0
    summary = json.loads(capsys.readouterr().out)
    assert [n["name"] for n in summary["nodes"]] == ["Relay"]
    assert summary["nodes"][0]["distance"] == "-"
    assert any("unknown event type 'bogus'" in line for line in summary["debug_log"])


def test_replay_invalid_json_exits_1(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    events = tmp_path / "broken.jsonl"
    events.write_text('{"type": "node.update", "data": {"num": 1}}\n{not json\n', encoding="utf-8")

    rc = main(["replay", str(events)])

    assert rc == 1
    assert "line 2: invalid JSON" in capsys.readouterr().err


def test_replay_missing_file_exits_1(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)

    rc = main(["replay", str(tmp_path / "nope.jsonl")])

    assert rc == 1
    assert capsys.readouterr().err.startswith("error:")


def test_export_logs_to_file(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    log_file = tmp_path / "state" / "meshhessen.log"
    log_file.parent.mkdir(parents=True)
    log_file.write_text("hello log\n")
    dest = tmp_path / "export.log"

    rc = main(["export-logs", "-o", str(dest)])

    assert rc == 0
    assert dest.read_text() == "hello log\n"
    assert "Logs written to" in capsys.readouterr().out


def test_replay_survives_overflowing_numbers(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    events = tmp_path / "odd.jsonl"
    lines = [
        json.dumps({"type": "node.self", "data": {"num": 256}}),
        json.dumps({"type": "node.update", "data": {"num": 512, "long_name": "Relay", "rssi": float("inf")}}),
        json.dumps({"type": "message.new", "data": {"from_id": 512, "packet_id": 4, "rx_time": 1e20, "text": "x"}}),
    ]
    events.write_text("\n".join(lines) + "\n", encoding="utf-8")

    rc = main(["replay", str(events)])

    assert rc == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["applied_events"] == 3
    assert [n["name"] for n in summary["nodes"]] == ["Relay"]
    assert summary["channels"][0]["messages"] == 1


def test_log_level_option_overrides_environment(tmp_path: Path, monkeypatch, capsys) -> None:
    _isolate(tmp_path, monkeypatch)
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    seen = []
    monkeypatch.setattr("meshhessen.main.configure_logging", seen.append)

    rc = main(["--log-level", "debug", "replay", str(_write_events(tmp_path))])

    assert rc == 0
    assert [s.log_level for s in seen] == ["DEBUG"]
