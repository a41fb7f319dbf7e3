from __future__ import annotations

import argparse
import importlib.metadata
import json
import sys
import traceback
from pathlib import Path
from typing import Any, Iterator

from meshhessen.core.types import MeshEventDict
from meshhessen.logging_setup import (
    configure_logging,
    export_logs,
    install_debug_log_handler,
    remove_debug_log_handler,
)
from meshhessen.settings import MeshSettings, load_settings_from_env
from meshhessen.state import AppState, EventDispatcher


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meshhessen-state",
        description="Replay decoded mesh events through the state engine",
    )
    try:
        version = importlib.metadata.version("meshhessen-state")
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"
    parser.add_argument("--version", action="version", version=version)
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="stderr log level (overrides LOG_LEVEL)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Apply a JSON-lines event file and print a summary")
    replay.add_argument("events", help="File with one event object per line ('-' for stdin)")
    replay.add_argument("--lat", type=float, default=None, help="Own latitude override")
    replay.add_argument("--lon", type=float, default=None, help="Own longitude override")
    replay.add_argument("--filter", default="", help="Node list filter")
    replay.add_argument(
        "--debug",
        dest="debug",
        action="store_true",
        help="Include the debug log in the summary",
    )

    export = sub.add_parser("export-logs", help="Export application logs for bug reports")
    export.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write logs to file (default: stdout)",
    )

    return parser


def _read_events(source: str) -> Iterator[MeshEventDict]:
    stream = sys.stdin if source == "-" else Path(source).open(encoding="utf-8")
    try:
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"line {lineno}: invalid JSON ({exc.msg})") from exc
            if isinstance(event, dict):
                yield event
    finally:
        if stream is not sys.stdin:
            stream.close()


def summarize(state: AppState, node_filter: str = "", *, debug: bool = False) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "own_node": state.my_node.node_id if state.my_node else None,
        "nodes": [
            {
                "id": node.node_id,
                "name": node.name,
                "snr": node.snr_text,
                "battery": node.battery_text,
                "distance": node.distance,
                "pinned": node.pinned,
            }
            for node in state.filtered_nodes(node_filter)
        ],
        "channels": [
            {
                "index": index,
                "name": state.channels[index].display_name
                if index in state.channels
                else f"Channel {index}",
                "messages": len(state.messages.channel_messages(index)),
                "unread": state.channel_unread(index),
            }
            for index in sorted(set(state.messages.channel_indices()) | set(state.channels))
        ],
        "total_unread": state.total_unread,
        "conversations": [
            {
                "partner": conv.node_name,
                "messages": len(conv.messages),
                "unread": conv.has_unread,
            }
            for conv in state.conversations.conversations()
        ],
        "dm_unread": state.dm_unread_count,
    }
    if debug:
        summary["debug_log"] = state.debug_log.lines()
    return summary


def _replay(args: argparse.Namespace, settings: MeshSettings) -> int:
    if args.lat is not None and args.lon is not None:
        settings.my_latitude = args.lat
        settings.my_longitude = args.lon
    state = AppState(position_source=settings)
    dispatcher = EventDispatcher(state, show_encrypted=settings.show_encrypted_messages)
    debug = args.debug or settings.debug_messages
    handler = install_debug_log_handler(state.debug_log) if debug else None
    try:
        applied = dispatcher.dispatch_all(_read_events(args.events))
    finally:
        if handler is not None:
            remove_debug_log_handler(handler)
    summary = summarize(state, args.filter, debug=debug)
    summary["applied_events"] = applied
    print(json.dumps(summary, indent=2, ensure_ascii=False))
    return 0


def _export_logs(output: str | None) -> int:
    if not output:
        export_logs(sys.stdout)
        return 0
    with Path(output).open("w", encoding="utf-8") as out:
        count = export_logs(out)
    print(f"Logs written to {output} ({count} files)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = load_settings_from_env()
    if args.log_level:
        settings.log_level = args.log_level

    try:
        if args.command == "export-logs":
            return _export_logs(args.output)
        configure_logging(settings)
        return _replay(args, settings)
    except (OSError, ValueError) as exc:
        if getattr(args, "debug", False):
            print(f"[debug] error: {exc}", file=sys.stderr)
            traceback.print_exc()
        else:
            print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
