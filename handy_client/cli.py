"""Command-line interface for handy-client."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from . import constants
from .client import HandyClient
from .config import HandyConfig, load_config, save_config
from .core.models import FileKind, LogMode, Mode, PatternPoint
from .core.results import CommandResult
from .logging import configure_logging

LOGGER = logging.getLogger(__name__)

_MODE_CHOICES = [mode.name.lower() for mode in Mode]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="handy-client", description="Control a networked Handy device"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--key", help="Connection key (overrides the configuration)")
    parser.add_argument(
        "--log-mode",
        choices=[mode.name.lower() for mode in LogMode],
        help="Command diagnostics verbosity (overrides the configuration)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show-config", help="Print the resolved configuration and exit")
    subparsers.add_parser(
        "save-config", help="Write the resolved configuration, including --key, to disk"
    )
    subparsers.add_parser("version", help="Show current and latest firmware versions")
    subparsers.add_parser("settings", help="Show mode, position, speed and stroke")
    subparsers.add_parser("status", help="Show the current device mode")

    mode_parser = subparsers.add_parser("mode", help="Set the device mode")
    mode_parser.add_argument("name", choices=_MODE_CHOICES)

    toggle_parser = subparsers.add_parser("toggle", help="Toggle between off and a mode")
    toggle_parser.add_argument("name", choices=_MODE_CHOICES)

    speed_parser = subparsers.add_parser("speed", help="Set speed as a percentage")
    speed_parser.add_argument("percent", type=int)

    stroke_parser = subparsers.add_parser("stroke", help="Set stroke as a percentage")
    stroke_parser.add_argument("percent", type=int)

    sync_parser = subparsers.add_parser(
        "sync-clock", help="Estimate the server clock offset"
    )
    sync_parser.add_argument("--trips", type=int, default=None)

    pattern_parser = subparsers.add_parser(
        "upload-pattern", help="Upload a pattern file of 'time,position' lines"
    )
    pattern_parser.add_argument("file", type=Path)
    pattern_parser.add_argument("--name", default=None)

    file_parser = subparsers.add_parser(
        "upload-file", help="Upload a pre-authored CSV or funscript file"
    )
    file_parser.add_argument("file", type=Path)
    file_parser.add_argument(
        "--kind", choices=[FileKind.CSV.value, FileKind.FUNSCRIPT.value], default=None
    )

    prepare_parser = subparsers.add_parser(
        "prepare", help="Load a hosted control file for sync playback"
    )
    prepare_parser.add_argument("url")
    prepare_parser.add_argument("--name", default="")
    prepare_parser.add_argument("--size", type=int, default=-1)

    play_parser = subparsers.add_parser("play", help="Start sync playback")
    play_parser.add_argument("--time", type=int, default=0, help="Start time in ms")
    play_parser.add_argument(
        "--sync-clock",
        action="store_true",
        help="Estimate the server clock offset before starting",
    )

    subparsers.add_parser("pause", help="Pause sync playback")

    offset_parser = subparsers.add_parser("offset", help="Adjust sync playback offset")
    offset_parser.add_argument("milliseconds", type=int)

    return parser


def read_pattern(path: Path) -> list[PatternPoint]:
    """Read ``time,position`` lines, skipping blanks and ``#`` comments."""

    points: list[PatternPoint] = []
    for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            time_part, position_part = line.split(",")
            points.append(PatternPoint(int(time_part), int(position_part)))
        except ValueError:
            raise ValueError(f"{path}:{number}: expected 'time,position', got {line!r}") from None
    return points


def show_config(config: HandyConfig) -> None:
    print(f"Configuration loaded from {config.path!s}\n")
    for section in config.raw.sections():
        print(f"[{section}]")
        for key, value in config.raw[section].items():
            if key == "connection_key" and value:
                value = "********"
            print(f"{key} = {value}")
        print()


async def run_command(client: HandyClient, args: argparse.Namespace) -> CommandResult[Any]:
    command = args.command
    handlers: dict[str, Callable[[], Awaitable[CommandResult[Any]]]] = {
        "version": client.get_version,
        "settings": client.get_settings,
        "status": client.get_status,
        "pause": client.sync_pause,
    }
    if command in handlers:
        return await handlers[command]()
    if command == "mode":
        return await client.set_mode(Mode.from_name(args.name))
    if command == "toggle":
        return await client.toggle_mode(Mode.from_name(args.name))
    if command == "speed":
        return await client.set_speed_percent(args.percent)
    if command == "stroke":
        return await client.set_stroke_percent(args.percent)
    if command == "sync-clock":
        return await client.synchronize_clock(args.trips)
    if command == "upload-pattern":
        return await client.publish_pattern(read_pattern(args.file), args.name)
    if command == "upload-file":
        kind = FileKind(args.kind) if args.kind else FileKind.from_filename(args.file.name)
        return await client.publish_file(
            args.file.read_text(encoding="utf-8"), kind, args.file.name
        )
    if command == "prepare":
        return await client.sync_prepare(args.url, args.name, args.size)
    if command == "play":
        if args.sync_clock:
            synced = await client.synchronize_clock()
            if not synced.ok:
                return synced
        return await client.sync_play(args.time)
    if command == "offset":
        return await client.sync_adjust_offset(args.milliseconds)
    raise ValueError(f"Unknown command: {command}")


async def _execute(config: HandyConfig, args: argparse.Namespace) -> CommandResult[Any]:
    async with HandyClient(config, connection_key=args.key) as client:
        return await run_command(client, args)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.log_mode:
        config.logging.log_mode = LogMode.parse(args.log_mode)
    if args.key:
        config.device.connection_key = args.key.strip()

    configure_logging(
        config.logging.level,
        log_path=config.logging.path,
        log_network=config.logging.log_network,
        log_mode=config.logging.log_mode,
    )

    if args.command == "show-config":
        show_config(config)
        return 0

    if args.command == "save-config":
        try:
            save_config(config)
        except OSError as exc:
            LOGGER.error("Unable to write %s: %s", config.path, exc)
            return 1
        print(f"Configuration written to {config.path!s}")
        return 0

    try:
        result = asyncio.run(_execute(config, args))
    except (OSError, ValueError) as exc:
        LOGGER.error("%s", exc)
        return 1

    if not result.ok:
        LOGGER.error("%s failed: %s", args.command, result.message)
        return 1

    if result.value is not None:
        print(result.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
