"""CLI entry point for log-summarizer."""

import argparse
import logging
import sys
from pathlib import Path

import log_summarizer.io.logging_setup
from log_summarizer.app import terminal
from log_summarizer.core.config import CanvasConfig, ConfigError
from log_summarizer.ipc import protocol

logger = logging.getLogger(__name__)

VERSION = "0.1.0"
DEFAULT_ID = "log-1"
WINDOW_TITLE = "Log Summarizer"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-summarizer",
        description="Terminal canvas for pasting and summarizing logs",
    )
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser(
        "show", help="Show the log summarizer canvas in the current terminal"
    )
    show.add_argument("--id", default=DEFAULT_ID, help="Canvas ID (default: log-1)")
    config_group = show.add_mutually_exclusive_group()
    config_group.add_argument("--config", default=None, help="Canvas configuration (JSON)")
    config_group.add_argument(
        "--config-file", default=None, help="Path to a file holding the configuration JSON"
    )
    show.add_argument("--socket", default=None, help="Unix socket path for IPC")

    spawn = commands.add_parser(
        "spawn", help="Spawn the log summarizer canvas in a new terminal pane"
    )
    spawn.add_argument("--id", default=DEFAULT_ID, help="Canvas ID (default: log-1)")
    spawn.add_argument("--config", default=None, help="Canvas configuration (JSON)")
    spawn.add_argument("--socket", default=None, help="Unix socket path for IPC")

    commands.add_parser("env", help="Show detected terminal environment")
    return parser


def _load_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> CanvasConfig:
    text = args.config
    if args.config_file:
        try:
            text = Path(args.config_file).read_text(encoding="utf-8")
        except OSError as e:
            parser.error("cannot read --config-file {}: {}".format(args.config_file, e))
    try:
        return CanvasConfig.from_json(text)
    except ConfigError as e:
        parser.error(str(e))


def _set_window_title(title: str) -> None:
    sys.stdout.write("\x1b]0;{}\x07".format(title))
    sys.stdout.flush()


def _cmd_show(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    config = _load_config(parser, args)
    socket_path = args.socket or protocol.socket_path(args.id)

    # [LAW:single-enforcer] Runtime logger configuration is centralized in io.logging_setup.
    log_runtime = log_summarizer.io.logging_setup.configure(
        canvas_id=args.id, role="canvas", to_stderr=False
    )
    logger.info(
        "logging configured level=%s file=%s",
        log_runtime.level_name,
        log_runtime.file_path,
    )
    logger.info("showing canvas id=%s socket=%s config=%s", args.id, socket_path, config)

    # Imported here so spawn/env never pay for loading Textual.
    from log_summarizer.tui.app import LogSummarizerApp

    _set_window_title(WINDOW_TITLE)
    app = LogSummarizerApp(args.id, config=config, socket_path=socket_path)
    app.run()
    return app.return_code or 0


def _cmd_spawn(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    if args.config:
        # Validate before anything is launched.
        try:
            CanvasConfig.from_json(args.config)
        except ConfigError as e:
            parser.error(str(e))

    log_summarizer.io.logging_setup.configure(canvas_id=args.id, role="spawn")
    try:
        result = terminal.spawn_canvas(args.id, args.config, socket_path=args.socket)
    except terminal.LaunchError as e:
        print("Failed to spawn canvas: {}".format(e), file=sys.stderr)
        return 1
    print("Spawned log-summarizer canvas '{}' via {}".format(args.id, result.method))
    return 0


def _cmd_env(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    env = terminal.detect_terminal()
    print("Terminal Environment:")
    print("  In tmux: {}".format(env.in_tmux))
    print("  In iTerm2: {}".format(env.in_iterm2))
    print("  In Apple Terminal: {}".format(env.in_apple_terminal))
    print("  Terminal type: {}".format(env.terminal_type.value))
    print("\nSummary: {}".format(env.summary))

    if env.terminal_type == terminal.TerminalType.APPLE_TERMINAL:
        print("\nApple Terminal detected - canvas will open in a new window.")
        print("   The window will be positioned on the right side of your screen.")
    elif env.terminal_type == terminal.TerminalType.NONE:
        print("\nNo supported terminal detected.")
        print("   Supported: iTerm2, tmux, Apple Terminal")
    return 0


_COMMANDS = {
    "show": _cmd_show,
    "spawn": _cmd_spawn,
    "env": _cmd_env,
}


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)
    sys.exit(_COMMANDS[args.command](parser, args))


if __name__ == "__main__":
    main()
