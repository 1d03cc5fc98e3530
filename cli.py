#!/usr/bin/env python3
"""Oxyclock CLI.

Interactive command-line front end for the multi-timer countdown engine.
Each line typed at the prompt becomes one or more timer commands queued
on the engine; running timers count down in the background.
"""

import argparse
import logging
import os
import readline
import sys
from typing import Optional

from common.commands import CommandType, TimerCommand
from common.persistence import PersistenceError, PersistenceGateway
from common.timer import TimerState
from common.timer_store import TimerNotFoundError, TimerStore
from engine.config_manager import ConfigManager
from engine.engine_config import EngineConfig
from engine.logging_config import configure_logging
from engine.notifier import NotificationDispatcher
from engine.timer_engine import TimerEngine

logger = logging.getLogger("cli")

HISTORY_FILE = os.path.expanduser("~/.oxyclock_history")
COMMAND_TIMEOUT = 5

EDIT_COMMANDS = {
    "name": TimerCommand.edit_name,
    "hours": TimerCommand.edit_hours,
    "minutes": TimerCommand.edit_minutes,
    "seconds": TimerCommand.edit_seconds,
}

ID_COMMANDS = {
    "delete": TimerCommand.delete_timer,
    "start": TimerCommand.start,
    "stop": TimerCommand.stop,
    "reset": TimerCommand.reset,
    "save": TimerCommand.save_timer,
}


def setup_readline():
    """Setup readline for command history and cursor navigation."""
    try:
        if os.path.exists(HISTORY_FILE):
            readline.read_history_file(HISTORY_FILE)
        readline.set_history_length(1000)
        readline.parse_and_bind("set editing-mode emacs")

        import atexit

        atexit.register(lambda: readline.write_history_file(HISTORY_FILE))

        logger.debug("Readline setup completed with history file: %s", HISTORY_FILE)

    except Exception as e:
        logger.warning("Could not setup readline: %s", e)


def build_engine(config: EngineConfig) -> TimerEngine:
    """Load the persisted timers and wire up the engine.

    Raises:
        PersistenceError: If the baseline state cannot be loaded
    """
    gateway = PersistenceGateway(
        config.storage.state_file,
        create_if_missing=config.storage.create_if_missing,
    )
    store = TimerStore.load(gateway)
    notifier = NotificationDispatcher(config.notification)
    return TimerEngine(
        store, notifier=notifier, tick_interval=config.tick.interval_seconds
    )


def resolve_timer_id(token: str, timers: list[dict]) -> str:
    """Turn a 1-based list position or an id prefix into a timer id.

    Unresolvable tokens are returned unchanged so the engine reports them.
    """
    if token.isdigit() and len(token) <= 3:
        index = int(token) - 1
        if 0 <= index < len(timers):
            return timers[index]["id"]

    matches = [t["id"] for t in timers if t["id"].startswith(token)]
    if len(matches) == 1:
        return matches[0]
    return token


def parse_command(line: str, timers: list[dict]) -> list[TimerCommand]:
    """Translate one prompt line into engine commands.

    Args:
        line: The user's input, without the leading slash
        timers: Current snapshot, used to resolve timer references

    Returns:
        Commands to queue, in order

    Raises:
        ValueError: If the line is not a recognised command
    """
    verb, _, rest = line.strip().partition(" ")
    verb = verb.lower()
    rest = rest.strip()

    if verb == "add":
        return [TimerCommand.add_timer()]

    if verb in ID_COMMANDS:
        if not rest:
            raise ValueError(f"usage: {verb} <timer>")
        return [ID_COMMANDS[verb](resolve_timer_id(rest.split()[0], timers))]

    if verb in EDIT_COMMANDS:
        ref, _, text = rest.partition(" ")
        if not ref:
            raise ValueError(f"usage: {verb} <timer> <text>")
        return [EDIT_COMMANDS[verb](resolve_timer_id(ref, timers), text.strip())]

    if verb == "set":
        parts = rest.split()
        if len(parts) != 4:
            raise ValueError("usage: set <timer> <hours> <minutes> <seconds>")
        timer_id = resolve_timer_id(parts[0], timers)
        return [
            TimerCommand.edit_hours(timer_id, parts[1]),
            TimerCommand.edit_minutes(timer_id, parts[2]),
            TimerCommand.edit_seconds(timer_id, parts[3]),
        ]

    raise ValueError(f"Unknown command: {verb}")


def show_timers(timers: list[dict]):
    if not timers:
        print("\n⏱️  No timers. Type 'add' to create one.")
        return

    print()
    for position, timer in enumerate(timers, 1):
        clock = f"{timer['hours']}:{timer['minutes']}:{timer['seconds']}"
        name = timer["name"] or "(unnamed)"
        print(f"{position:3d}. {clock:>10}  {timer['state']:<8}  {name}  [{timer['id'][:8]}]")


def _print_help_message():
    """Print the help message with available commands."""
    print("\n🔧 Timer Commands (<timer> is a list number or id prefix):")
    print("  add                                 - Add a timer")
    print("  delete <timer>                      - Delete a timer")
    print("  set <timer> <hours> <min> <sec>     - Edit the duration fields")
    print("  hours|minutes|seconds <timer> <n>   - Edit one duration field")
    print("  name <timer> <text>                 - Rename a timer")
    print("  start|stop|reset <timer>            - Control a timer")
    print("  save <timer>                        - Save one timer")
    print("  list                                - Show timers")
    print("\n🔧 Slash commands:")
    print("  /help     - Show this help message")
    print("  /exit     - Stop all timers processing and exit")


def _process_user_input(user_input: str, engine: TimerEngine) -> bool:
    """Process user input and queue the matching commands.

    Returns:
        True if the CLI should exit, False otherwise
    """
    if user_input.startswith("/"):
        command = user_input[1:].lower()
        if command in ("exit", "quit"):
            return True
        if command == "help":
            _print_help_message()
        else:
            print(f"❌ Unknown command: /{command}")
            print("💡 Type /help for available commands")
        return False

    if not user_input:
        return False

    timers = engine.request_snapshot().result(timeout=COMMAND_TIMEOUT)
    if user_input.lower() in ("list", "ls"):
        show_timers(timers)
        return False

    try:
        commands = parse_command(user_input, timers)
        for command in commands:
            result = engine.submit(command).result(timeout=COMMAND_TIMEOUT)
            if command.type == CommandType.START and result.state != TimerState.RUNNING:
                print("⚠️ Timer not started: hours, minutes and seconds must be whole numbers")
    except ValueError as e:
        print(f"❌ {e}")
    except TimerNotFoundError as e:
        print(f"❌ {e}")
    else:
        show_timers(engine.request_snapshot().result(timeout=COMMAND_TIMEOUT))

    return False


def run_interactive_mode(engine: TimerEngine):
    """Run interactive CLI mode."""
    engine.start()
    setup_readline()
    print("\n⏱️  Oxyclock - type /help for commands")
    show_timers(engine.request_snapshot().result(timeout=COMMAND_TIMEOUT))

    try:
        while True:
            try:
                user_input = input("\n➤ ").strip()
            except EOFError:
                break
            if _process_user_input(user_input, engine):
                break
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        engine.stop()
        logger.info("✅ Oxyclock stopped")


def load_configuration(config_file: Optional[str], state_file: Optional[str]) -> EngineConfig:
    config = ConfigManager(config_file).load_config()
    if state_file:
        config.storage.state_file = os.path.expanduser(state_file)
    return config


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Oxyclock multi-timer countdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  oxyclock                               # Interactive mode
  oxyclock --config oxyclock.yaml        # Use custom config
  oxyclock --state-file /tmp/state.json  # Use another state file
  oxyclock --list                        # Print saved timers and exit
        """,
    )
    parser.add_argument("--config", "-c", help="Configuration file path (YAML)")
    parser.add_argument("--state-file", "-f", help="Override the timer state file")
    parser.add_argument(
        "--list", "-l", action="store_true", help="Print saved timers and exit"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    args = parser.parse_args(argv)

    try:
        config = load_configuration(args.config, args.state_file)
    except Exception as e:
        print(f"❌ Failed to load configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        config.logging.log_level = "DEBUG"
    configure_logging(config.logging)

    try:
        engine = build_engine(config)
    except PersistenceError as e:
        logger.error(f"❌ Cannot load saved timers: {e}")
        sys.exit(1)

    if args.list:
        show_timers(engine.snapshot())
        return

    run_interactive_mode(engine)


if __name__ == "__main__":
    main()
