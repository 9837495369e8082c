"""Interactive operator console for the running engine."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
import os

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from groupwarden.runtime import Runtime
from groupwarden.util.format_utils import humanize_timestamp, mask_phone, truncate
from groupwarden.util.logger import get_logger

# Box drawing helpers for aligned console output
BOX_WIDTH = 45

def box_title(title: str) -> list[str]:
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    return [
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝"
    ]

logger = get_logger("console")

# Type alias for command handler functions
CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


@dataclass
class Command:
    """Definition of a console command."""
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        """Check if input matches this command or any alias."""
        return input_cmd == self.name or input_cmd in self.aliases


def console_print(message: str, style: str = "") -> None:
    """Render text via prompt_toolkit without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


class ConsoleControl:
    """Console-driven lifecycle controls plus access to the running engine."""

    def __init__(self) -> None:
        self.shutdown_event = asyncio.Event()
        self.restart_event = asyncio.Event()
        self._runtime: Runtime | None = None

    def set_runtime(self, runtime: Runtime | None) -> None:
        self._runtime = runtime

    @property
    def runtime(self) -> Runtime | None:
        return self._runtime

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def request_restart(self) -> None:
        self.restart_event.set()

    def stop(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def is_restart_requested(self) -> bool:
        return self.restart_event.is_set()


def _require_runtime(control: ConsoleControl) -> Runtime | None:
    if control.runtime is None:
        console_print("Engine is not running.", "ansiyellow")
    return control.runtime


def _parse_id(value: str) -> int | None:
    try:
        return int(value.lstrip("#"))
    except ValueError:
        console_print(f"'{value}' is not a valid log id.", "ansired")
        return None


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    """Display available commands and their descriptions."""
    for line in box_title("Console Commands Reference"):
        console_print(line, "ansigreen")

    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")

    console_print("")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Display engine status information."""
    for line in box_title("Engine Status"):
        console_print(line, "ansiblue")

    runtime = control.runtime
    if runtime is None:
        console_print("  Engine:     🔴 Not initialized")
        console_print("")
        return

    ai_status = "🟢 Configured" if runtime.gateway.is_available else "🔴 No API key (local checks only)"
    db_status = "🟢 Open" if runtime.database.is_initialized else "🔴 Closed"
    sweeper_status = "🟢 Running" if runtime.sweeper.is_running else "🔴 Stopped"

    console_print(f"  Classifier: {ai_status}")
    console_print(f"  Database:   {db_status} ({runtime.database.db_path})")
    console_print(f"  Rooms:      {len(runtime.rooms)} known, {len(runtime.rooms.monitored_rooms())} monitored")
    console_print(f"  Pending:    {await runtime.verification.pending_count()} challenge(s)")
    console_print(f"  Sweeper:    {sweeper_status} (every {runtime.sweeper.interval:.0f}s)")

    report = runtime.sweeper.last_report
    if report is not None:
        console_print(
            f"  Last sweep: {report.expired} expired, {report.removed} removed, {report.failed} failed"
        )
    console_print("")


async def cmd_rooms(control: ConsoleControl, args: list[str]) -> None:
    """List monitored rooms; ``rooms refresh`` reloads them from the transport."""
    runtime = _require_runtime(control)
    if runtime is None:
        return

    if args and args[0].lower() == "refresh":
        count = await runtime.rooms.refresh()
        console_print(f"Reloaded {count} rooms.", "ansigreen")

    monitored = runtime.rooms.monitored_rooms()
    for line in box_title(f"Monitored Rooms ({len(monitored)})"):
        console_print(line, "ansiblue")

    for name, room_id in monitored:
        console_print(f"  • {name} ({room_id})")

    missing = [n for n in runtime.rooms.monitored_names if runtime.rooms.id_of(n) is None]
    for name in missing:
        console_print(f"  • {name} (not found)", "ansiyellow")
    console_print("")


async def cmd_logs(control: ConsoleControl, args: list[str]) -> None:
    """Show the most recent moderation log entries."""
    runtime = _require_runtime(control)
    if runtime is None:
        return

    limit = 20
    if args:
        try:
            limit = max(1, int(args[0]))
        except ValueError:
            console_print(f"'{args[0]}' is not a number.", "ansired")
            return

    entries = await runtime.ledger.list_recent(limit)
    if not entries:
        console_print("No moderation logs.", "ansiyellow")
        return

    for line in box_title(f"Moderation Logs ({len(entries)})"):
        console_print(line, "ansiblue")

    for entry in entries:
        flags = []
        if entry.restored:
            flags.append("restored")
        if entry.admin_response:
            flags.append(f"admin: {entry.admin_response}")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        room = runtime.rooms.name_of(entry.room_id) or entry.room_id
        console_print(
            f"  #{entry.id} {humanize_timestamp(entry.timestamp)} {room} "
            f"{entry.user_name or mask_phone(entry.user_phone)}: {entry.violation_kind}{suffix}",
            "ansicyan",
        )
        console_print(f"      {truncate(entry.body, 80)}", "ansibrightblack")
    console_print("")


async def cmd_restore(control: ConsoleControl, args: list[str]) -> None:
    """Re-post a deleted message into its room."""
    runtime = _require_runtime(control)
    if runtime is None:
        return
    if not args:
        console_print("Usage: restore <id>", "ansired")
        return

    entry_id = _parse_id(args[0])
    if entry_id is None:
        return

    outcome = await runtime.ledger.restore_message(entry_id, runtime.transport)
    console_print(outcome.message, "ansigreen" if outcome.success else "ansired")


async def cmd_respond(control: ConsoleControl, args: list[str]) -> None:
    """Apply an admin disposition (ignore/ban/mute) to a log entry."""
    runtime = _require_runtime(control)
    if runtime is None:
        return
    if len(args) < 2:
        console_print("Usage: respond <id> <ignore|ban|mute>", "ansired")
        return

    entry_id = _parse_id(args[0])
    if entry_id is None:
        return

    reply = await runtime.listener.handle_admin_reply(entry_id, " ".join(args[1:]))
    console_print(reply)


async def cmd_clear_logs(control: ConsoleControl, args: list[str]) -> None:
    """Delete every moderation log entry."""
    runtime = _require_runtime(control)
    if runtime is None:
        return
    removed = await runtime.ledger.clear_all()
    console_print(f"Cleared {removed} moderation log entries.", "ansigreen")


async def cmd_sweep(control: ConsoleControl, args: list[str]) -> None:
    """Run an expiry sweep immediately."""
    runtime = _require_runtime(control)
    if runtime is None:
        return
    report = await runtime.sweeper.sweep_once()
    if report is None:
        console_print("Sweep failed; see the log for details.", "ansired")
        return
    console_print(
        f"Sweep: {report.expired} expired, {report.removed} removed, "
        f"{report.failed} failed, {report.deleted} records deleted.",
        "ansigreen",
    )


async def cmd_verified(control: ConsoleControl, args: list[str]) -> None:
    """Show verified participant counts per room and the latest verifications."""
    runtime = _require_runtime(control)
    if runtime is None:
        return

    for line in box_title("Verified Participants"):
        console_print(line, "ansiblue")

    counts = await runtime.database.verified_counts_by_room()
    if not counts:
        console_print("  Nobody has been verified yet.", "ansiyellow")
    for room_id, count in counts:
        console_print(f"  • {runtime.rooms.name_of(room_id) or room_id}: {count}")

    latest = await runtime.database.last_verified(10)
    if latest:
        console_print("\n  Latest:", "ansicyan")
        for user in latest:
            room = runtime.rooms.name_of(user.room_id) or user.room_id
            console_print(f"    {mask_phone(user.phone)} in {room} at {humanize_timestamp(user.verified_at)}")
    console_print("")


async def cmd_stats(control: ConsoleControl, args: list[str]) -> None:
    """Message statistics for a monitored room over the last N days."""
    runtime = _require_runtime(control)
    if runtime is None:
        return
    if not args:
        console_print("Usage: stats <room name> [days]", "ansired")
        return

    days = 7
    if len(args) > 1 and args[-1].isdigit():
        days = int(args[-1])
        args = args[:-1]

    name = " ".join(args)
    room_id = runtime.rooms.id_of(name)
    if room_id is None:
        console_print(f"Room '{name}' not found.", "ansired")
        return

    for line in box_title(f"{name} (last {days} days)"):
        console_print(line, "ansiblue")

    console_print(f"  Messages:   {await runtime.database.count_messages(room_id, days)}")
    console_print(f"  Senders:    {await runtime.database.count_unique_senders(room_id, days)}")
    histogram = await runtime.database.message_histogram(room_id, days)
    for day, count in histogram.items():
        console_print(f"    {day:<10} {count}")
    console_print("")


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    """Clear the console screen."""
    os.system('cls' if os.name == 'nt' else 'clear')
    console_print("Console cleared.", "ansigreen")


async def cmd_restart(control: ConsoleControl, args: list[str]) -> None:
    """Request a full engine restart."""
    console_print("Restart requested. Engine will shut down and restart...", "ansiyellow")
    control.request_restart()
    control.request_shutdown()


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    """Request graceful shutdown."""
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display classifier, database, room and sweeper status",
    ),
    Command(
        name="rooms",
        handler=cmd_rooms,
        aliases=["groups"],
        description="List monitored rooms",
        usage="rooms [refresh]",
    ),
    Command(
        name="logs",
        handler=cmd_logs,
        aliases=["log"],
        description="Show recent moderation log entries",
        usage="logs [limit]",
    ),
    Command(
        name="restore",
        handler=cmd_restore,
        aliases=[],
        description="Re-post a deleted message into its room",
        usage="restore <id>",
    ),
    Command(
        name="respond",
        handler=cmd_respond,
        aliases=["reply"],
        description="Answer a moderation alert (ignore, ban or mute)",
        usage="respond <id> <ignore|ban|mute>",
    ),
    Command(
        name="clear-logs",
        handler=cmd_clear_logs,
        aliases=[],
        description="Delete every moderation log entry",
    ),
    Command(
        name="sweep",
        handler=cmd_sweep,
        aliases=[],
        description="Remove participants whose challenge has expired, now",
    ),
    Command(
        name="verified",
        handler=cmd_verified,
        aliases=[],
        description="Show verified participants per room",
    ),
    Command(
        name="stats",
        handler=cmd_stats,
        aliases=[],
        description="Message statistics for a monitored room",
        usage="stats <room name> [days]",
    ),
    Command(
        name="clear",
        handler=cmd_clear,
        aliases=["cls"],
        description="Clear the console screen",
    ),
    Command(
        name="restart",
        handler=cmd_restart,
        aliases=["reboot"],
        description="Fully restart the engine",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Gracefully shut down the engine",
    ),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Interpret and execute a single console command line."""
    if not command.strip():
        return

    parts = command.strip().split()
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except Exception as exc:
                logger.exception("Error executing command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansired")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Run the interactive console until shutdown is requested."""
    session = PromptSession("> ")

    for line in box_title("Groupwarden Interactive Console"):
        console_print(line, "ansigreen")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansiyellow")
                control.request_shutdown()
                break
            except Exception as exc:
                logger.exception("Error in console input loop: %s", exc)
                console_print(f"Error: {exc}", "ansired")


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console alongside the engine, cleaning up automatically."""
    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.stop()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
