#!/usr/bin/env python3
"""CLI tool for running and settling a tracked poker session."""
import asyncio
import sys
from decimal import Decimal
from typing import Any, Callable, Optional

from chiptracker.history import summarize_session
from chiptracker.ledger.ledger import Ledger
from chiptracker.ledger.models import (
    ChipValueMode,
    InvalidSessionConfig,
    SessionConfig,
    SessionState,
    create_session,
)
from chiptracker.ledger.results import OperationResult
from chiptracker.settlement.formatting import (
    format_house_report,
    format_money,
    format_settlement_plan,
    format_standings_table,
    format_transaction_log,
)
from chiptracker.settlement.house import house_settlement
from chiptracker.settlement.players import player_settlement
from chiptracker.state.history_store import history_store
from chiptracker.state.redis_client import redis_client
from chiptracker.state.session_store import snapshot_store


class CommandError(Exception):
    """Raised for bad command-line input."""


def parse_chips_arg(text: str) -> Any:
    """Parse "white=3,red=2" into a breakdown; anything else is passed through."""
    if "=" not in text:
        return text
    breakdown = {}
    for part in text.split(","):
        color, _, count = part.partition("=")
        if not color.strip() or not count.strip():
            raise CommandError(f"Bad chip breakdown: {text}")
        breakdown[color.strip()] = count.strip()
    return breakdown


def parse_participant_id(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise CommandError(f"Participant id must be a number: {text}")


async def _load(tracker_id: str) -> SessionState:
    state = await snapshot_store.load_snapshot(tracker_id)
    if state is None:
        raise CommandError(f"No session found for '{tracker_id}'.")
    return state


async def _apply(tracker_id: str, operation: Callable[[Ledger], OperationResult]) -> None:
    """Load a session, run one mutation, and save it if anything changed."""
    state = await _load(tracker_id)
    ledger = Ledger(state)
    result = operation(ledger)

    if not result.success:
        raise CommandError(result.error_message or "Operation failed.")

    if result.transaction:
        t = result.transaction
        print(f"{t.participant_name}: {t.kind.value} of {format_money(t.amount)} ({t.chips} chips)")
    elif result.participant:
        print(f"Participant {result.participant.id}: {state.display_name_of(result.participant)}")

    for warning in result.warnings:
        print(f"Warning: {warning.value} (total chips {ledger.total_chips()})")

    if result.changed:
        saved = await snapshot_store.save_snapshot(state)
        if not saved.acknowledged:
            raise CommandError(f"Change applied but not saved: {saved.error_message}")


async def new_session(tracker_id: str, stack_value: str = None, chips_per_stack: str = None,
                      mode: str = "uniform"):
    """Create an empty session."""
    defaults = SessionConfig()
    try:
        session_config = SessionConfig(
            chip_value_mode=ChipValueMode(mode),
            stack_unit_value=Decimal(stack_value) if stack_value else defaults.stack_unit_value,
            chips_per_stack=int(chips_per_stack) if chips_per_stack else defaults.chips_per_stack,
        )
    except InvalidSessionConfig as e:
        raise CommandError(str(e))
    except (ArithmeticError, ValueError):
        raise CommandError("Usage: new <tracker> [stack_value] [chips_per_stack] [uniform|per_color]")

    state = create_session(session_config, tracker_id=tracker_id)
    saved = await snapshot_store.save_snapshot(state)
    if not saved.acknowledged:
        raise CommandError(f"Could not save session: {saved.error_message}")
    print(f"Created session '{tracker_id}' "
          f"({session_config.chips_per_stack} chips per {format_money(session_config.stack_unit_value)} stack)")


async def add_participant(tracker_id: str, name: str, amount: str = "0"):
    """Add a participant."""
    await _apply(tracker_id, lambda ledger: ledger.add_participant(name, amount))


async def buy_in(tracker_id: str, participant_id: str, chips: str):
    """Record a contribution."""
    pid = parse_participant_id(participant_id)
    contribution = parse_chips_arg(chips)
    await _apply(tracker_id, lambda ledger: ledger.record_contribution(pid, contribution))


async def cash_out(tracker_id: str, participant_id: str, chips: str):
    """Record a return."""
    pid = parse_participant_id(participant_id)
    returned = parse_chips_arg(chips)
    await _apply(tracker_id, lambda ledger: ledger.record_return(pid, returned))


async def rename(tracker_id: str, participant_id: str, name: str = ""):
    """Rename a participant."""
    pid = parse_participant_id(participant_id)
    await _apply(tracker_id, lambda ledger: ledger.rename_participant(pid, name))


async def show(tracker_id: str):
    """Show balances and totals."""
    ledger = Ledger(await _load(tracker_id), can_edit=False)
    print(format_standings_table(ledger.participant_views()))
    print(f"\nPot: {format_money(ledger.total_pot())}   Chips out: {ledger.total_chips()}")
    if ledger.has_negative_chip_total():
        print("Warning: more chips returned than were handed out.")


async def show_log(tracker_id: str):
    """Show the transaction log, newest first."""
    ledger = Ledger(await _load(tracker_id), can_edit=False)
    print(format_transaction_log(ledger.transaction_log()))


async def house(tracker_id: str):
    """Show the house settlement."""
    state = await _load(tracker_id)
    print(format_house_report(house_settlement(state.participants)))


async def settle(tracker_id: str):
    """Show the player-to-player settlement."""
    state = await _load(tracker_id)
    print(format_settlement_plan(player_settlement(state.participants)))


async def archive(owner_id: str, tracker_id: str):
    """Record a session in an owner's game history."""
    summary = summarize_session(await _load(tracker_id))
    await history_store.record_game(owner_id, summary)
    print(f"Archived '{tracker_id}' for {owner_id}.")


async def show_history(owner_id: str):
    """List an owner's archived games."""
    games = await history_store.list_games(owner_id)
    if not games:
        print("No games recorded.")
        return
    for index, game in enumerate(games):
        label = game.tracker_id or f"index-{index}"
        top = game.biggest_winner
        leader = f"{top.player} {format_money(top.balance, signed=True)}" if top else "all even"
        print(f"{game.played_at:%Y-%m-%d}  {label:<20} buy-ins {format_money(game.total_buy_in):>10}  {leader}")


async def forget(owner_id: str, identifier: str):
    """Remove a game from an owner's history."""
    if not await history_store.delete_game(owner_id, identifier):
        raise CommandError(f"No game '{identifier}' in history.")
    print(f"Deleted '{identifier}'.")


COMMANDS: dict[str, tuple[Callable, int, int, str]] = {
    "new": (new_session, 1, 4, "new <tracker> [stack_value] [chips_per_stack] [uniform|per_color]"),
    "add": (add_participant, 2, 3, "add <tracker> <name> [amount]"),
    "buyin": (buy_in, 3, 3, "buyin <tracker> <participant_id> <stacks|white=3,red=2>"),
    "cashout": (cash_out, 3, 3, "cashout <tracker> <participant_id> <chips|white=3,red=2>"),
    "rename": (rename, 2, 3, "rename <tracker> <participant_id> [name]"),
    "show": (show, 1, 1, "show <tracker>"),
    "log": (show_log, 1, 1, "log <tracker>"),
    "house": (house, 1, 1, "house <tracker>"),
    "settle": (settle, 1, 1, "settle <tracker>"),
    "archive": (archive, 2, 2, "archive <owner> <tracker>"),
    "history": (show_history, 1, 1, "history <owner>"),
    "forget": (forget, 2, 2, "forget <owner> <tracker|index-N>"),
}


def print_usage():
    """Print usage information."""
    commands = "\n".join(f"  {usage}" for _, _, _, usage in COMMANDS.values())
    print(f"""
Chip Tracker CLI

Usage:
  python -m chiptracker.cli <command> [args]

Commands:
{commands}

Examples:
  python -m chiptracker.cli new friday 20 20
  python -m chiptracker.cli add friday alice 20
  python -m chiptracker.cli cashout friday 0 35
  python -m chiptracker.cli settle friday
""")


async def run(command: Callable, args: list[str]) -> None:
    await redis_client.connect()
    try:
        await command(*args)
    finally:
        await redis_client.disconnect()


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print_usage()
        sys.exit(1)

    command = argv[0].lower()

    if command in ("help", "-h", "--help"):
        print_usage()
        return

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print_usage()
        sys.exit(1)

    func, required, allowed, usage = COMMANDS[command]
    args = argv[1:]
    if not required <= len(args) <= allowed:
        print("Error: Wrong number of arguments.")
        print(f"Usage: python -m chiptracker.cli {usage}")
        sys.exit(1)

    try:
        asyncio.run(run(func, args))
    except CommandError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
