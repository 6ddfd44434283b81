"""Plain-text rendering of standings, logs and settlement reports."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from chiptracker.ledger.ledger import ParticipantView
from chiptracker.ledger.models import Transaction, TransactionKind
from chiptracker.settlement.house import HouseReport
from chiptracker.settlement.players import PlayerSettlementReport

CENTS = Decimal("0.01")


def format_money(amount: Decimal, signed: bool = False) -> str:
    """Format a dollar amount to cents.

    Args:
        amount: Amount to format.
        signed: Prefix positive amounts with "+".

    Returns:
        e.g. "$1,250.00", "-$50.00", "+$50.00".
    """
    rounded = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    text = f"${abs(rounded):,.2f}"
    if rounded < 0:
        return f"-{text}"
    if signed and rounded > 0:
        return f"+{text}"
    return text


def format_standings_table(views: list[ParticipantView]) -> str:
    """Format participant balances as a text table.

    Args:
        views: Participant views from the ledger.

    Returns:
        Formatted table string.
    """
    if not views:
        return "No participants yet."

    lines = [
        "| Player     | Put in     | Returned   | Chips  | Balance    |",
        "|------------|------------|------------|--------|------------|",
    ]

    for v in views:
        lines.append(
            f"| {v.name:<10} | {format_money(v.money_put_in):>10} | "
            f"{format_money(v.money_returned):>10} | {v.chip_count:>6} | "
            f"{format_money(v.balance, signed=True):>10} |"
        )

    return "\n".join(lines)


def format_transaction_log(transactions: Iterable[Transaction]) -> str:
    """Format transactions one per line."""
    lines = []
    for t in transactions:
        verb = "put in" if t.kind == TransactionKind.CONTRIBUTION else "took back"
        when = t.timestamp.strftime("%Y-%m-%d %H:%M")
        lines.append(f"{when}  {t.participant_name} {verb} {format_money(t.amount)} ({t.chips} chips)")

    if not lines:
        return "No transactions recorded."
    return "\n".join(lines)


def format_house_report(report: HouseReport) -> str:
    """Format a house settlement as a text table."""
    if not report.lines:
        return "No participants yet."

    lines = [
        "| Player     | Buy-in     | Balance    | House pays |",
        "|------------|------------|------------|------------|",
    ]
    for line in report.lines:
        lines.append(
            f"| {line.player:<10} | {format_money(line.buy_in):>10} | "
            f"{format_money(line.balance, signed=True):>10} | "
            f"{format_money(line.house_pays):>10} |"
        )
    lines.append("")
    lines.append(f"Total collected: {format_money(report.total_collected)}")
    lines.append(f"Total paid out:  {format_money(report.total_paid_out)}")
    return "\n".join(lines)


def format_settlement_plan(report: PlayerSettlementReport) -> str:
    """Format a player-to-player plan grouped by payer."""
    lines = []
    if report.all_even:
        lines.append("All even - nobody owes anything.")

    for group in report.by_payer():
        lines.append(f"{group.payer} pays:")
        for payment in group.payments:
            lines.append(f"  {format_money(payment.amount):>10} to {payment.payee}")
        lines.append(f"  {format_money(group.subtotal):>10} total")

    if report.mismatch:
        lines.append(
            f"Warning: winnings ({format_money(report.total_winnings)}) and "
            f"losses ({format_money(report.total_losses)}) do not match."
        )
    return "\n".join(lines)
