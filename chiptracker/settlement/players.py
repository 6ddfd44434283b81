"""Player-to-player settlement: losers pay winners directly."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from chiptracker.config import config
from chiptracker.ledger.chips import parse_decimal
from chiptracker.ledger.models import Participant, display_name
from chiptracker.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_EPSILON = Decimal(config.settlement_epsilon)


@dataclass
class Payment:
    """A single transfer from a loser to a winner."""
    payer_id: int
    payer: str
    payee_id: int
    payee: str
    amount: Decimal

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "payer_id": self.payer_id,
            "payer": self.payer,
            "payee_id": self.payee_id,
            "payee": self.payee,
            "amount": str(self.amount),
        }


@dataclass
class PayerGroup:
    """All transfers made by one payer."""
    payer_id: int
    payer: str
    payments: list[Payment] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0"))


@dataclass
class PlayerSettlementReport:
    """Transfer plan between winners and losers."""
    payments: list[Payment] = field(default_factory=list)
    total_winnings: Decimal = Decimal("0")
    total_losses: Decimal = Decimal("0")
    epsilon: Decimal = DEFAULT_EPSILON

    @property
    def all_even(self) -> bool:
        """Nobody won or lost anything."""
        return self.total_winnings == 0 and self.total_losses == 0

    @property
    def mismatch(self) -> bool:
        """Winnings and losses disagree beyond rounding tolerance."""
        return abs(self.total_winnings - self.total_losses) > self.epsilon

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0"))

    def by_payer(self) -> list[PayerGroup]:
        """Group payments by payer, in order of each payer's first payment."""
        groups: dict[int, PayerGroup] = {}
        for payment in self.payments:
            group = groups.get(payment.payer_id)
            if group is None:
                group = PayerGroup(payer_id=payment.payer_id, payer=payment.payer)
                groups[payment.payer_id] = group
            group.payments.append(payment)
        return list(groups.values())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "payments": [p.to_dict() for p in self.payments],
            "groups": [
                {
                    "payer_id": g.payer_id,
                    "payer": g.payer,
                    "payments": [p.to_dict() for p in g.payments],
                    "subtotal": str(g.subtotal),
                }
                for g in self.by_payer()
            ],
            "total_winnings": str(self.total_winnings),
            "total_losses": str(self.total_losses),
            "all_even": self.all_even,
            "mismatch": self.mismatch,
        }


@dataclass
class _Side:
    participant_id: int
    name: str
    remaining: Decimal


def player_settlement(
    participants: Iterable[Participant],
    epsilon: Optional[Any] = None,
) -> PlayerSettlementReport:
    """Build a transfer plan that settles every balance between players.

    Winners and losers are each sorted by size, largest first, and the
    largest winner is filled from the largest losers before moving on. This
    keeps the number of transfers low in typical games but is not a
    guaranteed minimum; callers may rely on this exact matching order.

    Args:
        participants: Session participants in display order.
        epsilon: Rounding tolerance (defaults to SETTLEMENT_EPSILON).

    Returns:
        The payment plan with totals and consistency flags.

    Raises:
        InvalidChipInput: If epsilon is not a non-negative number.
    """
    tolerance = parse_decimal(epsilon, "Epsilon") if epsilon is not None else DEFAULT_EPSILON

    winners: list[_Side] = []
    losers: list[_Side] = []
    for ordinal, p in enumerate(participants, start=1):
        balance = p.balance
        if balance > 0:
            winners.append(_Side(p.id, display_name(p.name, ordinal), balance))
        elif balance < 0:
            losers.append(_Side(p.id, display_name(p.name, ordinal), -balance))

    # sort() is stable, so equal balances keep session order
    winners.sort(key=lambda s: s.remaining, reverse=True)
    losers.sort(key=lambda s: s.remaining, reverse=True)

    report = PlayerSettlementReport(
        total_winnings=sum((s.remaining for s in winners), Decimal("0")),
        total_losses=sum((s.remaining for s in losers), Decimal("0")),
        epsilon=tolerance,
    )

    for winner in winners:
        for loser in losers:
            if winner.remaining <= tolerance:
                break
            if loser.remaining <= tolerance:
                continue
            amount = min(winner.remaining, loser.remaining)
            report.payments.append(Payment(
                payer_id=loser.participant_id,
                payer=loser.name,
                payee_id=winner.participant_id,
                payee=winner.name,
                amount=amount,
            ))
            winner.remaining -= amount
            loser.remaining -= amount

    if report.mismatch:
        logger.warning(
            f"Winnings ({report.total_winnings}) and losses ({report.total_losses}) "
            f"do not balance"
        )

    return report
