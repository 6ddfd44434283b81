"""House settlement: a single payer settles every participant directly."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from chiptracker.ledger.models import Participant, display_name


@dataclass
class HouseLine:
    """One participant's row in the house settlement."""
    participant_id: int
    player: str
    buy_in: Decimal
    balance: Decimal
    house_pays: Decimal
    
    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "participant_id": self.participant_id,
            "player": self.player,
            "buy_in": str(self.buy_in),
            "balance": str(self.balance),
            "house_pays": str(self.house_pays),
        }


@dataclass
class HouseReport:
    """Payouts when the house already holds every buy-in."""
    lines: list[HouseLine] = field(default_factory=list)
    total_collected: Decimal = Decimal("0")
    total_paid_out: Decimal = Decimal("0")
    
    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "lines": [line.to_dict() for line in self.lines],
            "total_collected": str(self.total_collected),
            "total_paid_out": str(self.total_paid_out),
        }


def house_settlement(participants: Iterable[Participant]) -> HouseReport:
    """Calculate what the house pays each participant.
    
    The house pays back buy-in plus balance, which is what the participant
    returned, floored at zero.
    
    Args:
        participants: Session participants in display order.
        
    Returns:
        Report with one line per participant and collected/paid totals.
    """
    report = HouseReport()
    for ordinal, p in enumerate(participants, start=1):
        house_pays = max(Decimal("0"), p.money_put_in + p.balance)
        report.lines.append(HouseLine(
            participant_id=p.id,
            player=display_name(p.name, ordinal),
            buy_in=p.money_put_in,
            balance=p.balance,
            house_pays=house_pays,
        ))
        report.total_collected += p.money_put_in
        report.total_paid_out += house_pays
    return report
