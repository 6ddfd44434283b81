"""Summaries of finished games for a player's history."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from chiptracker.ledger.models import SessionState


@dataclass
class PlayerResult:
    """How one participant finished a game."""
    player: str
    buy_in: Decimal
    returned: Decimal
    balance: Decimal

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "player": self.player,
            "buyIn": str(self.buy_in),
            "returned": str(self.returned),
            "balance": str(self.balance),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerResult":
        """Create from dictionary."""
        return cls(
            player=data["player"],
            buy_in=Decimal(str(data["buyIn"])),
            returned=Decimal(str(data["returned"])),
            balance=Decimal(str(data["balance"])),
        )


@dataclass
class GameSummary:
    """Archived outcome of a session."""
    tracker_id: Optional[str]
    played_at: datetime
    total_buy_in: Decimal
    pot_remaining: Decimal
    results: list[PlayerResult] = field(default_factory=list)

    @property
    def biggest_winner(self) -> Optional[PlayerResult]:
        winners = [r for r in self.results if r.balance > 0]
        return max(winners, key=lambda r: r.balance) if winners else None

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "trackerId": self.tracker_id,
            "playedAt": self.played_at.isoformat(),
            "totalBuyIn": str(self.total_buy_in),
            "potRemaining": str(self.pot_remaining),
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameSummary":
        """Create from dictionary."""
        return cls(
            tracker_id=data.get("trackerId"),
            played_at=datetime.fromisoformat(data["playedAt"]),
            total_buy_in=Decimal(str(data.get("totalBuyIn", "0"))),
            pot_remaining=Decimal(str(data.get("potRemaining", "0"))),
            results=[PlayerResult.from_dict(r) for r in data.get("results", [])],
        )


def summarize_session(state: SessionState, played_at: Optional[datetime] = None) -> GameSummary:
    """Build a history entry from a session.

    Args:
        state: The finished session.
        played_at: When the game ended (now by default).

    Returns:
        Summary with one result per participant, best balance first.
    """
    results = [
        PlayerResult(
            player=state.display_name_of(p),
            buy_in=p.money_put_in,
            returned=p.money_returned,
            balance=p.balance,
        )
        for p in state.participants
    ]
    results.sort(key=lambda r: r.balance, reverse=True)

    return GameSummary(
        tracker_id=state.tracker_id,
        played_at=played_at or datetime.now(timezone.utc),
        total_buy_in=sum((p.money_put_in for p in state.participants), Decimal("0")),
        pot_remaining=sum((p.in_pot for p in state.participants), Decimal("0")),
        results=results,
    )
