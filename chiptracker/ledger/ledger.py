"""Session ledger: participants, contributions, returns and totals."""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from chiptracker.ledger.chips import (
    InvalidChipInput,
    breakdown_to_delta,
    chip_value,
    chips_for_amount,
    chips_to_delta,
    parse_decimal,
    stacks_to_delta,
)
from chiptracker.ledger.models import (
    ChipColor,
    Participant,
    SessionConfig,
    SessionState,
    Transaction,
    TransactionKind,
)
from chiptracker.ledger.results import LedgerError, LedgerWarning, OperationResult
from chiptracker.utils.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ParticipantView:
    """Read-only snapshot of a participant with derived figures."""
    id: int
    name: str
    money_put_in: Decimal
    money_returned: Decimal
    chip_count: int
    balance: Decimal

    def to_dict(self) -> dict:
        """Convert to dictionary for display."""
        return {
            "id": self.id,
            "name": self.name,
            "money_put_in": str(self.money_put_in),
            "money_returned": str(self.money_returned),
            "chip_count": self.chip_count,
            "balance": str(self.balance),
        }


class Ledger:
    """Records buy-ins and returns for one session and derives totals.

    The ledger mutates the ``SessionState`` it is given; the caller owns that
    state and decides when to persist it, using ``OperationResult.changed``.
    Writes are expected to be serialized by the caller.
    """

    def __init__(
        self,
        state: SessionState,
        can_edit: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize a ledger handle.

        Args:
            state: Session to operate on.
            can_edit: Whether the caller may mutate this session.
            clock: Source of transaction timestamps (UTC now by default).
        """
        self.state = state
        self.can_edit = can_edit
        self._clock = clock or _utcnow

    @property
    def config(self) -> SessionConfig:
        return self.state.config

    # Chip values

    def chip_value(self) -> Decimal:
        """Dollar value of a single chip in uniform mode."""
        return chip_value(self.config)

    def color_values(self) -> dict[ChipColor, Decimal]:
        """Dollar value of each chip color."""
        return dict(self.config.color_values)

    # Mutations

    def add_participant(self, name: str, initial_contribution: Any = 0) -> OperationResult:
        """Add a participant with an optional opening buy-in.

        Args:
            name: Participant name; blank renders as "Person N".
            initial_contribution: Dollar amount put in on joining.

        Returns:
            Result carrying the new participant and, for a positive
            contribution, its transaction.
        """
        if not self.can_edit:
            return self._read_only()
        try:
            amount = parse_decimal(initial_contribution, "Initial contribution")
            chips = chips_for_amount(self.config, amount)
        except InvalidChipInput as e:
            return OperationResult.failure(LedgerError.INVALID_INPUT, str(e))

        next_id = max((p.id for p in self.state.participants), default=-1) + 1
        participant = Participant(
            id=next_id,
            name=(name or "").strip(),
            money_put_in=amount,
            money_returned=Decimal("0"),
            chip_count=chips,
        )
        self.state.participants.append(participant)

        transaction = None
        if amount > 0:
            transaction = self._append_transaction(
                participant, TransactionKind.CONTRIBUTION, amount, participant.chip_count
            )

        logger.info(
            f"Added {self.state.display_name_of(participant)} (id {participant.id}) "
            f"with {amount} / {participant.chip_count} chips"
        )
        return self._success(participant, transaction)

    def record_contribution(self, participant_id: int, contribution: Any) -> OperationResult:
        """Record chips bought into the pot.

        Args:
            participant_id: Who is buying in.
            contribution: Stack count in uniform mode, or a mapping of
                color to chip count in per-color mode.

        Returns:
            Result carrying the contribution transaction.
        """
        if not self.can_edit:
            return self._read_only()
        participant = self.state.get_participant(participant_id)
        if participant is None:
            return self._unknown(participant_id)

        try:
            if self.config.is_per_color:
                delta = breakdown_to_delta(self.config, contribution)
            else:
                delta = stacks_to_delta(self.config, contribution)
        except InvalidChipInput as e:
            return OperationResult.failure(LedgerError.INVALID_INPUT, str(e))

        if delta.is_empty:
            return OperationResult.failure(
                LedgerError.EMPTY_CONTRIBUTION, "Contribution must add money or chips"
            )

        participant.money_put_in += delta.amount
        participant.chip_count += delta.chips
        transaction = self._append_transaction(
            participant, TransactionKind.CONTRIBUTION, delta.amount, delta.chips
        )
        logger.info(
            f"Contribution: {transaction.participant_name} +{delta.amount} ({delta.chips} chips)"
        )
        return self._success(participant, transaction)

    def record_return(self, participant_id: int, chips: Any) -> OperationResult:
        """Record chips handed back in exchange for money.

        Returning more chips than the participant holds is allowed and
        drives their chip count negative.

        Args:
            participant_id: Who is cashing out.
            chips: Chip count in uniform mode, or a mapping of color to
                chip count in per-color mode.

        Returns:
            Result carrying the return transaction.
        """
        if not self.can_edit:
            return self._read_only()
        participant = self.state.get_participant(participant_id)
        if participant is None:
            return self._unknown(participant_id)

        try:
            if self.config.is_per_color:
                delta = breakdown_to_delta(self.config, chips)
            else:
                delta = chips_to_delta(self.config, chips)
        except InvalidChipInput as e:
            return OperationResult.failure(LedgerError.INVALID_INPUT, str(e))

        if delta.chips <= 0:
            return OperationResult.failure(
                LedgerError.EMPTY_RETURN, "Return must include at least one chip"
            )

        participant.money_returned += delta.amount
        participant.chip_count -= delta.chips
        transaction = self._append_transaction(
            participant, TransactionKind.RETURN, delta.amount, delta.chips
        )
        logger.info(
            f"Return: {transaction.participant_name} -{delta.amount} ({delta.chips} chips)"
        )
        return self._success(participant, transaction)

    def rename_participant(self, participant_id: int, new_name: str) -> OperationResult:
        """Rename a participant and relabel their past transactions.

        Args:
            participant_id: Who to rename.
            new_name: New name; blank falls back to the placeholder.

        Returns:
            Result carrying the renamed participant.
        """
        if not self.can_edit:
            return self._read_only()
        participant = self.state.get_participant(participant_id)
        if participant is None:
            return self._unknown(participant_id)

        participant.name = (new_name or "").strip()
        shown = self.state.display_name_of(participant)
        relabeled = 0
        for transaction in self.state.transactions:
            if transaction.participant_id == participant_id:
                transaction.participant_name = shown
                relabeled += 1

        logger.info(f"Renamed participant {participant_id} to {shown} ({relabeled} transactions)")
        return OperationResult(success=True, changed=True, participant=participant)

    def reset(self, session_config: Optional[SessionConfig] = None) -> OperationResult:
        """Clear all participants and history, optionally with new settings.

        Args:
            session_config: Chip settings for the next session.

        Returns:
            Result signalling the state change.
        """
        if not self.can_edit:
            return self._read_only()
        self.state.participants.clear()
        self.state.transactions.clear()
        if session_config is not None:
            self.state.config = session_config
        self.state.created_at = self._clock()
        logger.info(f"Reset session {self.state.tracker_id}")
        return OperationResult(success=True, changed=True)

    # Derived totals

    def total_pot(self) -> Decimal:
        """Money still in the pot: sum of put-in minus returned."""
        return sum((p.in_pot for p in self.state.participants), Decimal("0"))

    def total_chips(self) -> int:
        """Chips held across all participants (may be negative)."""
        return sum(p.chip_count for p in self.state.participants)

    def has_negative_chip_total(self) -> bool:
        """True when more chips have come back than were handed out."""
        return self.total_chips() < 0

    # Views

    def participant_views(self) -> list[ParticipantView]:
        """Participants with resolved names and balances, in session order."""
        return [
            ParticipantView(
                id=p.id,
                name=self.state.display_name_of(p),
                money_put_in=p.money_put_in,
                money_returned=p.money_returned,
                chip_count=p.chip_count,
                balance=p.balance,
            )
            for p in self.state.participants
        ]

    def transaction_log(self, most_recent_first: bool = True) -> list[Transaction]:
        """Transactions for display.

        Args:
            most_recent_first: Reverse the stored chronological order.

        Returns:
            A new list; stored order is never changed.
        """
        log = list(self.state.transactions)
        if most_recent_first:
            log.reverse()
        return log

    # Helpers

    def _append_transaction(
        self,
        participant: Participant,
        kind: TransactionKind,
        amount: Decimal,
        chips: int,
    ) -> Transaction:
        next_id = max((t.id for t in self.state.transactions), default=0) + 1
        transaction = Transaction(
            id=next_id,
            participant_id=participant.id,
            participant_name=self.state.display_name_of(participant),
            kind=kind,
            amount=amount,
            timestamp=self._clock(),
            chips=abs(chips),
        )
        self.state.transactions.append(transaction)
        return transaction

    def _success(
        self,
        participant: Participant,
        transaction: Optional[Transaction],
    ) -> OperationResult:
        result = OperationResult(
            success=True,
            changed=True,
            participant=participant,
            transaction=transaction,
        )
        total = self.total_chips()
        if total < 0:
            logger.warning(f"Total chip count is negative ({total}) in session {self.state.tracker_id}")
            result.warnings.append(LedgerWarning.NEGATIVE_CHIP_TOTAL)
        return result

    def _unknown(self, participant_id: int) -> OperationResult:
        return OperationResult.failure(
            LedgerError.UNKNOWN_PARTICIPANT, f"Participant {participant_id} not found"
        )

    def _read_only(self) -> OperationResult:
        return OperationResult.failure(
            LedgerError.READ_ONLY, "This session is read-only for the current user"
        )
