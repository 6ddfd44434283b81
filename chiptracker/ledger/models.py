"""Session, participant and transaction models."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from chiptracker.config import config


class ChipValueMode(str, Enum):
    """How chips map to money."""
    UNIFORM = "uniform"
    PER_COLOR = "per_color"


class ChipColor(str, Enum):
    """The five fixed chip colors."""
    BLACK = "black"
    WHITE = "white"
    GREEN = "green"
    RED = "red"
    BLUE = "blue"


class TransactionKind(str, Enum):
    """Direction of a money/chip movement."""
    CONTRIBUTION = "contribution"
    RETURN = "return"


class InvalidSessionConfig(ValueError):
    """Raised when chip valuation settings are negative or not numbers."""


def display_name(name: str, ordinal: int) -> str:
    """Resolve the name shown for a participant.

    Args:
        name: Stored name, possibly empty.
        ordinal: 1-based position of the participant in the session.

    Returns:
        The name, or a "Person N" placeholder when it is blank.
    """
    name = (name or "").strip()
    return name if name else f"Person {ordinal}"


def default_color_values() -> dict[ChipColor, Decimal]:
    """Per-color chip values from the environment configuration."""
    return {
        ChipColor.BLACK: Decimal(config.chip_value_black),
        ChipColor.WHITE: Decimal(config.chip_value_white),
        ChipColor.GREEN: Decimal(config.chip_value_green),
        ChipColor.RED: Decimal(config.chip_value_red),
        ChipColor.BLUE: Decimal(config.chip_value_blue),
    }


@dataclass(frozen=True)
class SessionConfig:
    """Chip valuation settings, fixed for the lifetime of a session."""
    chip_value_mode: ChipValueMode = ChipValueMode.UNIFORM
    stack_unit_value: Decimal = field(
        default_factory=lambda: Decimal(config.default_stack_value)
    )
    chips_per_stack: int = field(default_factory=lambda: config.default_chips_per_stack)
    color_values: dict[ChipColor, Decimal] = field(default_factory=default_color_values)

    def __post_init__(self):
        if not self.stack_unit_value.is_finite() or self.stack_unit_value < 0:
            raise InvalidSessionConfig(
                f"Stack value must be a non-negative number, got {self.stack_unit_value}"
            )
        if self.chips_per_stack < 0:
            raise InvalidSessionConfig(
                f"Chips per stack cannot be negative, got {self.chips_per_stack}"
            )
        for color, value in self.color_values.items():
            if not value.is_finite() or value < 0:
                raise InvalidSessionConfig(
                    f"{ChipColor(color).value} chip value must be a non-negative number, got {value}"
                )

    @property
    def is_per_color(self) -> bool:
        return self.chip_value_mode == ChipValueMode.PER_COLOR


@dataclass
class Participant:
    """A person taking part in the session."""
    id: int
    name: str
    money_put_in: Decimal = Decimal("0")
    money_returned: Decimal = Decimal("0")
    chip_count: int = 0

    @property
    def balance(self) -> Decimal:
        """Net position: positive is a net winner, negative a net contributor."""
        return self.money_returned - self.money_put_in

    @property
    def in_pot(self) -> Decimal:
        """Money this participant still has in the pot."""
        return self.money_put_in - self.money_returned


@dataclass
class Transaction:
    """A single contribution or return in the session log."""
    id: int
    participant_id: int
    participant_name: str  # Denormalized, rewritten on rename
    kind: TransactionKind
    amount: Decimal
    timestamp: datetime
    chips: int = 0


@dataclass
class SessionState:
    """Everything needed to restore a session: config, people and history."""
    config: SessionConfig = field(default_factory=SessionConfig)
    participants: list[Participant] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    tracker_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_participant(self, participant_id: int) -> Optional[Participant]:
        """Find a participant by id."""
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def ordinal_of(self, participant_id: int) -> int:
        """1-based position of a participant, used for placeholder names."""
        for index, participant in enumerate(self.participants, start=1):
            if participant.id == participant_id:
                return index
        return len(self.participants) + 1

    def display_name_of(self, participant: Participant) -> str:
        """Display name for a participant of this session."""
        return display_name(participant.name, self.ordinal_of(participant.id))


def create_session(
    session_config: Optional[SessionConfig] = None,
    tracker_id: Optional[str] = None,
) -> SessionState:
    """Create an empty session.

    Args:
        session_config: Chip valuation settings (environment defaults if omitted).
        tracker_id: Identifier used as the persistence key.

    Returns:
        A new session with no participants.
    """
    state = SessionState(config=session_config or SessionConfig())
    if tracker_id:
        state.tracker_id = tracker_id
    return state
