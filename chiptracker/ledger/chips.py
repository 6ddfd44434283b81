"""Conversions between money, stacks and chips."""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping

from chiptracker.ledger.models import ChipColor, SessionConfig

# Largest stack count, chip count or dollar amount accepted in one operation
MAX_QUANTITY = Decimal("1e12")


class InvalidChipInput(ValueError):
    """Raised when an amount, stack count or chip breakdown cannot be used."""


@dataclass(frozen=True)
class ChipDelta:
    """Money and chips moved by one contribution or return."""
    amount: Decimal
    chips: int

    @property
    def is_empty(self) -> bool:
        return self.amount == 0 and self.chips == 0


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole chip, halves away from zero."""
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def parse_decimal(value: Any, what: str = "Amount") -> Decimal:
    """Parse a non-negative finite decimal.

    Args:
        value: Number or numeric string.
        what: Label used in the error message.

    Returns:
        The parsed value.

    Raises:
        InvalidChipInput: If the value is not numeric, negative or too large.
    """
    if isinstance(value, bool):
        raise InvalidChipInput(f"{what} must be a number")
    try:
        # str() keeps floats like 0.1 from dragging in binary noise
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidChipInput(f"{what} must be a number")
    if not parsed.is_finite():
        raise InvalidChipInput(f"{what} must be a number")
    if parsed < 0:
        raise InvalidChipInput(f"{what} cannot be negative")
    if parsed > MAX_QUANTITY:
        raise InvalidChipInput(f"{what} is too large")
    return parsed


def parse_count(value: Any, what: str = "Chip count") -> int:
    """Parse a non-negative whole number of chips."""
    parsed = parse_decimal(value, what)
    if parsed != parsed.to_integral_value():
        raise InvalidChipInput(f"{what} must be a whole number")
    return int(parsed)


def parse_breakdown(breakdown: Any) -> dict[ChipColor, int]:
    """Parse a per-color chip breakdown.

    Args:
        breakdown: Mapping of color (name or ChipColor) to chip count.

    Returns:
        Counts keyed by ChipColor. Colors not mentioned are omitted.

    Raises:
        InvalidChipInput: On unknown colors or invalid counts.
    """
    if not isinstance(breakdown, Mapping):
        raise InvalidChipInput("Chip breakdown must map colors to counts")

    counts: dict[ChipColor, int] = {}
    for key, count in breakdown.items():
        try:
            color = ChipColor(key.lower() if isinstance(key, str) else key)
        except ValueError:
            raise InvalidChipInput(f"Unknown chip color: {key}")
        counts[color] = counts.get(color, 0) + parse_count(count, f"{color.value} count")
    return counts


def chip_value(session_config: SessionConfig) -> Decimal:
    """Dollar value of one chip in uniform mode (0 when chips per stack is 0)."""
    if session_config.chips_per_stack > 0:
        return session_config.stack_unit_value / session_config.chips_per_stack
    return Decimal("0")


def chips_for_amount(session_config: SessionConfig, amount: Decimal) -> int:
    """Number of chips worth a dollar amount at the stack rate.

    Per-color sessions have no single chip value, so the stack definition
    is used for both modes.

    Raises:
        InvalidChipInput: If the conversion overflows.
    """
    value = chip_value(session_config)
    if value <= 0:
        return 0
    try:
        return round_half_up(amount / value)
    except ArithmeticError:
        raise InvalidChipInput("Amount is too large for this session's chip value")


def stacks_to_delta(session_config: SessionConfig, stacks: Any) -> ChipDelta:
    """Convert a (possibly fractional) stack count into money and chips."""
    count = parse_decimal(stacks, "Stack count")
    try:
        return ChipDelta(
            amount=count * session_config.stack_unit_value,
            chips=round_half_up(count * session_config.chips_per_stack),
        )
    except ArithmeticError:
        raise InvalidChipInput("Stack count is too large")


def chips_to_delta(session_config: SessionConfig, chips: Any) -> ChipDelta:
    """Convert a uniform-mode chip count into money and chips."""
    count = parse_count(chips)
    try:
        return ChipDelta(amount=count * chip_value(session_config), chips=count)
    except ArithmeticError:
        raise InvalidChipInput("Chip count is too large")


def breakdown_to_delta(session_config: SessionConfig, breakdown: Any) -> ChipDelta:
    """Convert a per-color chip breakdown into money and chips."""
    counts = parse_breakdown(breakdown)
    try:
        amount = sum(
            (count * session_config.color_values.get(color, Decimal("0"))
             for color, count in counts.items()),
            Decimal("0"),
        )
    except ArithmeticError:
        raise InvalidChipInput("Chip breakdown is too large")
    return ChipDelta(amount=amount, chips=sum(counts.values()))
