"""Shared fixtures."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from chiptracker.ledger.models import ChipColor, ChipValueMode, SessionConfig, create_session
from chiptracker.ledger.ledger import Ledger

FIXED_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

COLOR_VALUES = {
    ChipColor.WHITE: Decimal("1"),
    ChipColor.RED: Decimal("5"),
    ChipColor.BLUE: Decimal("10"),
    ChipColor.GREEN: Decimal("25"),
    ChipColor.BLACK: Decimal("100"),
}


def make_config(stack_value="100", chips_per_stack=100, per_color=False) -> SessionConfig:
    """Create a session config that does not depend on the environment."""
    return SessionConfig(
        chip_value_mode=ChipValueMode.PER_COLOR if per_color else ChipValueMode.UNIFORM,
        stack_unit_value=Decimal(stack_value),
        chips_per_stack=chips_per_stack,
        color_values=dict(COLOR_VALUES),
    )


@pytest.fixture
def ledger():
    """Uniform-mode ledger at $1 per chip (100 chips per $100 stack)."""
    state = create_session(make_config(), tracker_id="test-session")
    return Ledger(state, clock=lambda: FIXED_TIME)


@pytest.fixture
def color_ledger():
    """Per-color ledger."""
    state = create_session(make_config(per_color=True), tracker_id="color-session")
    return Ledger(state, clock=lambda: FIXED_TIME)
