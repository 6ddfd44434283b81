"""Snapshot schema: normalizing stored sessions and serializing them back."""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from chiptracker.ledger.models import (
    ChipColor,
    ChipValueMode,
    InvalidSessionConfig,
    Participant,
    SessionConfig,
    SessionState,
    Transaction,
    TransactionKind,
    default_color_values,
    display_name,
)
from chiptracker.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 2

_MODE_ALIASES = {
    "uniform": ChipValueMode.UNIFORM,
    "per_color": ChipValueMode.PER_COLOR,
    "percolor": ChipValueMode.PER_COLOR,
}

_KIND_ALIASES = {
    "contribution": TransactionKind.CONTRIBUTION,
    "buyin": TransactionKind.CONTRIBUTION,
    "add": TransactionKind.CONTRIBUTION,
    "return": TransactionKind.RETURN,
    "cashout": TransactionKind.RETURN,
    "remove": TransactionKind.RETURN,
}


class SnapshotFormatError(ValueError):
    """Raised when a stored snapshot cannot be turned into a session."""


def parse_timestamp(value: Any, fallback: Optional[datetime] = None) -> datetime:
    """Normalize a stored timestamp to an aware UTC datetime.

    Args:
        value: ISO-8601 string, epoch milliseconds, or datetime.
        fallback: Used when the value is missing.

    Returns:
        Timezone-aware UTC datetime.

    Raises:
        SnapshotFormatError: If the value cannot be parsed.
    """
    if value is None or value == "":
        if fallback is None:
            raise SnapshotFormatError("Missing timestamp")
        return fallback

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = _from_epoch_millis(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = _from_epoch_millis(float(text))
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise SnapshotFormatError(f"Unrecognized timestamp: {value!r}")
    else:
        raise SnapshotFormatError(f"Unrecognized timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _from_epoch_millis(millis: float) -> datetime:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise SnapshotFormatError(f"Timestamp out of range: {millis}")


def _decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise SnapshotFormatError(f"{field_name} must be a number")
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise SnapshotFormatError(f"{field_name} must be a number, got {value!r}")
    if not parsed.is_finite():
        raise SnapshotFormatError(f"{field_name} must be a number, got {value!r}")
    return parsed


def _int(value: Any, field_name: str) -> int:
    parsed = _decimal(value, field_name)
    if parsed != parsed.to_integral_value():
        raise SnapshotFormatError(f"{field_name} must be a whole number, got {value!r}")
    return int(parsed)


def _first_present(record: dict, *keys: str) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def _migrate_config(raw: dict) -> SessionConfig:
    # Older snapshots kept chip settings at the top level
    record = raw.get("config")
    if not isinstance(record, dict):
        record = raw

    mode_value = str(record.get("chipValueMode") or "uniform").lower()
    mode = _MODE_ALIASES.get(mode_value)
    if mode is None:
        raise SnapshotFormatError(f"Unknown chip value mode: {mode_value!r}")

    defaults = SessionConfig()
    stack_value = _first_present(record, "stackUnitValue", "stackValue")
    chips_per_stack = record.get("chipsPerStack")

    color_values = default_color_values()
    raw_colors = record.get("chipValues") or {}
    if not isinstance(raw_colors, dict):
        raise SnapshotFormatError("chipValues must be an object")
    for key, value in raw_colors.items():
        try:
            color = ChipColor(str(key).lower())
        except ValueError:
            raise SnapshotFormatError(f"Unknown chip color: {key!r}")
        color_values[color] = _decimal(value, f"chipValues.{key}")

    try:
        return SessionConfig(
            chip_value_mode=mode,
            stack_unit_value=(
                _decimal(stack_value, "stackUnitValue") if stack_value is not None
                else defaults.stack_unit_value
            ),
            chips_per_stack=(
                _int(chips_per_stack, "chipsPerStack") if chips_per_stack is not None
                else defaults.chips_per_stack
            ),
            color_values=color_values,
        )
    except InvalidSessionConfig as e:
        raise SnapshotFormatError(str(e))


def _migrate_participant(record: Any, index: int) -> Participant:
    if not isinstance(record, dict):
        raise SnapshotFormatError(f"Participant #{index} is not an object")

    put_in = _first_present(record, "moneyPutIn", "initialMoney", "totalMoney")
    returned = record.get("moneyReturned")
    chips = _first_present(record, "chipCount", "chips")
    participant_id = record.get("id")

    participant = Participant(
        id=_int(participant_id, "participant id") if participant_id is not None else index,
        name=str(record.get("name") or "").strip(),
        money_put_in=_decimal(put_in, "moneyPutIn") if put_in is not None else Decimal("0"),
        money_returned=_decimal(returned, "moneyReturned") if returned is not None else Decimal("0"),
        chip_count=_int(chips, "chipCount") if chips is not None else 0,
    )
    if participant.money_put_in < 0 or participant.money_returned < 0:
        raise SnapshotFormatError(f"Participant {participant.id} has negative money totals")
    return participant


def _migrate_transaction(
    record: Any,
    index: int,
    names: dict[int, str],
    fallback_time: datetime,
) -> Transaction:
    if not isinstance(record, dict):
        raise SnapshotFormatError(f"Transaction #{index} is not an object")

    kind_value = str(_first_present(record, "kind", "type") or "").lower()
    kind = _KIND_ALIASES.get(kind_value)
    if kind is None:
        raise SnapshotFormatError(f"Unknown transaction type: {kind_value!r}")

    person_id = record.get("personId")
    if person_id is None:
        raise SnapshotFormatError(f"Transaction #{index} has no participant")
    participant_id = _int(person_id, "personId")

    amount = record.get("amount")
    chips = record.get("chips")
    transaction_id = record.get("id")

    return Transaction(
        id=_int(transaction_id, "transaction id") if transaction_id is not None else index + 1,
        participant_id=participant_id,
        participant_name=str(
            record.get("personName")
            or names.get(participant_id, "")
        ),
        kind=kind,
        # Direction is carried by kind; amounts are magnitudes
        amount=abs(_decimal(amount, "amount")) if amount is not None else Decimal("0"),
        timestamp=parse_timestamp(record.get("timestamp"), fallback=fallback_time),
        chips=abs(_int(chips, "chips")) if chips is not None else 0,
    )


def migrate(raw: Any) -> SessionState:
    """Turn any stored snapshot version into a session.

    Args:
        raw: Decoded JSON document.

    Returns:
        Normalized session state.

    Raises:
        SnapshotFormatError: If the document is malformed.
    """
    if not isinstance(raw, dict):
        raise SnapshotFormatError("Snapshot must be an object")

    version = raw.get("schemaVersion", 1)
    raw_participants = raw.get("participants") or []
    raw_transactions = raw.get("transactions") or []
    if not isinstance(raw_participants, list) or not isinstance(raw_transactions, list):
        raise SnapshotFormatError("participants and transactions must be lists")

    created_at = parse_timestamp(raw.get("createdAt"), fallback=datetime.now(timezone.utc))
    participants = [_migrate_participant(r, i) for i, r in enumerate(raw_participants)]
    names = {
        p.id: display_name(p.name, ordinal)
        for ordinal, p in enumerate(participants, start=1)
    }

    state = SessionState(
        config=_migrate_config(raw),
        participants=participants,
        transactions=[
            _migrate_transaction(r, i, names, created_at)
            for i, r in enumerate(raw_transactions)
        ],
        created_at=created_at,
    )
    if raw.get("trackerId"):
        state.tracker_id = str(raw["trackerId"])

    if version != SCHEMA_VERSION:
        logger.info(f"Migrated snapshot {state.tracker_id} from schema version {version}")
    return state


def serialize(state: SessionState) -> dict:
    """Convert a session to the current snapshot format.

    Args:
        state: Session to store.

    Returns:
        JSON-serializable document.
    """
    cfg = state.config
    return {
        "schemaVersion": SCHEMA_VERSION,
        "trackerId": state.tracker_id,
        "createdAt": state.created_at.isoformat(),
        "config": {
            "chipValueMode": cfg.chip_value_mode.value,
            "stackUnitValue": str(cfg.stack_unit_value),
            "chipsPerStack": cfg.chips_per_stack,
            "chipValues": {color.value: str(value) for color, value in cfg.color_values.items()},
        },
        "participants": [
            {
                "id": p.id,
                "name": p.name,
                "moneyPutIn": str(p.money_put_in),
                "moneyReturned": str(p.money_returned),
                "chipCount": p.chip_count,
            }
            for p in state.participants
        ],
        "transactions": [
            {
                "id": t.id,
                "personId": t.participant_id,
                "personName": t.participant_name,
                "type": t.kind.value,
                "amount": str(t.amount),
                "chips": t.chips,
                "timestamp": t.timestamp.isoformat(),
            }
            for t in state.transactions
        ],
    }
