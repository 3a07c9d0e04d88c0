"""
Payment history ledger: the recorded payments against a commitment.

Every mutation holds the owning commitment's lock, persists the event and then
recalculates the commitment before returning, so callers always observe
consistent totals.
If recalculation raises, the event write stands and the error propagates;
a later ``recalculate`` call reconciles the commitment.
"""
from datetime import datetime, timezone
from uuid import UUID

from app.logging_config import get_logger
from app.models.amount import Amount
from app.models.schemas.commitment import Commitment
from app.models.schemas.history import PaymentEvent
from app.services.errors import InvalidInput, NotFound
from app.services.locks import commitment_locks
from app.services.recalculation import COMMITMENTS, PAYMENT_EVENTS, recalculate
from app.services.storage import (
    get_current, load_current, replace_version,
    row_to_model, save_version, soft_delete_record,
)

logger = get_logger("ledger")


def _validate_current_emi(current_emi) -> int:
    if isinstance(current_emi, bool) or not isinstance(current_emi, int) or current_emi < 1:
        raise InvalidInput(f"current_emi must be a positive integer, got {current_emi!r}")
    return current_emi


def get_event(event_id: UUID | str) -> PaymentEvent:
    event = get_current(PAYMENT_EVENTS, PaymentEvent, event_id, "event_id")
    if event is None:
        raise NotFound("Payment event", event_id)
    return event


def add_event(
    commitment_id: UUID | str,
    amount,
    current_emi: int,
    paid_date: datetime | None = None,
    remarks: str | None = None,
    attachment: list[str] | None = None,
) -> PaymentEvent:
    amount = Amount.parse(amount, positive=True)
    current_emi = _validate_current_emi(current_emi)

    with commitment_locks.hold(commitment_id):
        if get_current(COMMITMENTS, Commitment, commitment_id, "commitment_id") is None:
            raise NotFound("Commitment", commitment_id)

        event = PaymentEvent(
            commitment_id=commitment_id,
            amount=amount,
            current_emi=current_emi,
            paid_date=paid_date or datetime.now(timezone.utc),
            remarks=remarks or "",
            attachment=list(attachment or []),
        )
        save_version(event, PAYMENT_EVENTS, "event_id")
        logger.info("Added payment %s (%s) to commitment %s", event.event_id, event.amount, commitment_id)

        recalculate(commitment_id)
    return event


def edit_event(
    event_id: UUID | str,
    *,
    amount=None,
    current_emi: int | None = None,
    paid_date: datetime | None = None,
    remarks: str | None = None,
    attachment: list[str] | None = None,
) -> PaymentEvent:
    """Overwrite the provided fields; anything left as None keeps its stored value."""
    changes = {}
    if amount is not None:
        changes["amount"] = Amount.parse(amount, positive=True)
    if current_emi is not None:
        changes["current_emi"] = _validate_current_emi(current_emi)
    if paid_date is not None:
        changes["paid_date"] = paid_date
    if remarks is not None:
        changes["remarks"] = remarks
    if attachment is not None:
        changes["attachment"] = list(attachment)

    commitment_id = get_event(event_id).commitment_id
    with commitment_locks.hold(commitment_id):
        event = get_event(event_id)
        event = replace_version(event.model_copy(update=changes), PAYMENT_EVENTS, "event_id")
        logger.info("Edited payment %s on commitment %s: %s", event_id, commitment_id, sorted(changes))

        recalculate(commitment_id)
    return event


def add_attachment(event_id: UUID | str, path: str) -> PaymentEvent:
    """Append one attachment key, read and written under the commitment lock."""
    commitment_id = get_event(event_id).commitment_id
    with commitment_locks.hold(commitment_id):
        event = get_event(event_id)
        event = replace_version(
            event.model_copy(update={"attachment": [*event.attachment, path]}), PAYMENT_EVENTS, "event_id"
        )
        logger.info("Attached %s to payment %s", path, event_id)

        recalculate(commitment_id)
    return event


def delete_event(event_id: UUID | str) -> PaymentEvent:
    commitment_id = get_event(event_id).commitment_id
    with commitment_locks.hold(commitment_id):
        event = get_event(event_id)
        deleted = soft_delete_record(event, PAYMENT_EVENTS, "event_id")
        logger.info("Deleted payment %s from commitment %s", event_id, commitment_id)

        recalculate(commitment_id)
    return deleted


def list_events(commitment_id: UUID | str, page: int = 1, page_size: int = 10) -> tuple[list[PaymentEvent], int]:
    """
    One page of a commitment's payments, highest installment number first.

    Ties on ``current_emi`` keep insertion order (created_at, then event_id),
    so consecutive pages are disjoint and concatenate to the full ordering.
    """
    if page < 1 or page_size < 1:
        raise InvalidInput("page and page_size must be positive")

    df = load_current(PAYMENT_EVENTS, PaymentEvent, commitment_id=commitment_id)
    total = len(df)
    if df.empty:
        return [], 0

    df = df.sort_values(
        by=["current_emi", "created_at", "event_id"],
        ascending=[False, True, True],
        kind="mergesort",
    )
    offset = (page - 1) * page_size
    rows = df.iloc[offset: offset + page_size].to_dict(orient="records")
    return [row_to_model(row, PaymentEvent) for row in rows], total
