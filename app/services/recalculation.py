"""
Derive a commitment's paid / pending / paid_amount / balance_amount from its
payment history.

The ledger is the source of truth; the four fields on the commitment are a
cache of it. ``recalculate`` is a pure function of ledger state, so running it
twice without an intervening ledger change writes identical values.
Full-category commitments keep their fixed lump-sum shape and ignore the ledger.
"""
from uuid import UUID

from app.logging_config import get_logger
from app.models.amount import Amount
from app.models.enums import CommitmentCategory
from app.models.schemas.commitment import Commitment
from app.models.schemas.history import PaymentEvent
from app.services.errors import RecalculationError
from app.services.locks import commitment_locks
from app.services.storage import get_current, load_current, replace_version, row_to_model

COMMITMENTS = "commitments"
PAYMENT_EVENTS = "payment_events"

logger = get_logger("recalculation")


def load_events(commitment_id: UUID | str) -> list[PaymentEvent]:
    df = load_current(PAYMENT_EVENTS, PaymentEvent, commitment_id=commitment_id)
    return [row_to_model(row, PaymentEvent) for row in df.to_dict(orient="records")]


def full_category_shape(emi_amount: Amount) -> dict:
    """A lump-sum commitment is one outstanding installment until its definition changes."""
    return {"paid": 0, "pending": 1, "paid_amount": Amount.zero(), "balance_amount": emi_amount}


def empty_ledger_shape(total_emi: int, emi_amount: Amount) -> dict:
    return {"paid": 0, "pending": total_emi, "paid_amount": Amount.zero(), "balance_amount": emi_amount * total_emi}


def derive_totals(commitment: Commitment, events: list[PaymentEvent]) -> dict:
    """Overpayment is not clamped: pending and balance_amount may go negative."""
    paid = len(events)
    paid_amount = Amount.total(e.amount for e in events)
    return {
        "paid": paid,
        "pending": commitment.total_emi - paid,
        "paid_amount": paid_amount,
        "balance_amount": commitment.total_amount - paid_amount,
    }


def recalculate(commitment_id: UUID | str) -> Commitment:
    with commitment_locks.hold(commitment_id):
        events = load_events(commitment_id)

        commitment = get_current(COMMITMENTS, Commitment, commitment_id, "commitment_id")
        if commitment is None:
            raise RecalculationError(
                f"Cannot recalculate missing commitment '{commitment_id}'",
                commitment_id=str(commitment_id),
            )

        if commitment.category == CommitmentCategory.full:
            totals = full_category_shape(commitment.emi_amount)
        else:
            totals = derive_totals(commitment, events)
        commitment = replace_version(commitment.model_copy(update=totals), COMMITMENTS, "commitment_id")

    logger.info(
        "Recalculated commitment %s: paid=%s pending=%s paid_amount=%s balance_amount=%s",
        commitment_id, totals["paid"], totals["pending"], totals["paid_amount"], totals["balance_amount"],
    )
    return commitment
