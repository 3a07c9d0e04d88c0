"""Commitment definitions: create, update, delete (with ledger cascade), read."""
from uuid import UUID

from pydantic import BaseModel, ValidationError

from app.logging_config import get_logger
from app.models.enums import CommitmentCategory
from app.models.schemas.commitment import Commitment, CommitmentCreate, CommitmentUpdate
from app.models.schemas.history import PaymentEvent
from app.services.errors import InvalidInput, NotFound
from app.services.locks import commitment_locks
from app.services.recalculation import (
    COMMITMENTS, PAYMENT_EVENTS,
    empty_ledger_shape, full_category_shape,
)
from app.services.roles import require_admin
from app.services.storage import (
    get_current, load_current, replace_version,
    row_to_model, save_version, soft_delete_record,
)

logger = get_logger("commitments")


def _validated(schema: type[BaseModel], definition):
    if isinstance(definition, schema):
        return definition
    try:
        return schema.model_validate(definition)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise InvalidInput(f"Invalid commitment definition: {problems}") from e


def _seed_totals(category: CommitmentCategory, total_emi: int, emi_amount) -> dict:
    if category == CommitmentCategory.full:
        return full_category_shape(emi_amount)
    return empty_ledger_shape(total_emi, emi_amount)


def get_commitment(commitment_id: UUID | str) -> Commitment:
    commitment = get_current(COMMITMENTS, Commitment, commitment_id, "commitment_id")
    if commitment is None:
        raise NotFound("Commitment", commitment_id)
    return commitment


def create_commitment(definition: CommitmentCreate | dict, owner_id: UUID | str) -> Commitment:
    """Any derived values sent by the client are ignored; totals start from an empty ledger."""
    if not owner_id:
        raise InvalidInput("Commitment owner is required")
    payload = _validated(CommitmentCreate, definition)

    commitment = Commitment(
        user_id=owner_id,
        **payload.model_dump(),
        **_seed_totals(payload.category, payload.total_emi, payload.emi_amount),
    )
    save_version(commitment, COMMITMENTS, "commitment_id")
    logger.info("Created %s commitment %s for user %s", commitment.category.name, commitment.commitment_id, owner_id)
    return commitment


def update_commitment(commitment_id: UUID | str, definition: CommitmentUpdate | dict) -> Commitment:
    """
    Apply a definition edit.

    A Full-category result is reset to its fixed lump-sum shape; otherwise the
    derived totals are left as they are (only ledger mutations recompute them).
    """
    payload = _validated(CommitmentUpdate, definition)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    with commitment_locks.hold(commitment_id):
        commitment = get_commitment(commitment_id)
        updated = commitment.model_copy(update=changes)
        if updated.category == CommitmentCategory.full:
            updated = updated.model_copy(update=full_category_shape(updated.emi_amount))
        updated = replace_version(updated, COMMITMENTS, "commitment_id")

    logger.info("Updated commitment %s: %s", commitment_id, sorted(changes))
    return updated


def add_attachment(commitment_id: UUID | str, path: str) -> Commitment:
    with commitment_locks.hold(commitment_id):
        commitment = get_commitment(commitment_id)
        updated = commitment.model_copy(update={"attachment": [*commitment.attachment, path]})
        return replace_version(updated, COMMITMENTS, "commitment_id")


def delete_commitment(commitment_id: UUID | str, requesting_user_id: UUID | str) -> tuple[Commitment, int]:
    """Admin-only delete; removes the commitment and every payment recorded against it."""
    require_admin(requesting_user_id)

    with commitment_locks.hold(commitment_id):
        commitment = get_commitment(commitment_id)
        deleted = soft_delete_record(commitment, COMMITMENTS, "commitment_id")

        events = load_current(PAYMENT_EVENTS, PaymentEvent, commitment_id=commitment_id)
        for row in events.to_dict(orient="records"):
            soft_delete_record(row_to_model(row, PaymentEvent), PAYMENT_EVENTS, "event_id")

    logger.info("Deleted commitment %s and %s payment(s)", commitment_id, len(events))
    return deleted, len(events)


def list_commitments(user_id: UUID | str, page: int = 1, limit: int = 10) -> tuple[list[Commitment], int]:
    if page < 1 or limit < 1:
        raise InvalidInput("page and limit must be positive")

    df = load_current(COMMITMENTS, Commitment, user_id=user_id)
    total = len(df)
    if df.empty:
        return [], 0

    df = df.sort_values(by=["created_at", "commitment_id"], ascending=[False, True], kind="mergesort")
    offset = (page - 1) * limit
    rows = df.iloc[offset: offset + limit].to_dict(orient="records")
    return [row_to_model(row, Commitment) for row in rows], total
