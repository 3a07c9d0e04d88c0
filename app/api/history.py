from uuid import UUID
from fastapi import APIRouter, Depends, UploadFile, File
from app.models.schemas.history import PaymentEventCreate, PaymentEventUpdate, PaymentEventOut, PaymentEventPage
from app.services import ledger
from app.services.attachments import store_attachment
from app.services.auth import get_current_user
from app.services.commitments import get_commitment
from app.services.roles import require_owner
from app.services.storage import log_action
from app.services.utils import page_params, total_pages

router = APIRouter()


def _owned_event(event_id: UUID, user: dict):
    event = ledger.get_event(event_id)
    commitment = get_commitment(event.commitment_id)
    require_owner(user, commitment.user_id)
    return event, commitment


@router.post("/", response_model=PaymentEventOut)
def add_payment(payload: PaymentEventCreate, user=Depends(get_current_user)):
    require_owner(user, get_commitment(payload.commitment_id).user_id)
    event = ledger.add_event(
        payload.commitment_id,
        payload.amount,
        payload.current_emi,
        paid_date=payload.paid_date,
        remarks=payload.remarks,
    )
    log_action(user["user_id"], "create", "commitment_histories", str(event.event_id), payload.model_dump())
    return event


@router.get("/commitment/{commitment_id}", response_model=PaymentEventPage)
def list_payments(commitment_id: UUID, user=Depends(get_current_user), page=Depends(page_params)):
    require_owner(user, get_commitment(commitment_id).user_id)
    items, total = ledger.list_events(commitment_id, page=page["page"], page_size=page["limit"])
    return {
        "data": items,
        "total_items": total,
        "total_pages": total_pages(total, page["limit"]),
        "current_page": page["page"],
    }


@router.get("/{event_id}", response_model=PaymentEventOut)
def get_payment(event_id: UUID, user=Depends(get_current_user)):
    event, _ = _owned_event(event_id, user)
    return event


@router.put("/{event_id}", response_model=PaymentEventOut)
def edit_payment(event_id: UUID, payload: PaymentEventUpdate, user=Depends(get_current_user)):
    _owned_event(event_id, user)
    changes = payload.model_dump(exclude_unset=True)
    event = ledger.edit_event(
        event_id,
        amount=changes.get("amount"),
        current_emi=changes.get("current_emi"),
        paid_date=changes.get("paid_date"),
        remarks=changes.get("remarks"),
    )
    log_action(user["user_id"], "update", "commitment_histories", str(event_id), changes)
    return event


@router.delete("/{event_id}")
def delete_payment(event_id: UUID, user=Depends(get_current_user)):
    _owned_event(event_id, user)
    deleted = ledger.delete_event(event_id)
    log_action(user["user_id"], "delete", "commitment_histories", str(event_id))
    return {
        "message": "Payment deleted",
        "event_id": str(event_id),
        "commitment_id": str(deleted.commitment_id),
    }


@router.post("/{event_id}/attachments", response_model=PaymentEventOut)
def upload_payment_attachment(
    event_id: UUID,
    file: UploadFile = File(...),
    user=Depends(get_current_user),
):
    _, commitment = _owned_event(event_id, user)
    key = store_attachment(file, commitment.user_id, "commitment_histories")
    updated = ledger.add_attachment(event_id, key)
    log_action(user["user_id"], "attach", "commitment_histories", str(event_id), {"attachment": key})
    return updated
