from uuid import UUID
from fastapi import APIRouter, Depends, UploadFile, File
from app.models.schemas.commitment import CommitmentCreate, CommitmentUpdate, CommitmentOut, CommitmentListResponse
from app.services import commitments as service
from app.services.attachments import store_attachment
from app.services.auth import get_current_user
from app.services.recalculation import recalculate
from app.services.roles import require_owner
from app.services.storage import log_action
from app.services.utils import page_params, total_pages

router = APIRouter()


@router.post("/")
def create_commitment(payload: CommitmentCreate, user=Depends(get_current_user)):
    commitment = service.create_commitment(payload, owner_id=user["user_id"])
    log_action(user["user_id"], "create", "commitments", str(commitment.commitment_id), payload.model_dump())
    return {"message": "Commitment created", "commitment_id": str(commitment.commitment_id)}


@router.get("/", response_model=CommitmentListResponse)
def list_commitments(user=Depends(get_current_user), page=Depends(page_params)):
    items, total = service.list_commitments(user["user_id"], page=page["page"], limit=page["limit"])
    return {"data": items, "total": total, "total_pages": total_pages(total, page["limit"])}


@router.get("/{commitment_id}", response_model=CommitmentOut)
def get_commitment(commitment_id: UUID, user=Depends(get_current_user)):
    commitment = service.get_commitment(commitment_id)
    require_owner(user, commitment.user_id)
    return commitment


@router.put("/{commitment_id}", response_model=CommitmentOut)
def update_commitment(commitment_id: UUID, payload: CommitmentUpdate, user=Depends(get_current_user)):
    require_owner(user, service.get_commitment(commitment_id).user_id)
    updated = service.update_commitment(commitment_id, payload)
    log_action(user["user_id"], "update", "commitments", str(commitment_id), payload.model_dump(exclude_unset=True))
    return updated


@router.delete("/{commitment_id}")
def delete_commitment(commitment_id: UUID, user=Depends(get_current_user)):
    _, deleted_events = service.delete_commitment(commitment_id, requesting_user_id=user["user_id"])
    log_action(user["user_id"], "delete", "commitments", str(commitment_id), {"deleted_events": deleted_events})
    return {
        "message": "Commitment deleted",
        "commitment_id": str(commitment_id),
        "deleted_events": deleted_events,
    }


@router.post("/{commitment_id}/attachments", response_model=CommitmentOut)
def upload_commitment_attachment(
    commitment_id: UUID,
    file: UploadFile = File(...),
    user=Depends(get_current_user),
):
    commitment = service.get_commitment(commitment_id)
    require_owner(user, commitment.user_id)

    key = store_attachment(file, commitment.user_id, "commitments")
    updated = service.add_attachment(commitment_id, key)
    log_action(user["user_id"], "attach", "commitments", str(commitment_id), {"attachment": key})
    return updated


@router.post("/{commitment_id}/recalculate", response_model=CommitmentOut)
def recalculate_commitment(commitment_id: UUID, user=Depends(get_current_user)):
    require_owner(user, service.get_commitment(commitment_id).user_id)
    commitment = recalculate(commitment_id)
    log_action(user["user_id"], "recalculate", "commitments", str(commitment_id))
    return commitment
