from fastapi import APIRouter, Depends, Query
from app.services.storage import load_current, row_to_model
from app.models.schemas.audit import AuditLog, AuditLogOut
from app.services.auth import get_current_user
from app.services.utils import page_params

router = APIRouter()

@router.get("/logs", response_model=list[AuditLogOut])
def list_audit_logs(
    user_id: str | None = Query(None),
    resource_type: str | None = Query(None),
    action: str | None = Query(None),
    user=Depends(get_current_user),
    page=Depends(page_params),
):
    # Regular users only ever see their own trail
    if not user.get("is_superuser"):
        user_id = str(user["user_id"])

    df = load_current("audit_logs", AuditLog)
    if df.empty:
        return []

    if user_id:
        df = df[df["user_id"] == user_id]
    if resource_type:
        df = df[df["resource_type"] == resource_type]
    if action:
        df = df[df["action"] == action]

    df = df.sort_values(by="timestamp", ascending=False, kind="mergesort")

    # pagination slice
    df = df.iloc[page["offset"]: page["offset"] + page["limit"]]

    return [row_to_model(row, AuditLog) for row in df.to_dict(orient="records")]
