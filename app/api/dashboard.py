from datetime import date
from fastapi import APIRouter, Depends, Query
from app.models.schemas.dashboard import DashboardSummary
from app.services.auth import get_current_user
from app.services.dashboard import summarize

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
def get_dashboard_summary(
    start: date | None = Query(None, description="Window start YYYY-MM-DD, defaults to the first of this month"),
    end: date | None = Query(None, description="Window end YYYY-MM-DD, defaults to today"),
    user=Depends(get_current_user),
):
    return summarize(user["user_id"], start=start, end=end)
