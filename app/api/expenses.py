from datetime import date, datetime, timezone
from fastapi import APIRouter, Depends, Query
import pandas as pd
from app.models.schemas.expense import Expense, ExpenseCreate, ExpenseOut
from app.services.auth import get_current_user
from app.services.errors import InvalidInput
from app.services.storage import save_version, load_current, row_to_model, log_action
from app.services.utils import page_params

router = APIRouter()


@router.post("/")
def create_expense(payload: ExpenseCreate, user=Depends(get_current_user)):
    expense = Expense(
        user_id=user["user_id"],
        name=payload.name.strip(),
        amount=payload.amount,
        category=payload.category,
        paid_on=payload.paid_on,
        remarks=payload.remarks,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    if not expense.name:
        raise InvalidInput("Expense name must not be blank")

    save_version(expense, "expenses", "expense_id")
    log_action(user["user_id"], "create", "expenses", str(expense.expense_id), payload.model_dump())

    return {"message": "Expense created", "expense_id": str(expense.expense_id)}


@router.get("/", response_model=list[ExpenseOut])
def list_expenses(
    category: int | None = Query(None, ge=0),
    start: date | None = Query(None, description="Earliest paid_on date, inclusive"),
    end: date | None = Query(None, description="Latest paid_on date, inclusive"),
    user=Depends(get_current_user),
    page=Depends(page_params),
):
    if start and end and start > end:
        raise InvalidInput(f"start {start} is after end {end}")

    df = load_current("expenses", Expense, user_id=user["user_id"])
    if df.empty:
        return []

    paid_on = pd.to_datetime(df["paid_on"], utc=True).dt.date
    if category is not None:
        df = df[df["category"].astype(int) == category]
    if start:
        df = df[paid_on.loc[df.index] >= start]
    if end:
        df = df[paid_on.loc[df.index] <= end]

    df = df.sort_values(by=["paid_on", "created_at"], ascending=False, kind="mergesort")
    df = df.iloc[page["offset"]: page["offset"] + page["limit"]]

    return [row_to_model(row, Expense) for row in df.to_dict(orient="records")]
