"""
Read-only dashboard figures over a user's expenses and commitments.

This is a reporting view: amounts are converted to float here and nowhere
else, and results may lag concurrent ledger writes.
"""
from datetime import date, datetime, timezone
from uuid import UUID

import pandas as pd

from app.logging_config import get_logger
from app.models.enums import CommitmentCategory, CommitmentStatus, PayType
from app.models.schemas.commitment import Commitment
from app.models.schemas.dashboard import DashboardSummary, PayForTotals, UpcomingPayment
from app.models.schemas.expense import Expense
from app.models.schemas.history import PaymentEvent
from app.services.errors import InvalidInput
from app.services.recalculation import COMMITMENTS, PAYMENT_EVENTS
from app.services.storage import load_current
from scripts.safe_due_dates import safe_due_date

EXPENSES = "expenses"

logger = get_logger("dashboard")


def resolve_window(start: date | None, end: date | None, today: date) -> tuple[date, date]:
    """Default to month-to-date; the window never reaches past today."""
    start = start or today.replace(day=1)
    end = min(end or today, today)
    if start > end:
        raise InvalidInput(f"Window start {start} is after window end {end}")
    return start, end


def _expenses_frame(user_id) -> pd.DataFrame:
    df = load_current(EXPENSES, Expense, user_id=user_id)
    if df.empty:
        return pd.DataFrame(columns=["day", "amount", "category"])
    df = df.copy()
    df["day"] = pd.to_datetime(df["paid_on"], utc=True).dt.date
    df["amount"] = df["amount"].astype(float)
    return df


def daily_totals(expenses: pd.DataFrame, start: date, end: date) -> list[float]:
    days = pd.date_range(start, end, freq="D").date
    if expenses.empty:
        return [0.0] * len(days)
    in_window = expenses[(expenses["day"] >= start) & (expenses["day"] <= end)]
    by_day = in_window.groupby("day")["amount"].sum()
    return [round(float(by_day.get(d, 0.0)), 2) for d in days]


def monthly_totals(expenses: pd.DataFrame, year: int) -> list[float]:
    if expenses.empty:
        return [0.0] * 12
    in_year = expenses[expenses["day"].map(lambda d: d.year == year)]
    by_month = in_year.groupby(in_year["day"].map(lambda d: d.month))["amount"].sum()
    return [round(float(by_month.get(m, 0.0)), 2) for m in range(1, 13)]


def category_totals(expenses: pd.DataFrame, start: date, end: date) -> dict[str, float]:
    if expenses.empty:
        return {}
    in_window = expenses[(expenses["day"] >= start) & (expenses["day"] <= end)]
    by_category = in_window.groupby("category")["amount"].sum().to_dict()
    return {str(k): round(float(v), 2) for k, v in by_category.items()}


def _commitments_frame(user_id) -> pd.DataFrame:
    df = load_current(COMMITMENTS, Commitment, user_id=user_id)
    if df.empty:
        return df
    df = df.copy()
    for col in ("paid_amount", "balance_amount", "emi_amount"):
        df[col] = df[col].astype(float)
    for col in ("pending", "pay_type", "category", "status", "due_date"):
        df[col] = df[col].astype(int)
    return df


def pay_for_totals(commitments: pd.DataFrame) -> list[PayForTotals]:
    if commitments.empty:
        return []
    grouped = commitments.groupby("pay_for").agg(
        paid_amount=("paid_amount", "sum"),
        balance_amount=("balance_amount", "sum"),
        pending=("pending", "sum"),
    ).reset_index()
    grouped = grouped[grouped["pending"] > 0]
    return [
        PayForTotals(
            pay_for=row["pay_for"],
            paid_amount=round(float(row["paid_amount"]), 2),
            balance_amount=round(float(row["balance_amount"]), 2),
            pending=int(row["pending"]),
        )
        for row in grouped.to_dict(orient="records")
    ]


def total_savings(commitments: pd.DataFrame) -> float:
    if commitments.empty:
        return 0.0
    savings = commitments[
        (commitments["pay_type"] == PayType.saving.value)
        & (commitments["status"] == CommitmentStatus.ongoing.value)
    ]
    return round(float(savings["paid_amount"].sum()), 2)


def upcoming_payments(commitments: pd.DataFrame, today: date) -> list[UpcomingPayment]:
    """Ongoing EMI commitments with nothing paid this calendar month, soonest due first."""
    if commitments.empty:
        return []
    candidates = commitments[
        (commitments["category"] == CommitmentCategory.emi.value)
        & (commitments["status"] == CommitmentStatus.ongoing.value)
    ]
    if candidates.empty:
        return []

    events = load_current(PAYMENT_EVENTS, PaymentEvent)
    paid_this_month = set()
    if not events.empty:
        paid_on = pd.to_datetime(events["paid_date"], utc=True)
        this_month = (paid_on.dt.year == today.year) & (paid_on.dt.month == today.month)
        paid_this_month = set(events.loc[this_month, "commitment_id"].astype(str))

    candidates = candidates[~candidates["commitment_id"].astype(str).isin(paid_this_month)].copy()
    candidates["days_until_due"] = candidates["due_date"] - today.day
    candidates = candidates.sort_values(by=["days_until_due", "pay_for"], kind="mergesort")

    return [
        UpcomingPayment(
            commitment_id=UUID(str(row["commitment_id"])),
            pay_for=row["pay_for"],
            emi_amount=round(float(row["emi_amount"]), 2),
            due_date=int(row["due_date"]),
            next_due_date=safe_due_date(today, 0, int(row["due_date"])),
            days_until_due=int(row["days_until_due"]),
        )
        for row in candidates.to_dict(orient="records")
    ]


def summarize(
    user_id: UUID | str,
    start: date | None = None,
    end: date | None = None,
    today: date | None = None,
) -> DashboardSummary:
    if not user_id:
        raise InvalidInput("A user is required for the dashboard")
    today = today or datetime.now(timezone.utc).date()
    start, end = resolve_window(start, end, today)

    expenses = _expenses_frame(user_id)
    commitments = _commitments_frame(user_id)

    summary = DashboardSummary(
        window_start=start,
        window_end=end,
        daily_totals=daily_totals(expenses, start, end),
        monthly_totals=monthly_totals(expenses, today.year),
        by_category=category_totals(expenses, start, end),
        commitments_by_pay_for=pay_for_totals(commitments),
        total_savings=total_savings(commitments),
        upcoming_payments=upcoming_payments(commitments, today),
    )
    logger.debug("Dashboard for %s over %s..%s: %s commitments", user_id, start, end, len(commitments))
    return summary
