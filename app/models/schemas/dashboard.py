from pydantic import BaseModel
from uuid import UUID
from datetime import date


class PayForTotals(BaseModel):
    pay_for: str
    paid_amount: float
    balance_amount: float
    pending: int


class UpcomingPayment(BaseModel):
    commitment_id: UUID
    pay_for: str
    emi_amount: float
    due_date: int
    next_due_date: date
    days_until_due: int   # negative when overdue


class DashboardSummary(BaseModel):
    """Reporting view only; floats are fine here."""
    window_start: date
    window_end: date
    daily_totals: list[float]
    monthly_totals: list[float]
    by_category: dict[str, float]
    commitments_by_pay_for: list[PayForTotals]
    total_savings: float
    upcoming_payments: list[UpcomingPayment]
