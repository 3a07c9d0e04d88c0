from calendar import monthrange
from datetime import date
import pandas as pd


def safe_due_date(anchor: date, i: int, due_day: int) -> date:
    """Due date ``i`` months after ``anchor``'s month, clamped to that month's last day."""
    temp = (pd.Timestamp(anchor.year, anchor.month, 1) + pd.DateOffset(months=i)).date()
    last_day = monthrange(temp.year, temp.month)[1]
    return temp.replace(day=min(due_day, last_day))
