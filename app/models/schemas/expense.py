from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from app.models.amount import Amount, PositiveAmount


class Expense(BaseModel):
    expense_id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str
    amount: Amount
    category: int
    paid_on: datetime
    remarks: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_current: bool = True
    is_deleted: bool = False


class ExpenseCreate(BaseModel):
    name: str = Field(min_length=1)
    amount: PositiveAmount
    category: int = Field(ge=0)
    paid_on: datetime
    remarks: str = ""


class ExpenseOut(BaseModel):
    expense_id: UUID
    user_id: UUID
    name: str
    amount: Amount
    category: int
    paid_on: datetime
    remarks: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
