from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from app.models.amount import Amount, PositiveAmount


class PaymentEvent(BaseModel):
    event_id: UUID = Field(default_factory=uuid4)
    commitment_id: UUID
    amount: Amount
    current_emi: int   # informational installment number, duplicates and gaps allowed
    paid_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    remarks: str = ""
    attachment: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_current: bool = True
    is_deleted: bool = False


class PaymentEventCreate(BaseModel):
    commitment_id: UUID
    amount: PositiveAmount
    current_emi: int = Field(ge=1)
    paid_date: datetime | None = None
    remarks: str = ""


class PaymentEventUpdate(BaseModel):
    amount: PositiveAmount | None = None
    current_emi: int | None = Field(default=None, ge=1)
    paid_date: datetime | None = None
    remarks: str | None = None


class PaymentEventOut(BaseModel):
    event_id: UUID
    commitment_id: UUID
    amount: Amount
    current_emi: int
    paid_date: datetime
    remarks: str
    attachment: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentEventPage(BaseModel):
    data: list[PaymentEventOut]
    total_items: int
    total_pages: int
    current_page: int
