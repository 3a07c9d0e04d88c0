from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid import UUID, uuid4
from datetime import datetime, timezone
from app.models.amount import Amount, PositiveAmount
from app.models.enums import PayType, CommitmentCategory, CommitmentStatus

# 100 years of monthly installments
MAX_INSTALLMENTS = 1200


def _strip_pay_for(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("pay_for must not be blank")
    return v


class Commitment(BaseModel):
    commitment_id: UUID = Field(default_factory=uuid4)
    user_id: UUID   # owner
    pay_for: str
    pay_type: PayType
    category: CommitmentCategory
    total_emi: int
    emi_amount: Amount
    status: CommitmentStatus
    due_date: int   # day of month for payments
    remarks: str = ""
    attachment: list[str] = Field(default_factory=list)
    # Derived from the payment history, see app.services.recalculation
    paid: int = 0
    pending: int = 0
    paid_amount: Amount = Field(default_factory=Amount.zero)
    balance_amount: Amount = Field(default_factory=Amount.zero)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_current: bool = True
    is_deleted: bool = False

    @property
    def total_amount(self) -> Amount:
        return self.emi_amount * self.total_emi


class CommitmentCreate(BaseModel):
    pay_for: str = Field(min_length=1)
    pay_type: PayType
    category: CommitmentCategory
    total_emi: int = Field(ge=1, le=MAX_INSTALLMENTS)
    emi_amount: PositiveAmount
    status: CommitmentStatus
    due_date: int = Field(ge=1, le=31)
    remarks: str = ""

    strip_pay_for = field_validator("pay_for")(_strip_pay_for)


class CommitmentUpdate(BaseModel):
    pay_for: str | None = Field(default=None, min_length=1)
    pay_type: PayType | None = None
    category: CommitmentCategory | None = None
    total_emi: int | None = Field(default=None, ge=1, le=MAX_INSTALLMENTS)
    emi_amount: PositiveAmount | None = None
    status: CommitmentStatus | None = None
    due_date: int | None = Field(default=None, ge=1, le=31)
    remarks: str | None = None

    strip_pay_for = field_validator("pay_for")(_strip_pay_for)


class CommitmentOut(BaseModel):
    commitment_id: UUID
    user_id: UUID
    pay_for: str
    pay_type: PayType
    category: CommitmentCategory
    total_emi: int
    emi_amount: Amount
    status: CommitmentStatus
    due_date: int
    remarks: str
    attachment: list[str]
    paid: int
    pending: int
    paid_amount: Amount
    balance_amount: Amount
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommitmentListResponse(BaseModel):
    data: list[CommitmentOut]
    total: int
    total_pages: int
