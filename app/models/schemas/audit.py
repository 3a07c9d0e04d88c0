from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone


class AuditLog(BaseModel):
    log_id: UUID = Field(default_factory=uuid4)
    user_id: str | None = None  # who performed action (None for CLI/system tasks)
    action: str  # "create", "update", "delete", "recalculate", "login", etc.
    resource_type: str  # "users", "commitments", "commitment_histories", "expenses"
    resource_id: str | None = None  # affected record
    details: str | None = None  # JSON request payload, secrets redacted
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_current: bool = True
    is_deleted: bool = False


class AuditLogOut(BaseModel):
    log_id: UUID
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    details: str | None = None
    timestamp: datetime
