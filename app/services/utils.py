from math import ceil
import re

from fastapi import HTTPException, Query

# Utility functions for request paging and password handling
PASSWORD_MIN_LENGTH = 8


def page_params(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
):
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}


def total_pages(total: int, limit: int) -> int:
    return ceil(total / limit) if limit else 0


def validate_password_strength(password: str):
    """Validate that a password meets security requirements."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise HTTPException(status_code=400, detail="Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise HTTPException(status_code=400, detail="Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise HTTPException(status_code=400, detail="Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.?\":{}|<>]", password):
        raise HTTPException(status_code=400, detail="Password must contain at least one special character")


def normalize_email(email: str) -> str:
    return email.strip().lower()
