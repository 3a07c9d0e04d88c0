from fastapi import APIRouter, HTTPException, Depends
from uuid import uuid4
from datetime import datetime, timezone
import bcrypt
import jwt
from app.config import settings
from app.services.errors import Conflict
from app.services.utils import validate_password_strength, normalize_email
from app.models.schemas.user import RegisterRequest, LoginRequest, User, UserOut, RefreshToken
from app.services.storage import load_current, save_version, row_to_model, get_current, soft_delete_record, log_action
from app.services.auth import get_current_user, create_access_token, create_refresh_token, SECRET_KEY, ALGORITHM

router = APIRouter()


@router.post("/register")
def register_user(request: RegisterRequest):
    normalized_email = normalize_email(request.email)
    users_df = load_current("users", User)

    if not users_df.empty and normalized_email in users_df["email"].values:
        raise Conflict("Email already registered")

    validate_password_strength(request.password)

    # The bootstrap email becomes the admin; it is the only way to get one
    bootstrap_email = normalize_email(settings.bootstrap_admin_email)
    is_superuser = bool(bootstrap_email) and normalized_email == bootstrap_email

    salt = bcrypt.gensalt()
    new_user = User(
        user_id=uuid4(),
        user_name=request.user_name,
        email=normalized_email,
        hashed_password=bcrypt.hashpw(request.password.encode("utf-8"), salt).decode("utf-8"),
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
        is_superuser=is_superuser,
    )

    save_version(new_user, "users", "user_id")
    log_action(str(new_user.user_id), "register", "users", str(new_user.user_id), request.model_dump())

    return {"message": "User registered successfully", "user_id": str(new_user.user_id)}


@router.post("/login")
def login_user(request: LoginRequest):
    users_df = load_current("users", User, email=normalize_email(request.email))
    if users_df.empty:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user = row_to_model(users_df.iloc[0].to_dict(), User)

    if not bcrypt.checkpw(request.password.encode("utf-8"), user.hashed_password.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")

    access_token = create_access_token({"sub": str(user.user_id)})
    refresh_token = create_refresh_token(str(user.user_id))

    log_action(str(user.user_id), "login", "users", str(user.user_id))
    return {
        "message": "Login successful",
        "user_id": str(user.user_id),
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=UserOut)
def get_current_user_info(user=Depends(get_current_user)):
    return user


@router.post("/refresh")
def refresh_tokens(refresh_token: str):
    try:
        payload = jwt.decode(refresh_token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Refresh token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    token_id = payload.get("jti")
    if not user_id or not token_id or payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid token")

    stored = get_current("refresh_tokens", RefreshToken, token_id, "refresh_token_id")
    if stored is None or str(stored.user_id) != str(user_id):
        raise HTTPException(status_code=401, detail="Token expired or already used")

    user = get_current("users", User, user_id, "user_id")
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")

    # Rotation: a redeemed refresh token cannot be used again
    soft_delete_record(stored, "refresh_tokens", "refresh_token_id")

    access_token = create_access_token({"sub": user_id})
    new_refresh_token = create_refresh_token(user_id)

    log_action(user_id, "refresh", "users", user_id)
    return {"access_token": access_token, "refresh_token": new_refresh_token, "token_type": "bearer"}
