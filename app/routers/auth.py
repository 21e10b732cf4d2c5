import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import AuthenticationRequired, Conflict, Forbidden
from app.models.user import User
from app.auth import (
    InvalidTokenError,
    create_access_token,
    decode_refresh_token,
    get_current_user,
    hash_password,
    issue_token_pair,
    verify_password,
)
from app.permissions import sorted_permission_values
from app.schemas.common import success_response
from app.schemas.user import (
    AccessTokenResponse,
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from app.services.roles import get_or_create_default_role

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "Email already registered"


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(func.lower(User.email) == email).first() is not None


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role_name,
        permissions=sorted_permission_values(user.role.permission_set) if user.role else [],
        is_email_verified=user.is_email_verified,
        is_active=user.is_active,
        created_at=user.created_at,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account with the default role and return a token pair."""
    if _email_taken(db, body.email):
        raise Conflict(EMAIL_TAKEN_MESSAGE)
    role = get_or_create_default_role(db)
    user = User(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=hash_password(body.password),
        role_id=role.id,
    )
    db.add(user)
    try:
        db.flush()
        db.refresh(user)
        access, refresh = issue_token_pair(user)
        db.commit()
    except IntegrityError:
        # a concurrent registration claimed the email after the check above
        db.rollback()
        raise Conflict(EMAIL_TAKEN_MESSAGE)
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return success_response(
        AuthResponse(user=user_response(user), access_token=access, refresh_token=refresh),
        message="User registered successfully",
    )


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password. Invalidates any earlier refresh token."""
    user = db.query(User).filter(func.lower(User.email) == body.email).first()
    if not user:
        raise AuthenticationRequired("Invalid email or password")
    if not user.is_active:
        raise Forbidden("Account is inactive. Please contact support.")
    if not verify_password(body.password, user.password):
        raise AuthenticationRequired("Invalid email or password")
    access, refresh = issue_token_pair(user)
    db.commit()
    db.refresh(user)
    return success_response(
        AuthResponse(user=user_response(user), access_token=access, refresh_token=refresh),
        message="Login successful",
    )


@router.post("/logout")
def logout(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user.refresh_token = None
    db.commit()
    return success_response(message="Logout successful")


@router.post("/refresh-token")
def refresh_token(body: RefreshTokenRequest, db: Session = Depends(get_db)):
    """New access token for the user's current refresh token."""
    try:
        payload = decode_refresh_token(body.refresh_token)
    except InvalidTokenError:
        raise AuthenticationRequired("Invalid refresh token")
    user = db.query(User).filter(User.id == payload.sub).first()
    if not user or user.refresh_token != body.refresh_token:
        raise AuthenticationRequired("Invalid refresh token")
    if not user.is_active:
        raise Forbidden("Account is inactive. Please contact support.")
    access = create_access_token(user.id, user.email, user.role_name)
    return success_response(AccessTokenResponse(access_token=access), message="Token refreshed successfully")


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user)):
    return success_response({"user": user_response(user)})
