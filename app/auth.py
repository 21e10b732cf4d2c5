import uuid
from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.config import get_settings
from app.database import get_db
from app.errors import AuthenticationRequired, Forbidden
from app.models.role import Role
from app.models.user import User
from app.permissions import Permission, RoleName, sorted_permission_values
from app.schemas.user import TokenPayload

settings = get_settings()
security = HTTPBearer(auto_error=False)

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

# Use Argon2 for password hashing
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


class InvalidTokenError(Exception):
    """Malformed, expired, wrongly signed or wrong-type token."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def _encode(user_id: str, email: str, role: str, token_type: str, key: str, minutes: int) -> str:
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "exp": expire,
        "type": token_type,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, key, algorithm=settings.algorithm)


def create_access_token(user_id: str, email: str, role: str) -> str:
    return _encode(
        user_id, email, role, TOKEN_TYPE_ACCESS,
        settings.secret_key, settings.access_token_expire_minutes,
    )


def create_refresh_token(user_id: str, email: str, role: str) -> str:
    return _encode(
        user_id, email, role, TOKEN_TYPE_REFRESH,
        settings.refresh_secret_key, settings.refresh_token_expire_minutes,
    )


def _decode(token: str, key: str, token_type: str) -> TokenPayload:
    try:
        payload = jwt.decode(token, key, algorithms=[settings.algorithm])
        data = TokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            role=payload.get("role", ""),
            exp=payload["exp"],
            type=payload.get("type", ""),
        )
    except (JWTError, KeyError, ValueError) as e:
        raise InvalidTokenError(str(e)) from e
    if data.type != token_type:
        raise InvalidTokenError(f"expected {token_type} token")
    return data


def decode_access_token(token: str) -> TokenPayload:
    return _decode(token, settings.secret_key, TOKEN_TYPE_ACCESS)


def decode_refresh_token(token: str) -> TokenPayload:
    return _decode(token, settings.refresh_secret_key, TOKEN_TYPE_REFRESH)


def issue_token_pair(user: User) -> tuple[str, str]:
    """Mint access + refresh tokens and make the refresh token the only valid one."""
    access = create_access_token(user.id, user.email, user.role_name)
    refresh = create_refresh_token(user.id, user.email, user.role_name)
    user.refresh_token = refresh
    return access, refresh


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if not credentials:
        raise AuthenticationRequired("Authentication required. No token provided.")

    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError:
        raise AuthenticationRequired("Invalid or expired token.")

    user = db.query(User).filter(User.id == payload.sub).first()

    if not user:
        raise AuthenticationRequired("User not found or token invalid.")

    if not user.is_active:
        raise Forbidden("Account is inactive. Please contact support.")

    return user


# ---------- Access gate ----------


def has_any_permission(role: Role | None, required) -> bool:
    """True if the role grants at least one of the required permissions."""
    if role is None:
        return False
    granted = role.permission_set
    return any(Permission(p) in granted for p in required)


def has_role(role: Role | None, allowed) -> bool:
    if role is None:
        return False
    return role.name in {RoleName(r).value for r in allowed}


def require_permissions(*permissions: Permission):
    """Dependency: authenticated user whose role has any of `permissions`."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not has_any_permission(user.role, permissions):
            raise Forbidden(
                "You do not have permission to perform this action.",
                errors={"required_permissions": sorted_permission_values(permissions)},
            )
        return user

    return dependency


def restrict_to(*roles: RoleName):
    """Dependency: authenticated user whose role name is one of `roles`."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not has_role(user.role, roles):
            raise Forbidden(
                "You do not have the required role to perform this action.",
                errors={
                    "required_roles": [RoleName(r).value for r in roles],
                    "your_role": user.role_name,
                },
            )
        return user

    return dependency
