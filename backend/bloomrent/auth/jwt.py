"""Access and refresh tokens (HS256 JWTs).

Claims: ``sub`` (user id), ``role`` (``UserRole`` value), ``type``
(``access`` or ``refresh``) and ``exp``. The role claim is informational;
dependencies always reload the user.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from bloomrent.auth.roles import dashboard_for
from bloomrent.config import settings
from bloomrent.schemas.auth import TokenResponse, UserOut


def _encode(user_id: str, role: str, token_type: str, lifetime: timedelta) -> str:
    claims = {
        "sub": user_id,
        "role": role,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, role: str) -> str:
    return _encode(user_id, role, "access", timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(user_id: str, role: str) -> str:
    return _encode(user_id, role, "refresh", timedelta(days=settings.refresh_token_expire_days))


def decode_token(token: str) -> dict:
    """Verified claims, or ``{}`` for a bad signature or an expired token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return {}


def issue_tokens(user) -> TokenResponse:
    role = user.role.value
    return TokenResponse(
        access_token=create_access_token(user.id, role),
        refresh_token=create_refresh_token(user.id, role),
        user=UserOut(
            id=user.id,
            email=user.email,
            name=user.name,
            role=role,
            is_active=user.is_active,
            dashboard=dashboard_for(user.role),
        ),
    )
