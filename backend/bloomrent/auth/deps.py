"""Authentication dependencies.

  get_current_user   → bearer access token → active ``User``
  require_role(...)  → 403 unless the user holds one of the roles
  require_owner      → anyone who manages properties
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.jwt import decode_token
from bloomrent.database import get_db
from bloomrent.middleware.exceptions import PermissionDeniedError
from bloomrent.models.enums import UserRole
from bloomrent.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    claims = decode_token(token)
    # Refresh tokens are only good for /api/auth/refresh
    if claims.get("type") != "access" or not claims.get("sub"):
        raise _unauthorized("Invalid or expired token")

    user = await db.get(User, claims["sub"])
    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return user


def require_role(*roles: UserRole):
    """Build a dependency that admits only ``roles``.

        @router.get("/tenants")
        async def list_tenants(owner: User = Depends(require_owner)): ...
    """
    allowed = ", ".join(role.value for role in roles)

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise PermissionDeniedError(f"Requires role: {allowed}")
        return user

    return _check


# A freshly registered "user" has not picked a role yet and lands on the
# owner dashboard, so it may use the owner pages too.
require_owner = require_role(UserRole.OWNER, UserRole.USER, UserRole.ADMIN)
