"""Auth routes: register, login, current user, role selection.

Route overview:
  POST /register     - self-registration, starts with the "user" role
  POST /login        - email + password login
  GET  /me           - current user profile + dashboard route
  POST /select-role  - a "user" account picks owner or tenant
  POST /refresh      - exchange a refresh token for a new pair
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.deps import get_current_user
from bloomrent.auth.jwt import decode_token, issue_tokens
from bloomrent.auth.password import hash_password, verify_password
from bloomrent.auth.roles import SELF_SELECTABLE_ROLES, dashboard_for, parse_role
from bloomrent.database import get_db
from bloomrent.middleware.exceptions import PermissionDeniedError
from bloomrent.models.enums import UserRole
from bloomrent.models.user import User
from bloomrent.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    SelectRoleRequest,
    TokenResponse,
    UserOut,
)

router = APIRouter()


class RefreshRequest(BaseModel):
    refresh_token: str


def _user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.value,
        is_active=user.is_active,
        dashboard=dashboard_for(user.role),
    )


# ── POST /register ──────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Self-registration. The account picks owner/tenant via /select-role."""
    existing = await db.execute(select(User).where(func.lower(User.email) == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        name=body.name.strip(),
        role=UserRole.USER,
    )
    db.add(user)
    await db.flush()
    return issue_tokens(user)


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(func.lower(User.email) == body.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise PermissionDeniedError("Account deactivated")
    return issue_tokens(user)


# ── POST /refresh ────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(body.refresh_token)
    if not payload.get("sub") or payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    user = await db.get(User, payload["sub"])
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return issue_tokens(user)


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return _user_out(user)


# ── POST /select-role ───────────────────────────────────────

@router.post("/select-role", response_model=TokenResponse)
async def select_role(
    body: SelectRoleRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Pick owner or tenant once; the new tokens carry the new role."""
    role = parse_role(body.role)
    if role not in SELF_SELECTABLE_ROLES:
        raise HTTPException(status_code=400, detail="Role must be one of: owner, tenant")
    if user.role not in (UserRole.USER, role):
        raise HTTPException(status_code=400, detail="Role has already been selected")

    user.role = role
    await db.flush()
    return issue_tokens(user)
