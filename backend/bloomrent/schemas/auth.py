from pydantic import BaseModel, EmailStr, field_validator


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: str
    is_active: bool
    dashboard: str

    model_config = {"from_attributes": True}


# ── Self-registration ───────────────────────────────────────

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.lower()


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.lower()


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


# ── Role selection after signup ─────────────────────────────

class SelectRoleRequest(BaseModel):
    role: str
