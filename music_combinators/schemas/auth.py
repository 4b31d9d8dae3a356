# music_combinators/schemas/auth.py
from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

from music_combinators.schemas.account import AccountRead, validate_username


class SignUpRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    username: str

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return validate_username(v)


class SignInRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)


class AuthSession(SQLModel):
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None


class AuthResult(SQLModel):
    account: AccountRead
    session: AuthSession | None = None
