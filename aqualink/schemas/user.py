from typing import Optional

from pydantic import EmailStr, Field

from aqualink.models.user import UserRole
from aqualink.schemas.base import CamelModel, UTCDateTime


def normalize_email(email: str) -> str:
    """Lowercase the domain the way ``EmailStr`` stores it; the local part is kept as typed."""
    local, at, domain = email.rpartition("@")
    if not at:
        return email
    return f"{local}@{domain.lower()}"


# Shared properties
class UserBase(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.RESIDENT
    profile_image_url: Optional[str] = None


# Properties to receive on user creation
class UserCreate(UserBase):
    # The identity provider owns credentials; clients send a placeholder.
    password: str = Field(..., min_length=1)


# Properties to return to client
class User(UserBase):
    id: int
    created_at: Optional[UTCDateTime] = None


# Properties stored by the in-memory backend
class UserInDB(User):
    hashed_password: str


# Optional profile sent along with the first sign-in
class SessionProfile(CamelModel):
    role: Optional[UserRole] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class AuthSession(CamelModel):
    user: User
    created: bool = False


# Token payload
class TokenPayload(CamelModel):
    sub: Optional[str] = None
    email: EmailStr
