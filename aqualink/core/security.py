from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from jose import jwt
from passlib.context import CryptContext

from aqualink.core.config import Settings, settings as default_settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Credentials stay with the identity provider; accounts store a hashed placeholder.
PASSWORD_PLACEHOLDER = "identity-provider"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    subject: Union[str, Any],
    email: str,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Issue an identity token in the shape the identity provider hands to the
    browser: ``sub`` is the provider's user id, ``email`` links it to the
    application user.
    """
    settings = settings or default_settings
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject), "email": email}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Raises ``jose.JWTError`` for bad signatures and expired tokens."""
    settings = settings or default_settings
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
