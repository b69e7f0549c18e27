import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import ValidationError

from aqualink.core.config import Settings
from aqualink.core.security import decode_access_token
from aqualink.models.user import UserRole
from aqualink.schemas import TokenPayload, User
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.auth")

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenPayload:
    """
    Identity asserted by the identity provider's token. Says nothing yet
    about whether an application user exists for it.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials, settings)
        return TokenPayload(**payload)
    except (JWTError, ValidationError):
        logger.warning("Rejected identity token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    identity: TokenPayload = Depends(get_identity),
    storage: Storage = Depends(get_storage),
) -> User:
    user = await storage.get_user_by_email(identity.email)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No account for this identity, start a session first",
        )
    return user


def require_role(*roles: UserRole) -> Callable:
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return dependency


get_current_driver = require_role(UserRole.DRIVER)
get_current_resident = require_role(UserRole.RESIDENT)
