import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from aqualink.api.deps import get_identity, get_storage
from aqualink.schemas import AuthSession, SessionProfile, TokenPayload
from aqualink.services.accounts import sync_user
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.auth")

router = APIRouter()


@router.post("/auth/session", response_model=AuthSession)
async def start_session(
    profile: Optional[SessionProfile] = Body(default=None),
    identity: TokenPayload = Depends(get_identity),
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Exchange an identity-provider token for the matching application user.

    First sign-ins create the account (as a resident unless the profile asks
    for another role); later sign-ins return the existing account untouched.
    """
    user, created = await sync_user(storage, identity, profile)
    logger.info(f"Session started: email={user.email}, user_id={user.id}, created={created}")
    return AuthSession(user=user, created=created)
