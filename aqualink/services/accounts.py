import logging
from typing import Optional, Tuple

from aqualink.core.errors import DuplicateError
from aqualink.core.security import PASSWORD_PLACEHOLDER
from aqualink.models.user import UserRole
from aqualink.schemas import SessionProfile, TokenPayload, User, UserCreate
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.accounts")


async def unique_username(storage: Storage, email: str) -> str:
    """``jane@example.com`` -> ``jane``, or ``jane2``, ``jane3``... when taken."""
    base = email.split("@", 1)[0] or "user"
    candidate = base
    suffix = 1
    while await storage.get_user_by_username(candidate):
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


async def sync_user(
    storage: Storage,
    identity: TokenPayload,
    profile: Optional[SessionProfile] = None,
) -> Tuple[User, bool]:
    """
    Find the application user behind a provider identity, creating a
    resident account on first sign-in. Returns ``(user, created)``.
    The profile is only applied on creation; roles never change afterwards.
    """
    user = await storage.get_user_by_email(identity.email)
    if user:
        return user, False

    profile = profile or SessionProfile()
    user_in = UserCreate(
        username=await unique_username(storage, identity.email),
        email=identity.email,
        password=PASSWORD_PLACEHOLDER,
        role=profile.role or UserRole.RESIDENT,
        first_name=profile.first_name,
        last_name=profile.last_name,
        profile_image_url=profile.profile_image_url,
    )
    try:
        user = await storage.create_user(user_in)
    except DuplicateError:
        # A parallel first sign-in created the account in the meantime.
        user = await storage.get_user_by_email(identity.email)
        if user is None:
            raise
        return user, False

    logger.info(f"Account created on first sign-in: email={user.email}, user_id={user.id}, role={user.role.value}")
    return user, True
