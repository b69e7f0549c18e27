import logging
import traceback
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status

from aqualink.api.deps import get_current_user, get_storage
from aqualink.core.errors import DuplicateError
from aqualink.schemas import User, UserCreate
from aqualink.storage import Storage

logger = logging.getLogger("aqualink.users")

router = APIRouter()

# Literal segments (/me, /email, /username, /role) must stay above /users/{user_id}.


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_new_user(
    user_in: UserCreate,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Register a new application user.
    """
    try:
        user = await storage.create_user(user_in)
        logger.info(f"User created: email={user.email}, user_id={user.id}, role={user.role.value}")
        return user
    except DuplicateError as e:
        logger.warning(f"User creation failed - {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        error_details = traceback.format_exc()
        logger.error(f"User creation error: email={user_in.email}, error={str(e)}\n{error_details}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating the user",
        )


@router.get("/users/me", response_model=User)
async def read_user_me(
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Get current user.
    """
    return current_user


@router.get("/users/email/{email}", response_model=User)
async def read_user_by_email(
    email: str,
    storage: Storage = Depends(get_storage),
) -> Any:
    user = await storage.get_user_by_email(email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/users/username/{username}", response_model=User)
async def read_user_by_username(
    username: str,
    storage: Storage = Depends(get_storage),
) -> Any:
    user = await storage.get_user_by_username(username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/users/role/{role}", response_model=List[User])
async def read_users_by_role(
    role: str,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    List users with the given role. Unknown roles simply match nobody.
    """
    return await storage.get_users_by_role(role)


@router.get("/users/{user_id}", response_model=User)
async def read_user(
    user_id: int,
    storage: Storage = Depends(get_storage),
) -> Any:
    """
    Get a specific user by id.
    """
    user = await storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
