# User_DB_Handling.py
# Description: Handles user authentication and identification based on application mode.
#
# Imports
from typing import Optional
#
# 3rd-Party Libraries
from fastapi import Depends, HTTPException, status, Header
from loguru import logger
from pydantic import BaseModel
#
# Local Imports
from notesync_Server_API.app.core.Security.Security import decode_access_token
from notesync_Server_API.app.core.config import settings
from notesync_Server_API.app.api.v1.API_Deps.v1_endpoint_deps import oauth2_scheme

#######################################################################################################################

# --- User Model ---
# Standardized User object, used even for the fixed single user. `id` is the owner identity of all data.
class User(BaseModel):
    id: str
    username: str
    is_active: bool = True


def _single_user() -> User:
    return User(id=str(settings["SINGLE_USER_FIXED_ID"]), username="single_user", is_active=True)

#######################################################################################################################

# --- Mode-Specific Verification ---

async def verify_jwt_and_fetch_user(token: str) -> User:
    """Validates a bearer token; the 'sub' claim becomes the user id."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token_data = decode_access_token(token)
    if token_data is None or token_data.user_id is None:
        logger.warning("Token decoding failed or user_id missing in token payload.")
        raise credentials_exception

    logger.debug(f"Token decoded successfully for user_id: {token_data.user_id}")
    return User(id=token_data.user_id, username=f"user_{token_data.user_id}")


# --- Combined Primary Authentication Dependency ---

async def get_request_user(
    api_key: Optional[str] = Header(None, alias="X-API-KEY"),
    token: Optional[str] = Depends(oauth2_scheme)
    ) -> User:
    """
    Determines the current user based on the application mode (single/multi).

    - Single-User Mode: verifies X-API-KEY against settings["SINGLE_USER_API_KEY"] and
      returns the fixed user.
    - Multi-User Mode: verifies the Bearer token and returns the user named by its subject.
    """
    if settings["SINGLE_USER_MODE"]:
        if api_key is None:
            logger.warning("Single-User Mode: X-API-KEY header is missing.")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="X-API-KEY header required for single-user mode"
            )
        if api_key != settings["SINGLE_USER_API_KEY"]:
            logger.warning(f"Single-User Mode: Invalid X-API-KEY received: '{api_key[:5]}...'")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid X-API-KEY"
            )
        return _single_user()

    if token is None:
        logger.warning("Multi-User Mode: Authorization Bearer token is missing.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated (Bearer token required for multi-user mode)",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await verify_jwt_and_fetch_user(token)

#
# End of User_DB_Handling.py
#######################################################################################################################
