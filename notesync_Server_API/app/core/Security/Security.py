# Security.py
#
# Description: Creating and validating JWT access tokens for multi-user mode.
#
# Imports
from datetime import datetime, timedelta, timezone
from typing import Optional

# 3rd-Party Libraries
import jwt
from loguru import logger
from pydantic import BaseModel

# Local Imports
from notesync_Server_API.app.core.config import settings

#######################################################################################################################


# Data extracted from the token payload
class TokenData(BaseModel):
    user_id: Optional[str] = None


def create_access_token(data: dict, expires_delta_minutes: Optional[int] = None) -> str:
    """
    Creates a JWT access token.

    Args:
        data (dict): Data to encode in the token. MUST contain 'user_id'.
        expires_delta_minutes (Optional[int]): Custom expiration time in minutes.
            Defaults to settings["ACCESS_TOKEN_EXPIRE_MINUTES"].

    Raises:
        ValueError: If 'user_id' is missing in the input data.
    """
    if "user_id" not in data:
        logger.error("Attempted to create token without 'user_id' in data.")
        raise ValueError("Input data for token creation must contain 'user_id'.")

    minutes = expires_delta_minutes if expires_delta_minutes is not None else settings["ACCESS_TOKEN_EXPIRE_MINUTES"]
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(data["user_id"]),
        "exp": now + timedelta(minutes=minutes),
        "iat": now,
    }
    return jwt.encode(payload, settings["JWT_SECRET_KEY"], algorithm=settings["JWT_ALGORITHM"])


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decodes and validates a JWT access token.

    Returns:
        TokenData with the 'sub' claim as user_id, or None if the token is invalid, expired or has no subject.
    """
    try:
        payload = jwt.decode(token, settings["JWT_SECRET_KEY"], algorithms=[settings["JWT_ALGORITHM"]])
    except jwt.ExpiredSignatureError:
        logger.warning("Token validation failed: Signature has expired.")
        return None
    except jwt.InvalidSignatureError:
        logger.error("Token validation failed: Invalid signature.")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token validation failed: Invalid token - {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Token decoded successfully, but 'sub' (user_id) claim is missing.")
        return None
    return TokenData(user_id=str(user_id))

#
# End of Security.py
# #####################################################################################################################
