# v1_endpoint_deps.py
# Description: This file is to serve as a sink for dependencies across the v1 endpoints.
# Imports
#
# 3rd-party Libraries
from fastapi import HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import (
    InputError, NotFoundError, ConflictError, NoteSyncDBError
)
from notesync_Server_API.app.core.Sync.exceptions import ApplyError, SyncError
#
#######################################################################################################################
#
# Static Variables
# auto_error=False so single-user requests without a bearer token still reach get_request_user.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)
# Exceptions the core raises on purpose; endpoints hand these to handle_db_errors.
SERVICE_ERRORS = (InputError, NoteSyncDBError, SyncError)
#
# Functions:


def handle_db_errors(e: Exception, entity_type: str = "resource"):
    """Maps core exceptions onto HTTP errors. Always raises."""
    if isinstance(e, InputError):
        logger.warning(f"Input error for {entity_type}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    elif isinstance(e, NotFoundError):
        logger.info(f"{entity_type} not found (ID: {e.entity_id or 'N/A'}): {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"{entity_type.capitalize()} not found") from e
    elif isinstance(e, ConflictError):
        logger.warning(f"Conflict error for {entity_type} (ID: {e.entity_id or 'N/A'}): {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail=f"A {entity_type} with the provided identifier already exists.") from e
    elif isinstance(e, ApplyError):
        logger.error(f"Sync apply error for {entity_type}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY,
                            detail="The batch could not be stored. No changes were kept; retry the whole request.") from e
    elif isinstance(e, NoteSyncDBError):
        logger.error(f"Database error for {entity_type}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail=f"A database error occurred while processing your request for {entity_type}.") from e
    elif isinstance(e, ValueError):
        logger.warning(f"Value error for {entity_type}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    logger.error(f"Unexpected service error for {entity_type}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        detail=f"An unexpected error occurred while processing your request for {entity_type}.") from e

#
# End of v1_endpoint_deps.py
#######################################################################################################################
