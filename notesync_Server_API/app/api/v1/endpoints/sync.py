# app/api/v1/endpoints/sync.py
# Description: Offline-sync endpoints: pull changes since a checkpoint, push a batch of client states.
#
# Imports
import asyncio
from typing import Optional
#
# 3rd-party Libraries
from fastapi import APIRouter, Depends, Query, status
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.api.v1.API_Deps.NoteSync_DB_Deps import get_sync_engine, get_owner_user_id
from notesync_Server_API.app.api.v1.API_Deps.v1_endpoint_deps import handle_db_errors, SERVICE_ERRORS
from notesync_Server_API.app.api.v1.schemas.sync_schemas import (
    SyncPullResponse, SyncPushRequest, SyncPushResponse, PushKindStats
)
from notesync_Server_API.app.api.v1.schemas.base_schemas import DetailResponse
from notesync_Server_API.app.core.Sync import SyncEngine, PushBatch
#
#######################################################################################################################
#
# Functions:

router = APIRouter()


@router.get(
    "/pull",
    response_model=SyncPullResponse,
    summary="Fetch every change since a checkpoint",
    responses={status.HTTP_400_BAD_REQUEST: {"model": DetailResponse}},
)
async def pull_changes(
        since: Optional[str] = Query(None, description="ISO-8601 checkpoint (the previous serverTime). "
                                                       "Omit for a full download."),
        owner_user_id: str = Depends(get_owner_user_id),
        engine: SyncEngine = Depends(get_sync_engine),
):
    """
    Returns conversations, messages, notes and folders of the caller whose updatedAt is at or after
    `since`, soft-deleted ones included so clients can mirror deletions.
    """
    logger.debug(f"Sync pull requested by owner '{owner_user_id}' since={since!r}")
    try:
        result = await asyncio.to_thread(engine.pull, owner_user_id, since)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "sync pull")
    return SyncPullResponse.model_validate(result)


@router.post(
    "/push",
    response_model=SyncPushResponse,
    status_code=status.HTTP_200_OK,
    summary="Apply a batch of client-side changes (Last-Write-Wins)",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": DetailResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": DetailResponse},
    },
)
async def push_changes(
        request_data: SyncPushRequest,
        owner_user_id: str = Depends(get_owner_user_id),
        engine: SyncEngine = Depends(get_sync_engine),
):
    batch = PushBatch(
        conversations=[item.to_payload() for item in request_data.conversations],
        messages=[item.to_payload() for item in request_data.messages],
        notes=[item.to_payload() for item in request_data.notes],
        folders=[item.to_payload() for item in request_data.folders],
    )
    logger.info(f"Sync push from owner '{owner_user_id}' with {batch.total()} item(s).")
    try:
        result = await asyncio.to_thread(engine.push, owner_user_id, batch)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "sync push")
    return SyncPushResponse(
        success=True,
        stats={kind: PushKindStats(**counts) for kind, counts in result.to_dict().items()},
    )

#
# End of sync.py
#######################################################################################################################
