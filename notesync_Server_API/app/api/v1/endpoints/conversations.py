# app/api/v1/endpoints/conversations.py
# Description: Conversation and message storage endpoints.
#
# Imports
import asyncio
from typing import List
#
# 3rd-party Libraries
from fastapi import APIRouter, Depends, Query, status
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.api.v1.API_Deps.NoteSync_DB_Deps import get_conversations_service, get_owner_user_id
from notesync_Server_API.app.api.v1.API_Deps.v1_endpoint_deps import handle_db_errors, SERVICE_ERRORS
from notesync_Server_API.app.api.v1.schemas.base_schemas import DetailResponse
from notesync_Server_API.app.api.v1.schemas.conversation_schemas import (
    ConversationCreate, ConversationUpdate, ConversationResponse, ConversationDeleteResponse,
    MessageCreate, MessageResponse
)
from notesync_Server_API.app.core.Chat.Conversations_Library import ConversationsService
#
#######################################################################################################################
#
# Functions:

router = APIRouter()

_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": DetailResponse}}


@router.post("/", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED,
             summary="Create a conversation")
async def create_conversation(
        conversation_in: ConversationCreate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        return await asyncio.to_thread(service.create_conversation, owner_user_id, conversation_in.title,
                                       conversation_in.id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")


@router.get("/", response_model=List[ConversationResponse], summary="List active conversations, newest first")
async def list_conversations(
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        return await asyncio.to_thread(service.list_conversations, owner_user_id, limit, offset)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversations list")


@router.get("/{conversation_id}", response_model=ConversationResponse, responses=_NOT_FOUND)
async def get_conversation(
        conversation_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        return await asyncio.to_thread(service.get_conversation, owner_user_id, conversation_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")


@router.patch("/{conversation_id}", response_model=ConversationResponse, responses=_NOT_FOUND)
async def update_conversation(
        conversation_id: str,
        conversation_in: ConversationUpdate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    patch = conversation_in.model_dump(exclude_unset=True)
    try:
        return await asyncio.to_thread(service.update_conversation, owner_user_id, conversation_id, patch)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")


@router.delete("/{conversation_id}", response_model=ConversationDeleteResponse,
               summary="Delete a conversation and its messages", responses=_NOT_FOUND)
async def delete_conversation(
        conversation_id: str,
        permanent: bool = Query(False, description="Hard delete instead of moving to trash"),
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        count = await asyncio.to_thread(service.delete_conversation, owner_user_id, conversation_id, permanent)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")
    return ConversationDeleteResponse(conversation_id=conversation_id, messages_affected=count, permanent=permanent)


@router.post("/{conversation_id}/restore", response_model=ConversationResponse,
             summary="Restore a conversation and its messages", responses=_NOT_FOUND)
async def restore_conversation(
        conversation_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        return await asyncio.to_thread(service.restore_conversation, owner_user_id, conversation_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")


# --- Messages ---
@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED,
             responses=_NOT_FOUND)
async def add_message(
        conversation_id: str,
        message_in: MessageCreate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    logger.debug(f"Owner '{owner_user_id}' appending {message_in.role.value} message to '{conversation_id}'")
    try:
        return await asyncio.to_thread(service.add_message, owner_user_id, conversation_id, message_in.role,
                                       message_in.content, message_in.id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse], responses=_NOT_FOUND)
async def list_messages(
        conversation_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        return await asyncio.to_thread(service.list_messages, owner_user_id, conversation_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "conversation")


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_NOT_FOUND)
async def delete_message(
        message_id: str,
        permanent: bool = Query(False),
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        await asyncio.to_thread(service.delete_message, owner_user_id, message_id, permanent)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "message")


@router.post("/messages/{message_id}/restore", response_model=MessageResponse, responses=_NOT_FOUND)
async def restore_message(
        message_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: ConversationsService = Depends(get_conversations_service),
):
    try:
        return await asyncio.to_thread(service.restore_message, owner_user_id, message_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "message")

#
# End of conversations.py
#######################################################################################################################
