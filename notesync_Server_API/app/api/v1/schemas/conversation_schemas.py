# app/api/v1/schemas/conversation_schemas.py
#
# Imports
from typing import Optional
# 3rd-party Libraries
from pydantic import Field
#
# Local Imports
from notesync_Server_API.app.api.v1.schemas.base_schemas import CamelModel, EntityResponseBase
from notesync_Server_API.app.core.DB_Management.Entity_Models import MessageRole
#
#######################################################################################################################
#
# Schemas:

class ConversationCreate(CamelModel):
    id: Optional[str] = Field(None, description="Optional client-provided id")
    title: Optional[str] = Field(None, max_length=255)


class ConversationUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=255)


class ConversationResponse(EntityResponseBase):
    title: str


class MessageCreate(CamelModel):
    id: Optional[str] = Field(None, description="Optional client-provided id")
    role: MessageRole
    content: str = ""


class MessageResponse(EntityResponseBase):
    conversation_id: str
    role: MessageRole
    content: str


class ConversationDeleteResponse(CamelModel):
    conversation_id: str
    messages_affected: int
    permanent: bool
