# app/api/v1/schemas/sync_schemas.py
#
# Imports
from typing import Dict, List, Optional
# 3rd-party Libraries
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel
#
# Local Imports
from notesync_Server_API.app.api.v1.schemas.base_schemas import CamelModel, Timestamp
from notesync_Server_API.app.api.v1.schemas.notes_schemas import NoteResponse, FolderResponse
from notesync_Server_API.app.api.v1.schemas.conversation_schemas import (
    ConversationResponse, MessageResponse
)
from notesync_Server_API.app.core.DB_Management.Entity_Models import MessageRole
#
#######################################################################################################################
#
# Schemas:

# --- Push items ---
class PushItemBase(CamelModel):
    id: str = Field(..., min_length=1, description="Entity identifier, usually client-generated")
    owner_user_id: Optional[str] = Field(None, description="Ignored; ownership comes from the authenticated caller")
    created_at: Optional[Timestamp] = Field(None, description="Defaults to updatedAt when omitted")
    updated_at: Timestamp = Field(..., description="Client modification time; decides Last-Write-Wins")
    deleted_at: Optional[Timestamp] = Field(None, description="Soft-delete time, or null")

    def to_payload(self) -> dict:
        return self.model_dump(exclude={"owner_user_id"})


class ConversationPushItem(PushItemBase):
    title: str = Field("", description="Conversation title")


class MessagePushItem(PushItemBase):
    conversation_id: str = Field(..., min_length=1)
    role: MessageRole
    content: str = ""


class NotePushItem(PushItemBase):
    title: str = ""
    content: str = ""
    folder_id: Optional[str] = None


class FolderPushItem(PushItemBase):
    name: str = Field(..., min_length=1)
    parent_id: Optional[str] = None


class SyncPushRequest(CamelModel):
    conversations: List[ConversationPushItem] = Field(default_factory=list)
    messages: List[MessagePushItem] = Field(default_factory=list)
    notes: List[NotePushItem] = Field(default_factory=list)
    folders: List[FolderPushItem] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "notes": [{
                    "id": "2f0c0b0e-5d0f-4a39-9a55-2f4b0a1c9d10",
                    "title": "Groceries",
                    "content": "Milk, eggs",
                    "folderId": None,
                    "createdAt": "2024-05-01T09:00:00.000000Z",
                    "updatedAt": "2024-05-01T09:30:00.000000Z",
                    "deletedAt": None
                }]
            }
        }
    )


class PushKindStats(CamelModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0


class SyncPushResponse(CamelModel):
    success: bool = True
    stats: Dict[str, PushKindStats] = Field(default_factory=dict,
                                            description="Per-kind counts; skipped items are not identified")


# --- Pull ---
class SyncPullResponse(CamelModel):
    conversations: List[ConversationResponse]
    messages: List[MessageResponse]
    notes: List[NoteResponse]
    folders: List[FolderResponse]
    server_time: Timestamp = Field(..., description="Use as the next 'since' checkpoint")
