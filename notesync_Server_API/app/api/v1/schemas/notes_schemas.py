# app/api/v1/schemas/notes_schemas.py
#
# Imports
from typing import List, Optional
# 3rd-party Libraries
from pydantic import Field
#
# Local Imports
from notesync_Server_API.app.api.v1.schemas.base_schemas import CamelModel, EntityResponseBase
#
#######################################################################################################################
#
# Schemas:

# --- Note Schemas ---
class NoteCreate(CamelModel):
    id: Optional[str] = Field(None, description="Optional client-provided id. If None, will be auto-generated.")
    title: Optional[str] = Field(None, max_length=255, description="Title; 'Untitled' when empty")
    content: str = Field("", description="Content of the note")
    folder_id: Optional[str] = Field(None, description="Containing folder, or null for root level")


class NoteUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=255, description="New title for the note")
    content: Optional[str] = Field(None, description="New content for the note")
    folder_id: Optional[str] = Field(None, description="Move to this folder; explicit null moves to root level")


class NoteResponse(EntityResponseBase):
    title: str
    content: str
    folder_id: Optional[str] = None


# --- Folder Schemas ---
class FolderCreate(CamelModel):
    id: Optional[str] = Field(None, description="Optional client-provided id. If None, will be auto-generated.")
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = Field(None, description="Parent folder, or null for root level")


class FolderUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_id: Optional[str] = Field(None, description="New parent; explicit null moves to root level")


class FolderResponse(EntityResponseBase):
    name: str
    parent_id: Optional[str] = None


class CascadeResponse(CamelModel):
    folder_ids: List[str] = Field(default_factory=list, description="Folders in the affected subtree")
    folders_affected: int
    notes_affected: int
