# app/api/v1/endpoints/notes.py
# Description: Note and folder endpoints, including cascading folder delete/restore.
#
# Imports
import asyncio
from typing import List, Optional
#
# 3rd-party Libraries
from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.api.v1.API_Deps.NoteSync_DB_Deps import get_notes_service, get_owner_user_id
from notesync_Server_API.app.api.v1.API_Deps.v1_endpoint_deps import handle_db_errors, SERVICE_ERRORS
from notesync_Server_API.app.api.v1.schemas.base_schemas import DetailResponse
from notesync_Server_API.app.api.v1.schemas.notes_schemas import (
    NoteCreate, NoteUpdate, NoteResponse,
    FolderCreate, FolderUpdate, FolderResponse,
    CascadeResponse
)
from notesync_Server_API.app.core.Notes.Notes_Library import NotesService
#
#######################################################################################################################
#
# Functions:

router = APIRouter()
folders_router = APIRouter()

_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": DetailResponse}}


# --- Notes Endpoints ---
@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED, summary="Create a new note")
async def create_note(
        note_in: NoteCreate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.create_note, owner_user_id, note_in.title, note_in.content,
                                       note_in.folder_id, note_in.id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "note")


@router.get("/", response_model=List[NoteResponse], summary="List the caller's active notes")
async def list_notes(
        folder_id: Optional[str] = Query(None, alias="folderId", description="Only notes directly in this folder"),
        root_only: bool = Query(False, alias="rootOnly", description="Only notes at root level"),
        limit: int = Query(100, ge=1, le=1000),
        offset: int = Query(0, ge=0),
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.list_notes, owner_user_id, folder_id, root_only, limit, offset)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "notes list")


@router.delete("/", status_code=status.HTTP_200_OK, summary="Delete every note of the caller")
async def delete_all_notes(
        confirm: bool = Query(False, description="Must be true"),
        permanent: bool = Query(True),
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    if not confirm:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Set confirm=true to delete all notes.")
    try:
        count = await asyncio.to_thread(service.delete_all_notes, owner_user_id, permanent)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "notes")
    return {"deleted": count}


@router.get("/{note_id}", response_model=NoteResponse, summary="Get a note by ID", responses=_NOT_FOUND)
async def get_note(
        note_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.get_note, owner_user_id, note_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "note")


@router.patch("/{note_id}", response_model=NoteResponse, summary="Update a note", responses=_NOT_FOUND)
async def update_note(
        note_id: str,
        note_in: NoteUpdate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    patch = note_in.model_dump(exclude_unset=True)
    try:
        return await asyncio.to_thread(service.update_note, owner_user_id, note_id, patch)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "note")


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a note",
               responses=_NOT_FOUND)
async def delete_note(
        note_id: str,
        permanent: bool = Query(False, description="Hard delete instead of moving to trash"),
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        await asyncio.to_thread(service.delete_note, owner_user_id, note_id, permanent)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "note")


@router.post("/{note_id}/restore", response_model=NoteResponse, summary="Restore a soft-deleted note",
             responses=_NOT_FOUND)
async def restore_note(
        note_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.restore_note, owner_user_id, note_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "note")


# --- Folder Endpoints ---
@folders_router.post("/", response_model=FolderResponse, status_code=status.HTTP_201_CREATED,
                     summary="Create a folder")
async def create_folder(
        folder_in: FolderCreate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.create_folder, owner_user_id, folder_in.name,
                                       folder_in.parent_id, folder_in.id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folder")


@folders_router.get("/", response_model=List[FolderResponse], summary="List the caller's active folders")
async def list_folders(
        parent_id: Optional[str] = Query(None, alias="parentId", description="Only direct children of this folder"),
        root_only: bool = Query(False, alias="rootOnly", description="Only root-level folders"),
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.list_folders, owner_user_id, parent_id, root_only)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folders list")


@folders_router.delete("/", response_model=CascadeResponse, summary="Delete every folder of the caller")
async def delete_all_folders(
        confirm: bool = Query(False, description="Must be true"),
        permanent: bool = Query(True),
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    if not confirm:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Set confirm=true to delete all folders.")
    try:
        return await asyncio.to_thread(service.delete_all_folders, owner_user_id, permanent)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folders")


@folders_router.get("/{folder_id}", response_model=FolderResponse, summary="Get a folder by ID",
                    responses=_NOT_FOUND)
async def get_folder(
        folder_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.get_folder, owner_user_id, folder_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folder")


@folders_router.patch("/{folder_id}", response_model=FolderResponse, summary="Rename or move a folder",
                      responses=_NOT_FOUND)
async def update_folder(
        folder_id: str,
        folder_in: FolderUpdate,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    patch = folder_in.model_dump(exclude_unset=True)
    try:
        return await asyncio.to_thread(service.update_folder, owner_user_id, folder_id, patch)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folder")


@folders_router.delete("/{folder_id}", response_model=CascadeResponse,
                       summary="Delete a folder with its subfolders and notes", responses=_NOT_FOUND)
async def delete_folder(
        folder_id: str,
        permanent: bool = Query(False, description="Hard delete the whole subtree instead of moving it to trash"),
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.delete_folder, owner_user_id, folder_id, permanent)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folder")


@folders_router.post("/{folder_id}/restore", response_model=CascadeResponse,
                     summary="Restore a folder with its subfolders and notes", responses=_NOT_FOUND)
async def restore_folder(
        folder_id: str,
        owner_user_id: str = Depends(get_owner_user_id),
        service: NotesService = Depends(get_notes_service),
):
    try:
        return await asyncio.to_thread(service.restore_folder, owner_user_id, folder_id)
    except SERVICE_ERRORS as e:
        handle_db_errors(e, "folder")

#
# End of notes.py
#######################################################################################################################
