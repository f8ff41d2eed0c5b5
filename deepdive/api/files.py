"""File routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from ..core.errors import ResourceNotFoundError, ValidationError
from ..schemas import Acknowledgement, FileCreatedResponse, UploadedFile
from ..store import PersistentStore
from .dependencies import get_store

router = APIRouter()


@router.get("/files", response_model=List[UploadedFile])
async def list_files(store: PersistentStore = Depends(get_store)) -> List[UploadedFile]:
    return await store.list_files()


@router.get("/files/{file_id}", response_model=UploadedFile)
async def get_file(file_id: str, store: PersistentStore = Depends(get_store)) -> UploadedFile:
    file = await store.get_file(file_id)
    if file is None:
        raise ResourceNotFoundError("File not found", details={"id": file_id})
    return file


@router.post(
    "/files",
    response_model=FileCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_file(
    file: UploadedFile, store: PersistentStore = Depends(get_store)
) -> FileCreatedResponse:
    # An empty journal is allowed, an absent one is not.
    if "content" not in file.model_fields_set:
        raise ValidationError("Invalid file data: missing required fields")
    file_id = await store.put_file(file)
    return FileCreatedResponse(id=file_id)


@router.delete("/files/{file_id}", response_model=Acknowledgement)
async def delete_file(file_id: str, store: PersistentStore = Depends(get_store)) -> Acknowledgement:
    await store.delete_file(file_id)
    return Acknowledgement(message="File deleted successfully")


@router.put("/files/{file_id}/access", response_model=Acknowledgement)
async def touch_file(file_id: str, store: PersistentStore = Depends(get_store)) -> Acknowledgement:
    await store.touch_file_access(file_id)
    return Acknowledgement(message="File access updated")
