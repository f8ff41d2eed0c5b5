"""Chat transcript routes."""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends

from ..schemas import Acknowledgement, ChatHistoryUpdate, ChatMessage
from ..store import PersistentStore
from .dependencies import get_store

router = APIRouter()


@router.get("/chat", response_model=Dict[str, List[ChatMessage]])
async def list_chat_histories(
    store: PersistentStore = Depends(get_store),
) -> Dict[str, List[ChatMessage]]:
    return await store.list_chat_histories()


@router.get("/chat/{file_id}", response_model=List[ChatMessage])
async def get_chat_history(
    file_id: str, store: PersistentStore = Depends(get_store)
) -> List[ChatMessage]:
    return await store.get_chat_history(file_id)


@router.post("/chat/{file_id}", response_model=Acknowledgement)
async def replace_chat_history(
    file_id: str,
    payload: ChatHistoryUpdate,
    store: PersistentStore = Depends(get_store),
) -> Acknowledgement:
    await store.replace_chat_history(file_id, payload.messages)
    return Acknowledgement(message="Chat history updated")


@router.delete("/chat/{file_id}", response_model=Acknowledgement)
async def delete_chat_history(
    file_id: str, store: PersistentStore = Depends(get_store)
) -> Acknowledgement:
    await store.delete_chat_history(file_id)
    return Acknowledgement(message="Chat history deleted")
