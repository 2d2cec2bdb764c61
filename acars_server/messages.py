"""Endpoints exposing stored ACARS messages."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.concurrency import run_in_threadpool

from .deps import get_storage
from .errors import StorageError
from .models import StoredMessage
from .storage import StoragePort

router = APIRouter()


@router.get("/messages", response_model=List[StoredMessage], tags=["messages"])
async def list_recent_messages(
    limit: int = Query(50, ge=1, le=1000),
    storage: Optional[StoragePort] = Depends(get_storage),
) -> List[StoredMessage]:
    """Return the most recently stored messages, newest first."""

    if storage is None:
        raise HTTPException(status_code=503, detail="Persistence is disabled")
    try:
        return await run_in_threadpool(storage.recent, limit)
    except StorageError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
