from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from api.deps import get_entry_repository, get_entry_service, get_session_verifier, require_session
from config import settings
from exceptions import AuthenticationError
from repositories.entries import EntryRepository
from schemas.entry import (
    CustomerSuggestion,
    EntryCreate,
    EntryRecord,
    RenewRequest,
    SettledEntryRecord,
    SettleRequest,
)
from services.autocomplete import DebouncedSearch
from services.entries import EntryService
from services.session import SessionVerifier

router = APIRouter(prefix="/api/entries", tags=["entries"], dependencies=[Depends(require_session)])
# WebSockets cannot carry the bearer header from a browser; the token comes as a query param.
ws_router = APIRouter(prefix="/api/entries", tags=["entries"])


@router.post("", response_model=EntryRecord, status_code=201)
async def create_entry(body: EntryCreate, service: EntryService = Depends(get_entry_service)):
    return await service.create_entry(body)


@router.get("/suggestions", response_model=list[CustomerSuggestion])
async def suggest_customers(
    q: str = Query("", description="Partial customer name"),
    service: EntryService = Depends(get_entry_service),
):
    return await service.suggest_customers(q)


@router.get("/active", response_model=list[EntryRecord])
async def list_active_entries(
    date: Optional[dt.date] = Query(None, description="Exact loan date"),
    search: Optional[str] = Query(None, description="Name, mobile, type or amount"),
    service: EntryService = Depends(get_entry_service),
):
    return await service.list_active(on_date=date, search=search)


@router.get("/settled", response_model=list[SettledEntryRecord])
async def list_settled_entries(
    date: Optional[dt.date] = Query(None, description="Exact settlement date"),
    search: Optional[str] = Query(None, description="Name, mobile, type or amount"),
    service: EntryService = Depends(get_entry_service),
):
    return await service.list_settled(settled_on=date, search=search)


@router.get("/{entry_id}", response_model=EntryRecord)
async def get_entry(entry_id: int, service: EntryService = Depends(get_entry_service)):
    return await service.get_entry(entry_id)


@router.post("/{entry_id}/settle", response_model=EntryRecord)
async def settle_entry(entry_id: int, body: SettleRequest, service: EntryService = Depends(get_entry_service)):
    return await service.settle(entry_id, body)


@router.post("/{entry_id}/renew", response_model=EntryRecord)
async def renew_entry(entry_id: int, body: RenewRequest, service: EntryService = Depends(get_entry_service)):
    return await service.renew(entry_id, body)


@router.post("/{entry_id}/revoke", response_model=EntryRecord)
async def revoke_settlement(entry_id: int, service: EntryService = Depends(get_entry_service)):
    return await service.revoke(entry_id)


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(entry_id: int, service: EntryService = Depends(get_entry_service)):
    await service.delete(entry_id)
    return None


@ws_router.websocket("/suggestions/ws")
async def suggestion_socket(
    websocket: WebSocket,
    token: str = Query(""),
    verifier: SessionVerifier = Depends(get_session_verifier),
    repository: EntryRepository = Depends(get_entry_repository),
):
    """Each text frame is the current name field; one suggestion list is sent per idle window."""
    try:
        verifier.verify(token)
    except AuthenticationError:
        await websocket.close(code=1008)
        return
    await websocket.accept()

    service = EntryService(repository)

    async def deliver(suggestions: list[CustomerSuggestion]) -> None:
        await websocket.send_json([s.model_dump() for s in suggestions])

    debouncer = DebouncedSearch(
        service.suggest_customers,
        deliver,
        delay=settings.suggestion_debounce_ms / 1000,
    )
    try:
        while True:
            debouncer.submit(await websocket.receive_text())
    except WebSocketDisconnect:
        pass
    finally:
        debouncer.cancel()
