"""Editor session router - create, edit, reorder and delete bars before saving."""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_metafield_store, get_now, get_shop
from app.schemas import (
    AnnouncementBar,
    DiscardEditorResponse,
    EditorStateResponse,
    MoveBarRequest,
)
from app.services.announcement_service import with_status
from app.services.editor_service import DraftRejected, EditorSession, editor_registry
from app.services.shopify_service import LoadFailed, SaveConflict, SaveFailed

router = APIRouter()


def get_editor(shop: str = Depends(get_shop)) -> EditorSession:
    session = editor_registry.get(shop)
    if not session:
        raise HTTPException(status_code=404, detail=f"No open editor for {shop}")
    return session


def editor_state(session: EditorSession, now: datetime) -> dict:
    return {
        "shop": session.shop,
        "bars": with_status(session.bars, now),
        "dirty": session.is_dirty(),
        "digest": session.digest,
    }


@router.post("/open", response_model=EditorStateResponse)
async def open_editor(
    shop: str = Depends(get_shop),
    store=Depends(get_metafield_store),
    now: datetime = Depends(get_now)
):
    """Load the stored bars and start a fresh editing session."""
    try:
        session = editor_registry.open(shop, store)
    except LoadFailed as e:
        raise HTTPException(status_code=502, detail=f"Failed to load announcements: {e}")
    return editor_state(session, now)


@router.get("/", response_model=EditorStateResponse)
async def get_editor_state(
    session: EditorSession = Depends(get_editor),
    now: datetime = Depends(get_now)
):
    return editor_state(session, now)


@router.post("/drafts", response_model=AnnouncementBar)
async def create_draft(session: EditorSession = Depends(get_editor)):
    """New unsaved bar with defaults. Send it back to PUT /bars to add it."""
    return session.create_draft()


@router.put("/bars", response_model=EditorStateResponse)
async def upsert_bar(
    draft: AnnouncementBar,
    session: EditorSession = Depends(get_editor),
    now: datetime = Depends(get_now)
):
    """Add the draft, or replace the bar with the same id in place."""
    try:
        session.upsert(draft)
    except DraftRejected as e:
        raise HTTPException(status_code=422, detail=str(e))
    return editor_state(session, now)


@router.delete("/bars/{bar_id}", response_model=EditorStateResponse)
async def delete_bar(
    bar_id: str,
    session: EditorSession = Depends(get_editor),
    now: datetime = Depends(get_now)
):
    session.remove(bar_id)
    return editor_state(session, now)


@router.post("/bars/move", response_model=EditorStateResponse)
async def move_bar(
    request: MoveBarRequest,
    session: EditorSession = Depends(get_editor),
    now: datetime = Depends(get_now)
):
    session.move(request.index, request.direction)
    return editor_state(session, now)


@router.post("/save", response_model=EditorStateResponse)
async def save_editor(
    session: EditorSession = Depends(get_editor),
    store=Depends(get_metafield_store),
    now: datetime = Depends(get_now)
):
    """Write the whole collection to the shop and clear unsaved changes."""
    try:
        session.save(store)
    except SaveConflict as e:
        raise HTTPException(status_code=409, detail=f"Announcements changed since they were loaded: {e}")
    except SaveFailed as e:
        raise HTTPException(status_code=502, detail=f"Failed to save announcements: {e}")
    return editor_state(session, now)


@router.delete("/", response_model=DiscardEditorResponse)
async def discard_editor(
    session: EditorSession = Depends(get_editor)
):
    """Close the session. Reports whether unsaved changes were thrown away."""
    editor_registry.discard(session.shop)
    return {"shop": session.shop, "discarded_unsaved_changes": session.is_dirty()}
