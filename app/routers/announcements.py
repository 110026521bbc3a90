"""Announcement bar load/save router."""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Form, HTTPException

from app.dependencies import get_metafield_store, get_now
from app.schemas import AnnouncementListResponse, SaveAnnouncementsResponse
from app.services.announcement_service import decode_bars, duplicate_ids, serialize_bars, with_status
from app.services.shopify_service import LoadFailed, SaveConflict, SaveFailed

router = APIRouter()


def save_collection(store, raw: str, compare_digest: Optional[str] = None) -> int:
    """Decode a submitted collection and write it. Returns the number of bars saved."""
    collection = decode_bars(raw)
    repeated = duplicate_ids(collection)
    if repeated:
        raise HTTPException(status_code=422, detail=f"Duplicate bar ids: {', '.join(repeated)}")

    try:
        store.save(serialize_bars(collection), compare_digest=compare_digest)
    except SaveConflict as e:
        raise HTTPException(status_code=409, detail=f"Announcements changed since they were loaded: {e}")
    except SaveFailed as e:
        raise HTTPException(status_code=502, detail=f"Failed to save announcements: {e}")
    return len(collection)


@router.get("/", response_model=AnnouncementListResponse)
async def load_announcements(
    store=Depends(get_metafield_store),
    now: datetime = Depends(get_now)
):
    """Load the shop's bars with their current status."""
    try:
        stored = store.load()
    except LoadFailed as e:
        raise HTTPException(status_code=502, detail=f"Failed to load announcements: {e}")

    bars = decode_bars(stored.value)
    return {"bars": with_status(bars, now), "digest": stored.digest}


@router.post("/", response_model=SaveAnnouncementsResponse)
async def save_announcements(
    bars: str = Form("[]"),
    compare_digest: Optional[str] = Form(None),
    store=Depends(get_metafield_store)
):
    """
    Save all bars at once.

    ``bars`` is the whole collection as a JSON string. It goes through the
    same decoder as stored data, so bars with blank text are never written,
    and a collection with repeated ids is rejected with 422.
    Pass ``compare_digest`` from the load response to reject the save if
    someone else saved in between.
    """
    saved = save_collection(store, bars, compare_digest)
    return {"success": True, "saved": saved}
