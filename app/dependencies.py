"""Shared FastAPI dependencies."""
from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.session_service import session_service
from app.services.shopify_service import ShopifyMetafieldStore


def normalize_shop(shop: str) -> str:
    shop = (shop or "").strip().lower()
    if shop and not shop.endswith(".myshopify.com"):
        shop = f"{shop}.myshopify.com"
    return shop


def get_shop(shop: str = Query(..., description="Shop domain, e.g. mystore.myshopify.com")) -> str:
    shop = normalize_shop(shop)
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    return shop


def get_metafield_store(
    shop: str = Depends(get_shop),
    db: Session = Depends(get_db)
) -> ShopifyMetafieldStore:
    """Resolve the settings store for a shop from its stored offline session."""
    record = session_service.get_offline_session(db, shop)
    if not record or not record.access_token:
        raise HTTPException(status_code=401, detail=f"App is not installed for {shop}")
    return ShopifyMetafieldStore(shop=shop, access_token=record.access_token)


def get_now() -> datetime:
    """Reference instant for status evaluation."""
    return datetime.now(timezone.utc)
