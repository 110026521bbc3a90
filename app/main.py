"""Main FastAPI application."""
import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.templating import Jinja2Templates
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db, init_db
from app.dependencies import get_metafield_store, get_now, get_shop, normalize_shop
from app.routers import announcements, editor, health, oauth, webhooks
from app.routers.announcements import save_collection
from app.services.announcement_service import decode_bars, serialize_bars, with_status
from app.services.session_service import session_service
from app.services.shopify_service import LoadFailed, ShopifyMetafieldStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
LOG = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Embedded Shopify admin for scheduled announcement bars"
)

app_dir = Path(__file__).parent
templates = Jinja2Templates(directory=app_dir / "templates")

# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(announcements.router, prefix="/api/v1/announcements", tags=["Announcements"])
app.include_router(editor.router, prefix="/api/v1/editor", tags=["Editor"])
app.include_router(oauth.router, prefix="/auth", tags=["OAuth"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])


@app.get("/", response_class=HTMLResponse)
async def root(request: Request, shop: str = "", db: Session = Depends(get_db)):
    """Serve the admin page for a shop."""
    shop = normalize_shop(shop)
    context = {"request": request, "shop": shop, "installed": False, "bars": [], "bars_json": "[]", "error": None}

    record = session_service.get_offline_session(db, shop) if shop else None
    if record:
        context["installed"] = True
        store = ShopifyMetafieldStore(shop=shop, access_token=record.access_token)
        try:
            stored = store.load()
            bars = decode_bars(stored.value)
            context["bars"] = with_status(bars, get_now())
            context["bars_json"] = serialize_bars(bars)
            context["digest"] = stored.digest
        except LoadFailed as e:
            context["error"] = str(e)

    return templates.TemplateResponse(request, "index.html", context)


@app.post("/save")
async def save_from_admin_page(
    bars: str = Form("[]"),
    compare_digest: Optional[str] = Form(None),
    shop: str = Depends(get_shop),
    store=Depends(get_metafield_store)
):
    """Save the admin page form and send the merchant back to the page."""
    save_collection(store, bars, compare_digest)
    return RedirectResponse(url=f"/?shop={shop}", status_code=303)


@app.on_event("startup")
async def startup_event():
    """Create session tables on app startup."""
    init_db()
    LOG.info("%s %s started", settings.app_name, settings.app_version)
