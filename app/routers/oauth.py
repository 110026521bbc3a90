"""Shopify OAuth flow for app installation and offline token storage."""
import hashlib
import hmac
import logging
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_shop
from app.services.session_service import session_service

LOG = logging.getLogger(__name__)

router = APIRouter()


def verify_shopify_hmac(query_params: dict, hmac_to_verify: str) -> bool:
    """Verify the HMAC signature Shopify adds to redirect query strings."""
    client_secret = settings.shopify_api_secret
    if not client_secret or not hmac_to_verify:
        return False

    # Build message from query params (excluding hmac and signature)
    filtered_params = {k: v for k, v in query_params.items()
                      if k not in ['hmac', 'signature']}
    message = '&'.join([f"{k}={v}" for k, v in sorted(filtered_params.items())])

    computed_hmac = hmac.new(
        client_secret.encode('utf-8'),
        message.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()

    return hmac.compare_digest(computed_hmac, hmac_to_verify)


@router.get("/install")
async def install_app(request: Request, shop: str = Depends(get_shop)):
    """
    Redirect the merchant to Shopify's authorization page.

    Usage: https://your-app.com/auth/install?shop=yourstore.myshopify.com
    """
    if not settings.shopify_api_key:
        raise HTTPException(status_code=500, detail="Shopify API key not configured")

    # Must match the redirect URL configured for the app
    redirect_uri = f"{request.base_url}auth/callback"

    auth_params = {
        'client_id': settings.shopify_api_key,
        'scope': settings.shopify_scopes,
        'redirect_uri': redirect_uri,
        'state': shop,
    }

    return RedirectResponse(url=f"https://{shop}/admin/oauth/authorize?{urlencode(auth_params)}")


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: str = None,
    shop: str = None,
    db: Session = Depends(get_db)
):
    """Exchange the authorization code for an offline access token and store it."""
    if not code or not shop:
        raise HTTPException(status_code=400, detail="Missing code or shop parameter")

    query_params = dict(request.query_params)
    if not verify_shopify_hmac(query_params, query_params.get('hmac', '')):
        raise HTTPException(status_code=403, detail="Invalid HMAC signature")

    token_url = f"https://{shop}/admin/oauth/access_token"
    token_data = {
        'client_id': settings.shopify_api_key,
        'client_secret': settings.shopify_api_secret,
        'code': code
    }

    try:
        response = requests.post(token_url, json=token_data, timeout=settings.shopify_request_timeout)
        response.raise_for_status()
        token_response = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        LOG.error("Token exchange failed for %s: %s", shop, e)
        raise HTTPException(status_code=502, detail=f"Failed to exchange token: {str(e)}")

    access_token = token_response.get('access_token')
    if not access_token:
        raise HTTPException(status_code=502, detail="No access token received")

    session_service.store_session(
        db,
        shop=shop,
        access_token=access_token,
        scope=token_response.get('scope'),
        state=query_params.get('state', '')
    )
    LOG.info("Installed for %s", shop)

    return RedirectResponse(url=f"/?shop={shop}")


@router.get("/status")
async def oauth_status(shop: str = Depends(get_shop), db: Session = Depends(get_db)):
    """Check whether the app holds a token for the shop."""
    record = session_service.get_offline_session(db, shop)

    return {
        'shop': shop,
        'installed': bool(record and record.access_token),
        'scope': record.scope if record else None,
        'token_preview': f"{record.access_token[:6]}..." if record and record.access_token else None,
        'api_key_set': bool(settings.shopify_api_key),
        'api_secret_set': bool(settings.shopify_api_secret),
    }
