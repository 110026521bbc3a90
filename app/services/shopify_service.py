"""Shopify service layer - reads and writes the bar collection metafield.

The whole collection is one JSON metafield on the shop. Writes replace it
wholesale. Without a compare digest the last writer wins; passing the
digest returned by ``load`` turns a concurrent overwrite into
``SaveConflict``.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from app.config import settings

LOG = logging.getLogger(__name__)


class ShopifyAPIError(Exception):
    """Transport failure or GraphQL ``errors`` in a Shopify response."""


class LoadFailed(Exception):
    """The stored collection could not be read."""


class SaveFailed(Exception):
    """The collection could not be written."""


class SaveConflict(SaveFailed):
    """The stored value changed since it was loaded."""


@dataclass
class StoredSettings:
    value: Optional[str] = None
    digest: Optional[str] = None


LOAD_QUERY = """
query($namespace: String!, $key: String!) {
  shop {
    metafield(namespace: $namespace, key: $key) {
      value
      compareDigest
    }
  }
}
"""

SHOP_ID_QUERY = "{ shop { id } }"

SAVE_MUTATION = """
mutation metafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id compareDigest }
    userErrors { field message code }
  }
}
"""


class ShopifyMetafieldStore:
    """Load/save the settings metafield for one shop."""

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: Optional[str] = None,
        namespace: Optional[str] = None,
        key: Optional[str] = None,
    ):
        self.shop = shop
        self.access_token = access_token
        self.api_version = api_version or settings.shopify_api_version
        self.namespace = namespace or settings.metafield_namespace
        self.key = key or settings.metafield_key

    def _graphql_request(self, query: str, variables: dict = None) -> dict:
        """Make a GraphQL request to Shopify."""
        if not self.shop or not self.access_token:
            raise ShopifyAPIError("Shopify credentials not configured for this shop.")

        graphql_url = f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json"
        }
        try:
            response = requests.post(
                graphql_url,
                json={"query": query, "variables": variables or {}},
                headers=headers,
                timeout=settings.shopify_request_timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ShopifyAPIError(f"Shopify request failed: {e}") from e

        if "errors" in data:
            raise ShopifyAPIError(f"GraphQL errors: {data['errors']}")

        return data.get("data") or {}

    def load(self) -> StoredSettings:
        """Read the raw stored JSON (or None) and its compare digest."""
        try:
            result = self._graphql_request(
                LOAD_QUERY, {"namespace": self.namespace, "key": self.key}
            )
        except ShopifyAPIError as e:
            LOG.error("Loading %s.%s for %s failed: %s", self.namespace, self.key, self.shop, e)
            raise LoadFailed(str(e)) from e

        metafield = (result.get("shop") or {}).get("metafield") or {}
        return StoredSettings(
            value=metafield.get("value"),
            digest=metafield.get("compareDigest"),
        )

    def get_shop_gid(self) -> str:
        result = self._graphql_request(SHOP_ID_QUERY)
        shop_gid = (result.get("shop") or {}).get("id")
        if not shop_gid:
            raise ShopifyAPIError("Shop id missing from response")
        return shop_gid

    def save(self, value: str, compare_digest: Optional[str] = None) -> StoredSettings:
        """Overwrite the stored value. Returns the new digest."""
        try:
            metafield = {
                "namespace": self.namespace,
                "key": self.key,
                "type": "json",
                "value": value,
                "ownerId": self.get_shop_gid(),
            }
            if compare_digest:
                metafield["compareDigest"] = compare_digest

            result = self._graphql_request(SAVE_MUTATION, {"metafields": [metafield]})
        except ShopifyAPIError as e:
            LOG.error("Saving %s.%s for %s failed: %s", self.namespace, self.key, self.shop, e)
            raise SaveFailed(str(e)) from e

        payload = result.get("metafieldsSet") or {}
        user_errors = payload.get("userErrors") or []
        if user_errors:
            messages = "; ".join(err.get("message", "") for err in user_errors)
            if any(err.get("code") == "STALE_OBJECT" for err in user_errors):
                LOG.warning("Stale save rejected for %s: %s", self.shop, messages)
                raise SaveConflict(messages)
            raise SaveFailed(messages)

        saved = (payload.get("metafields") or [{}])[0] or {}
        LOG.info("Saved %s.%s for %s", self.namespace, self.key, self.shop)
        return StoredSettings(value=value, digest=saved.get("compareDigest"))
