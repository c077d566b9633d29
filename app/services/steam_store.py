"""
Client for the Steam store-details endpoint
"""
import requests
import logging
from typing import Optional, Dict, Any

from constants import (
    STEAM_STORE_API_URL,
    USER_AGENT,
    AVAILABILITY_FREE,
    AVAILABILITY_PAID,
    AVAILABILITY_UNRELEASED,
    AVAILABILITY_REMOVED,
)

logger = logging.getLogger("main")


class SteamStoreClient:
    """Client for store.steampowered.com/api/appdetails"""

    def __init__(self, country_code: str = "JP", language: str = "english", timeout: float = 15, session=None):
        self.country_code = country_code
        self.language = language
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT
        })

    def get_app_details(self, app_id: int) -> Optional[Dict[str, Any]]:
        """
        Fetch the store entry for one app.

        Returns the per-app object (`{"success": bool, "data": {...}}`), or None
        when the request fails or the response has no entry for the app.
        """
        try:
            response = self.session.get(
                STEAM_STORE_API_URL,
                params={
                    "appids": app_id,
                    "cc": self.country_code,
                    "l": self.language,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Steam store API error for app {app_id}: {e}")
            return None
        except ValueError as e:
            logger.error(f"Steam store API returned invalid JSON for app {app_id}: {e}")
            return None

        if not isinstance(payload, dict):
            return None

        entry = payload.get(str(app_id))
        if not isinstance(entry, dict) or "success" not in entry:
            logger.warning(f"Steam store API returned no data for app {app_id}")
            return None
        return entry

    @staticmethod
    def classify_availability(entry: Optional[Dict[str, Any]]) -> Optional[str]:
        """Map a store entry to free | paid | unreleased | removed (None when unknown)"""
        if not entry:
            return None

        if not entry.get("success"):
            return AVAILABILITY_REMOVED

        data = entry.get("data")
        if not isinstance(data, dict) or not data:
            return None

        price = data.get("price_overview") or {}
        final_price = price.get("final")

        if data.get("is_free") or final_price == 0:
            return AVAILABILITY_FREE
        if isinstance(final_price, (int, float)) and final_price > 0:
            return AVAILABILITY_PAID
        if (data.get("release_date") or {}).get("coming_soon"):
            return AVAILABILITY_UNRELEASED
        # Released, not free and no price: not purchasable any more
        return AVAILABILITY_REMOVED

    def get_availability(self, app_id: int) -> Optional[str]:
        return self.classify_availability(self.get_app_details(app_id))
