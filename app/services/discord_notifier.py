import logging
import requests

from constants import PLATFORM_EPIC, PLATFORM_STEAM, USER_AGENT
from metrics import notifications_total
from utils import now_utc, strip_html, truncate, isoformat_utc

logger = logging.getLogger('main')

PLATFORM_LABELS = {
    PLATFORM_EPIC: "Epic Games Store",
    PLATFORM_STEAM: "Steam",
}

PLATFORM_COLORS = {
    PLATFORM_EPIC: 0x2A2A2A,
    PLATFORM_STEAM: 0x1B2838,
}


class DiscordNotifier:
    """Sends free game announcements to a Discord webhook"""

    def __init__(self, webhook_url=None, enabled=True, timeout=10, session=None):
        self.name = "Discord Notify"
        self.webhook_url = webhook_url
        self.enabled = enabled
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def is_enabled(self):
        return bool(self.enabled and self.webhook_url)

    def build_free_game_payload(self, game):
        platform = game.platform
        label = PLATFORM_LABELS.get(platform, platform)
        description = truncate(strip_html(game.description), 300) or f"Free on {label}"

        fields = [{"name": "Platform", "value": label, "inline": True}]
        if game.end_date:
            fields.append({"name": "Free until", "value": isoformat_utc(game.end_date)[:10], "inline": True})
        if game.app_id:
            fields.append({"name": "App ID", "value": str(game.app_id), "inline": True})

        embed = {
            "title": f"🎁 {game.title}",
            "description": description,
            "url": game.url,
            "color": PLATFORM_COLORS.get(platform, 0x5865F2),
            "fields": fields,
            "footer": {"text": "SteamSentinel - free games"},
            "timestamp": now_utc().isoformat(),
        }
        if platform == PLATFORM_STEAM and game.app_id:
            embed["thumbnail"] = {
                "url": f"https://cdn.akamai.steamstatic.com/steam/apps/{game.app_id}/header.jpg"
            }

        return {
            "content": f"**New free game on {label}!**",
            "embeds": [embed],
        }

    def _post(self, payload):
        try:
            response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return True, None
        except requests.RequestException as e:
            return False, str(e)

    def notify_free_game(self, game):
        """Dispatch one announcement; returns False when disabled or on failure"""
        if not self.is_enabled():
            logger.debug(f"{self.name}: webhook not configured, skipping notification for {game.title}")
            return False

        success, error = self._post(self.build_free_game_payload(game))
        if success:
            notifications_total.labels(status="sent").inc()
            logger.info(f"{self.name}: notification sent for {game.title}")
        else:
            notifications_total.labels(status="failed").inc()
            logger.error(f"{self.name}: failed to send notification for {game.title}: {error}")
        return success

    def send_test_message(self):
        if not self.is_enabled():
            return False, "Discord webhook URL is not configured"

        payload = {
            "embeds": [{
                "title": "✅ Discord webhook test",
                "description": "Test message from SteamSentinel. Free game announcements will appear here.",
                "color": 0x00FF00,
                "timestamp": now_utc().isoformat(),
            }]
        }
        success, error = self._post(payload)
        if not success:
            logger.error(f"{self.name}: test message failed: {error}")
        return success, error
