"""
Re-checks discovered Steam listings against the live store API
"""
import time
import logging
from dataclasses import dataclass, asdict
from typing import Callable, Optional

from constants import (
    AVAILABILITY_FREE,
    AVAILABILITY_PAID,
    AVAILABILITY_REMOVED,
)
from exceptions import NotFoundException, StoreAPIException
from metrics import verifications_total

logger = logging.getLogger("main")

NOT_FREE = (AVAILABILITY_PAID, AVAILABILITY_REMOVED)


@dataclass
class VerificationSummary:
    verified: int = 0
    still_free: int = 0
    expired: int = 0
    errors: int = 0

    def to_dict(self):
        data = asdict(self)
        data["stillFree"] = data.pop("still_free")
        return data


class SteamFreeGamesVerifier:
    """Verification sweep over active Steam free game records"""

    def __init__(self, repository, store_client, request_interval: float = 1.0, sleep: Callable = time.sleep):
        self.repository = repository
        self.store_client = store_client
        self.request_interval = request_interval
        self.sleep = sleep

    def _apply(self, game, availability: Optional[str]) -> Optional[str]:
        """Persist one verification result; returns the availability or None on error"""
        verifications_total.labels(status=availability or "error").inc()

        if availability is None:
            # Fail open: never expire on missing information
            logger.warning(f"Could not verify Steam free game {game.title} ({game.app_id}), leaving unchanged")
            return None

        self.repository.record_verification(game.id, availability)
        if availability in NOT_FREE and not game.is_expired:
            self.repository.mark_expired(game.id)
            logger.info(f"Steam free game no longer free ({availability}): {game.title} ({game.app_id})")
        return availability

    def verify_all(self) -> VerificationSummary:
        """Check every active Steam record, one request at a time"""
        from db import log_activity

        games = self.repository.get_active_steam()
        summary = VerificationSummary()
        logger.info(f"Starting Steam free games verification for {len(games)} records")

        for index, game in enumerate(games):
            if index > 0 and self.request_interval > 0:
                self.sleep(self.request_interval)

            try:
                availability = self.store_client.get_availability(game.app_id)
                result = self._apply(game, availability)
            except Exception as e:
                logger.error(f"Verification failed for Steam app {game.app_id}: {e}")
                result = None

            if result is None:
                summary.errors += 1
                continue

            summary.verified += 1
            if result == AVAILABILITY_FREE:
                summary.still_free += 1
            elif result in NOT_FREE:
                summary.expired += 1

        logger.info(
            f"Steam free games verification complete: {summary.verified} verified, "
            f"{summary.still_free} still free, {summary.expired} expired, {summary.errors} errors"
        )
        log_activity("steam_verification_completed", **summary.to_dict())
        return summary

    def verify_single(self, app_id: int) -> dict:
        """On-demand check for one Steam record"""
        game = self.repository.find_by_app_id(app_id)
        if not game:
            raise NotFoundException(f"Steam free game with App ID '{app_id}' not found")

        availability = self._apply(game, self.store_client.get_availability(app_id))
        if availability is None:
            raise StoreAPIException(f"Could not fetch store details for Steam app {app_id}")

        game = self.repository.find_by_app_id(app_id)
        return {
            "appId": app_id,
            "title": game.title,
            "status": availability,
            "isFree": availability == AVAILABILITY_FREE,
            "isExpired": bool(game.is_expired),
        }
