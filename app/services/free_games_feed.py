"""
Free games feed polling: fetch the RSS feed, classify entries and persist new listings
"""
import calendar
import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import feedparser
import requests

from constants import PLATFORM_EPIC, PLATFORM_STEAM, USER_AGENT
from exceptions import FeedException
from metrics import feed_checks_total, feed_check_duration_seconds, free_games_discovered_total
from services.feed_classifier import FeedItem, ClassifiedGame, classify_item
from utils import now_utc

logger = logging.getLogger("main")


def _entry_published(entry) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)


def parse_feed(content) -> List[FeedItem]:
    """Parse raw RSS content into feed items, in feed order"""
    parsed = feedparser.parse(content)
    if parsed.bozo and not parsed.entries:
        raise FeedException(f"Unable to parse RSS feed: {parsed.get('bozo_exception')}")

    items = []
    for entry in parsed.entries:
        items.append(FeedItem(
            title=entry.get("title", "") or "",
            description=entry.get("description") or entry.get("summary", "") or "",
            link=entry.get("link", "") or "",
            published=_entry_published(entry),
        ))
    return items


class FreeGamesFeedService:
    """Polls the free games RSS feed and records newly announced listings"""

    def __init__(self, repository, notifier, rss_url: str, timeout: float = 15, session=None,
                 clock: Callable[[], datetime] = now_utc):
        self.repository = repository
        self.notifier = notifier
        self.rss_url = rss_url
        self.timeout = timeout
        self.clock = clock
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.last_check_time: Optional[datetime] = None
        self._check_lock = threading.Lock()
        self._check_in_progress = False

    def fetch_items(self) -> List[FeedItem]:
        try:
            response = self.session.get(self.rss_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FeedException(f"Failed to fetch RSS feed {self.rss_url}: {e}")
        return parse_feed(response.content)

    def process_game(self, game: ClassifiedGame):
        """Persist a classified listing unless already known; returns (record, notified)"""
        from db import log_activity

        if game.platform == PLATFORM_STEAM:
            existing = self.repository.find_by_app_id(game.app_id)
        else:
            existing = self.repository.find_by_title(game.platform, game.title)
        if existing:
            return None, False

        now = self.clock()
        expired = game.is_expired(now)
        record = self.repository.create(
            platform=game.platform,
            title=game.title,
            description=game.description,
            url=game.url,
            app_id=game.app_id,
            start_date=game.start_date,
            end_date=game.end_date,
            is_expired=expired,
            discovered_at=now,
        )
        if record is None:
            return None, False

        free_games_discovered_total.labels(platform=game.platform).inc()
        log_activity("free_game_discovered", free_game_id=record.id, platform=game.platform, expired=expired)
        logger.info(f"New {game.platform} free game recorded: {game.title}"
                    + (f" ({game.app_id})" if game.app_id else "")
                    + (" [already expired]" if expired else ""))

        notified = False
        if not expired:
            try:
                notified = self.notifier.notify_free_game(record)
            except Exception as e:
                logger.error(f"Notification failed for {game.title}: {e}")
        return record, notified

    def check_for_new_games(self) -> dict:
        """One feed pass; failures are logged and the next scheduled run retries"""
        with self._check_lock:
            if self._check_in_progress:
                logger.info("Skipping free games check: a check is already in progress.")
                return {"skipped": True}
            self._check_in_progress = True

        result = {"epic": 0, "steam": 0, "discovered": 0, "notified": 0}
        started = time.time()
        try:
            logger.info("Fetching free games from RSS feed...")
            items = self.fetch_items()
            now = self.clock()

            for item in items:
                game = classify_item(item, now)
                if game is None:
                    continue
                result[game.platform] += 1
                try:
                    record, notified = self.process_game(game)
                except Exception as e:
                    logger.error(f"Failed to process {game.platform} free game {game.title}: {e}")
                    continue
                if record is not None:
                    result["discovered"] += 1
                    if notified:
                        result["notified"] += 1

            self.last_check_time = self.clock()
            feed_checks_total.labels(status="success").inc()
            logger.info(
                f"Free games check complete: Epic {result['epic']}, Steam {result['steam']}, "
                f"{result['discovered']} new"
            )
        except FeedException as e:
            feed_checks_total.labels(status="failed").inc()
            logger.error(f"Free games check failed: {e.message}")
            result["error"] = e.message
        finally:
            feed_check_duration_seconds.observe(time.time() - started)
            with self._check_lock:
                self._check_in_progress = False
        return result

    def manual_check(self) -> dict:
        result = self.check_for_new_games()
        now = self.clock()
        return {
            "epicCount": len(self.repository.get_current(platform=PLATFORM_EPIC, now=now)),
            "steamCount": len(self.repository.get_current(platform=PLATFORM_STEAM, now=now)),
            "discovered": result.get("discovered", 0),
            "error": result.get("error"),
            "skipped": bool(result.get("skipped")),
        }

    def get_last_check_time(self) -> Optional[datetime]:
        return self.last_check_time

    def get_next_check_time(self, interval_minutes: float) -> Optional[datetime]:
        if self.last_check_time is None:
            return None
        return self.last_check_time + timedelta(minutes=interval_minutes)

    def cleanup(self, retention_days: int) -> int:
        """Age-based removal of unclaimed listings; claimed ones are kept"""
        deleted = self.repository.delete_old_unclaimed(retention_days, now=self.clock())
        if deleted:
            logger.info(f"Removed {deleted} unclaimed free games older than {retention_days} days")
        return deleted
