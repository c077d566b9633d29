"""
Tests for the free games feed service: dedup gate, persistence and notification
"""
import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import MagicMock

from services.feed_classifier import ClassifiedGame
from services.free_games_feed import FreeGamesFeedService, parse_feed
from repositories.free_games_repository import FreeGamesRepository
from exceptions import FeedException


@pytest.fixture
def service(app, mock_notifier, feed_session, now):
    return FreeGamesFeedService(
        FreeGamesRepository,
        mock_notifier,
        rss_url="https://example.com/rss",
        session=feed_session,
        clock=lambda: now,
    )


class TestParseFeed:

    def test_items_in_feed_order(self, sample_rss):
        items = parse_feed(sample_rss)
        assert [i.title for i in items] == [
            "Mystery Quest (Epic Games)",
            "Cool Game free in the steam store",
            "Weekly community night",
        ]
        assert items[1].published == datetime(2026, 6, 15, 9, 0, 0, tzinfo=timezone.utc)

    def test_garbage_raises(self):
        with pytest.raises(FeedException):
            parse_feed(b"this is <not> valid xml <<<")


class TestCheckForNewGames:

    def test_new_items_are_persisted_and_notified(self, service, mock_notifier):
        result = service.check_for_new_games()

        assert result == {"epic": 1, "steam": 1, "discovered": 2, "notified": 2}
        assert FreeGamesRepository.count() == 2
        assert mock_notifier.notify_free_game.call_count == 2

        steam = FreeGamesRepository.find_by_app_id(123456)
        assert steam.title == "Cool Game"
        assert steam.end_date is None
        assert steam.is_expired is False

        epic = FreeGamesRepository.find_by_title("epic", "Mystery Quest")
        assert epic.url == "https://store.epicgames.com/en-US/p/mystery-quest"

    def test_second_pass_is_idempotent(self, service, mock_notifier):
        service.check_for_new_games()
        result = service.check_for_new_games()

        assert result["discovered"] == 0
        assert result["notified"] == 0
        assert FreeGamesRepository.count() == 2
        assert mock_notifier.notify_free_game.call_count == 2

    def test_fetch_failure_is_swallowed(self, service, feed_session, mock_notifier):
        feed_session.get.side_effect = requests.ConnectionError("offline")

        result = service.check_for_new_games()

        assert "offline" in result["error"]
        assert FreeGamesRepository.count() == 0
        assert service.get_last_check_time() is None
        mock_notifier.notify_free_game.assert_not_called()

    def test_records_last_check_time(self, service, now):
        service.check_for_new_games()
        assert service.get_last_check_time() == now
        assert service.get_next_check_time(60) == datetime(2026, 6, 15, 13, 0, 0, tzinfo=timezone.utc)

    def test_next_check_unknown_before_first_run(self, service):
        assert service.get_next_check_time(60) is None


class TestProcessGame:

    def test_expired_game_is_persisted_without_notification(self, service, mock_notifier):
        game = ClassifiedGame(
            platform="epic",
            title="Old Game",
            description="",
            url="https://store.epicgames.com/p/old-game",
            end_date=datetime(2026, 5, 1, 23, 59, 59, tzinfo=timezone.utc),
        )

        record, notified = service.process_game(game)

        assert record is not None
        assert record.is_expired is True
        assert notified is False
        mock_notifier.notify_free_game.assert_not_called()

    def test_epic_dedup_ignores_case_and_spacing(self, service):
        first = ClassifiedGame(platform="epic", title="Mystery  Quest", description="", url="u")
        second = ClassifiedGame(platform="epic", title="mystery quest", description="", url="u")

        assert service.process_game(first)[0] is not None
        assert service.process_game(second) == (None, False)
        assert FreeGamesRepository.count() == 1

    def test_same_title_on_other_platform_is_distinct(self, service):
        epic = ClassifiedGame(platform="epic", title="Cool Game", description="", url="u")
        steam = ClassifiedGame(platform="steam", title="Cool Game", description="", url="u", app_id=7)

        assert service.process_game(epic)[0] is not None
        assert service.process_game(steam)[0] is not None
        assert FreeGamesRepository.count() == 2

    def test_notification_failure_keeps_record(self, service, mock_notifier):
        mock_notifier.notify_free_game.side_effect = RuntimeError("webhook down")
        game = ClassifiedGame(platform="steam", title="Cool Game", description="", url="u", app_id=123456)

        record, notified = service.process_game(game)

        assert notified is False
        assert FreeGamesRepository.find_by_app_id(123456).id == record.id


class TestManualCheckAndCleanup:

    def test_manual_check_returns_active_counts(self, service):
        result = service.manual_check()
        assert result["epicCount"] == 1
        assert result["steamCount"] == 1
        assert result["discovered"] == 2
        assert result["error"] is None

    def test_cleanup_keeps_claimed(self, service, now):
        old = datetime(2026, 4, 1, tzinfo=timezone.utc)
        claimed = FreeGamesRepository.create(platform="epic", title="Kept", url="u", discovered_at=old)
        FreeGamesRepository.set_claimed(claimed.id, True)
        FreeGamesRepository.create(platform="epic", title="Dropped", url="u", discovered_at=old)
        FreeGamesRepository.create(platform="epic", title="Recent", url="u", discovered_at=now)

        assert service.cleanup(30) == 1
        titles = sorted(g.title for g in FreeGamesRepository.get_all())
        assert titles == ["Kept", "Recent"]


class TestDedupKeyConstraint:
    """The unique dedup key rejects a second insert even without a prior lookup"""

    def test_duplicate_steam_app_id(self, app):
        first = FreeGamesRepository.create(platform="steam", title="Cool Game", url="u", app_id=5)
        second = FreeGamesRepository.create(platform="steam", title="Cool Game (again)", url="u", app_id=5)

        assert first is not None
        assert second is None
        assert FreeGamesRepository.count() == 1

        # The rolled-back session is still usable
        other = FreeGamesRepository.create(platform="steam", title="Other Game", url="u", app_id=6)
        assert other is not None
        assert FreeGamesRepository.count() == 2

    def test_duplicate_normalised_epic_title(self, app):
        assert FreeGamesRepository.create(platform="epic", title="Mystery  Quest", url="u") is not None
        assert FreeGamesRepository.create(platform="epic", title="mystery quest", url="u") is None
        assert FreeGamesRepository.count() == 1


class TestOverlappingChecks:

    def test_manual_check_reports_skip(self, service, feed_session):
        service._check_in_progress = True

        result = service.manual_check()

        assert result["skipped"] is True
        assert result["discovered"] == 0
        feed_session.get.assert_not_called()

    def test_refresh_endpoint_reports_skip(self, app, client):
        app.free_games_feed._check_in_progress = True

        body = client.post('/api/free-games/refresh').get_json()

        assert body['data']['skipped'] is True
        assert body['message'] == "Free games check already in progress"


class TestActivityLogAfterCleanup:

    def test_cleanup_detaches_activity_rows(self, service, now):
        from db import db, log_activity
        from models.activitylog import ActivityLog

        old = datetime(2026, 4, 1, tzinfo=timezone.utc)
        game = FreeGamesRepository.create(platform="epic", title="Dropped", url="u", discovered_at=old)
        log_activity("free_game_discovered", free_game_id=game.id)

        assert service.cleanup(30) == 1

        db.session.expire_all()
        entry = ActivityLog.query.filter_by(action_type="free_game_discovered").one()
        assert entry.free_game_id is None
