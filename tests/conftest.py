"""
Pytest fixtures and configuration for SteamSentinel tests
"""
import os
import sys
import tempfile
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

# Settings and the SQLite file live in a throwaway config directory
os.environ['STEAMSENTINEL_CONFIG_DIR'] = tempfile.mkdtemp(prefix='steamsentinel-tests-')
os.environ.pop('DISCORD_WEBHOOK_URL', None)

# Add app directory to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'app'))


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'SCHEDULER_ENABLED': False,
    'RATELIMIT_ENABLED': False,
}


@pytest.fixture(autouse=True)
def fresh_settings():
    """Every test starts from the default settings file"""
    from constants import CONFIG_FILE
    from settings import reload_conf

    if os.path.exists(CONFIG_FILE):
        os.remove(CONFIG_FILE)
    reload_conf()
    yield
    if os.path.exists(CONFIG_FILE):
        os.remove(CONFIG_FILE)


@pytest.fixture
def app():
    """Application over in-memory SQLite with the scheduler disabled"""
    from app import create_app
    from db import db

    application = create_app(TEST_CONFIG)
    with application.app_context():
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def now():
    """Fixed clock used by date-dependent tests"""
    return datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.notify_free_game.return_value = True
    return notifier


@pytest.fixture
def sample_rss():
    """Feed with one Epic item, one Steam item and one unrelated item"""
    return b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Free Games Finders</title>
    <link>https://steamcommunity.com/groups/freegamesfinders</link>
    <description>Free games announcements</description>
    <item>
      <title>Mystery Quest (Epic Games)</title>
      <description><![CDATA[Grab it at <a href="https://steamcommunity.com/linkfilter/?url=https%3A%2F%2Fstore.epicgames.com%2Fen-US%2Fp%2Fmystery-quest">store</a>. Free until July 2.]]></description>
      <link>https://steamcommunity.com/groups/freegamesfinders/announcements/detail/1</link>
      <pubDate>Mon, 15 Jun 2026 08:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Cool Game free in the steam store</title>
      <description><![CDATA[Claim it: https://store.steampowered.com/app/123456/CoolGame]]></description>
      <link>https://steamcommunity.com/groups/freegamesfinders/announcements/detail/2</link>
      <pubDate>Mon, 15 Jun 2026 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Weekly community night</title>
      <description>Join us on Friday.</description>
      <link>https://steamcommunity.com/groups/freegamesfinders/announcements/detail/3</link>
      <pubDate>Mon, 15 Jun 2026 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def feed_session(sample_rss):
    """requests.Session stand-in serving the sample feed"""
    session = MagicMock()
    session.headers = {}
    response = MagicMock()
    response.content = sample_rss
    response.raise_for_status.return_value = None
    session.get.return_value = response
    return session


@pytest.fixture
def steam_entry_free():
    return {"success": True, "data": {"name": "Cool Game", "is_free": True, "release_date": {"coming_soon": False}}}


@pytest.fixture
def steam_entry_paid():
    return {
        "success": True,
        "data": {
            "name": "Cool Game",
            "is_free": False,
            "price_overview": {"currency": "JPY", "initial": 198000, "final": 198000},
            "release_date": {"coming_soon": False},
        },
    }
