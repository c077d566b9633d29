import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.environ.get('STEAMSENTINEL_CONFIG_DIR', os.path.join(APP_DIR, 'config'))
DB_FILE = os.path.join(CONFIG_DIR, 'steamsentinel.db')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')

STEAMSENTINEL_DB = 'sqlite:///' + DB_FILE

BUILD_VERSION = '20261017_0900'

FREE_GAMES_RSS_URL = 'https://steamcommunity.com/groups/freegamesfinders/rss/'
STEAM_STORE_API_URL = 'https://store.steampowered.com/api/appdetails'
STEAM_STORE_APP_URL = 'https://store.steampowered.com/app/{app_id}/'

PLATFORM_EPIC = 'epic'
PLATFORM_STEAM = 'steam'
PLATFORMS = [PLATFORM_EPIC, PLATFORM_STEAM]

STATUS_ACTIVE = 'active'
STATUS_EXPIRED = 'expired'
STATUS_UPCOMING = 'upcoming'

# Steam store availability
AVAILABILITY_FREE = 'free'
AVAILABILITY_PAID = 'paid'
AVAILABILITY_UNRELEASED = 'unreleased'
AVAILABILITY_REMOVED = 'removed'

USER_AGENT = 'SteamSentinel/1.0 (+free games tracker)'

DEFAULT_SETTINGS = {
    "server": {
        "host": "127.0.0.1",
        "port": 3000,
    },
    "free_games": {
        "enabled": True,
        "rss_url": FREE_GAMES_RSS_URL,
        "check_interval_minutes": 60,
        "verify_startup_delay_seconds": 30,
        "verify_request_interval_seconds": 1.0,
        "retention_days": 30,
        "request_timeout_seconds": 15,
    },
    "steam": {
        "country_code": "JP",
        "language": "english",
        "timeout_seconds": 15,
    },
    "discord": {
        "enabled": True,
        "webhook_url": "",
    },
}
