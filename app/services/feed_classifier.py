"""
Classifies free games feed entries into Epic / Steam listings.

Everything in this module is pure: no I/O, and the current time is always
passed in so the date heuristics can be tested against fixed calendars.
"""
import re
import calendar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import unquote

from constants import PLATFORM_EPIC, PLATFORM_STEAM, STEAM_STORE_APP_URL


MONTHS = [m.lower() for m in calendar.month_name if m]

# store.epicgames.com/... either literal or percent-encoded inside a redirect link
EPIC_URL_PATTERN = re.compile(
    r'(?:https?(?::|%3A)(?:/|%2F){2})?store\.epicgames\.com(?:/|%2F)[^\s"\'<>&]*',
    re.IGNORECASE,
)
STEAM_APP_PATTERN = re.compile(r'store\.steampowered\.com/app/(\d+)', re.IGNORECASE)
END_DATE_PATTERN = re.compile(r'\b(?:until|through|thru)\s+([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?\b', re.IGNORECASE)

EPIC_TITLE_PATTERNS = [
    re.compile(r'\s*\(Epic Games(?: Store)?\)', re.IGNORECASE),
    re.compile(r'\s*[-:]?\s*(?:is\s+)?free\s+(?:from|on|at|in)\s+(?:the\s+)?Epic Games(?:\s+store)?.*$', re.IGNORECASE),
    re.compile(r'\s*(?:from Epic Games|Epic Games Store)\b', re.IGNORECASE),
    re.compile(r'\s*\|\s*Epic.*$', re.IGNORECASE),
]

STEAM_TITLE_PATTERNS = [
    re.compile(r'\s*\(Steam\)', re.IGNORECASE),
    re.compile(r'\s*[-:]?\s*(?:is\s+)?free\s+(?:from|on|at|in)\s+(?:the\s+)?steam(?:\s+store)?.*$', re.IGNORECASE),
    re.compile(r'\s*-\s*Free\b.*$', re.IGNORECASE),
    re.compile(r'\s*\bfree to (?:play|keep)\b', re.IGNORECASE),
    re.compile(r'\s*\|\s*Steam.*$', re.IGNORECASE),
]


@dataclass
class FeedItem:
    """One entry from the polled RSS feed, before classification"""
    title: str
    description: str
    link: str
    published: Optional[datetime] = None


@dataclass
class ClassifiedGame:
    platform: str
    title: str
    description: str
    url: str
    app_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.end_date is not None and self.end_date < now


def parse_month(name: str) -> Optional[int]:
    """Month number for a full English month name or a 3+ letter prefix"""
    if not name:
        return None
    name = name.strip().rstrip('.').lower()
    if len(name) < 3:
        return None
    for index, month in enumerate(MONTHS, start=1):
        if month.startswith(name):
            return index
    return None


def resolve_end_date(month: int, day: int, now: datetime) -> Optional[datetime]:
    """
    Resolve a year-less "Month Day" end date relative to `now`.

    - month at or after the current month: current year
    - more than 3 months behind the current month: next year (year wrap)
    - 1 to 3 months behind: current year, i.e. already expired

    Returns 23:59:59 UTC of the resolved day, or None when the day does not
    exist in that year (e.g. February 30).
    """
    if not 1 <= month <= 12 or day < 1:
        return None

    months_behind = now.month - month
    if months_behind > 3:
        year = now.year + 1
    else:
        year = now.year

    if day > calendar.monthrange(year, month)[1]:
        return None

    return datetime(year, month, day, 23, 59, 59, tzinfo=timezone.utc)


def extract_end_date(text: str, now: datetime) -> Optional[datetime]:
    if not text:
        return None
    match = END_DATE_PATTERN.search(text)
    if not match:
        return None
    month = parse_month(match.group(1))
    if month is None:
        return None
    return resolve_end_date(month, int(match.group(2)), now)


def extract_epic_url(description: str) -> Optional[str]:
    """First Epic store URL in the description, decoded and with an https scheme"""
    if not description:
        return None
    match = EPIC_URL_PATTERN.search(description)
    if not match:
        return None
    url = unquote(match.group(0)).rstrip('.,;)')
    url = re.sub(r'^https?://', '', url, flags=re.IGNORECASE)
    return f"https://{url}"


def extract_steam_app_id(text: str) -> Optional[int]:
    if not text:
        return None
    match = STEAM_APP_PATTERN.search(unquote(text))
    return int(match.group(1)) if match else None


def _clean_title(title: str, patterns) -> str:
    cleaned = title or ''
    for pattern in patterns:
        cleaned = pattern.sub('', cleaned)
    return re.sub(r'\s+', ' ', cleaned).strip(' -:|')


def clean_epic_title(title: str) -> str:
    return _clean_title(title, EPIC_TITLE_PATTERNS)


def clean_steam_title(title: str) -> str:
    return _clean_title(title, STEAM_TITLE_PATTERNS)


def is_epic_item(item: FeedItem) -> bool:
    description = (item.description or '').lower()
    link = (item.link or '').lower()
    return 'epicgames.com' in description or 'epic games' in description or 'epicgames.com' in link


def is_steam_item(item: FeedItem) -> bool:
    text = f"{item.description or ''} {item.link or ''}".lower()
    mentions_free = 'free' in (item.title or '').lower() or 'free' in (item.description or '').lower()
    return 'store.steampowered.com' in text and mentions_free


def classify_item(item: FeedItem, now: datetime) -> Optional[ClassifiedGame]:
    """Tag a feed item as Epic or Steam; None means discard"""
    if is_epic_item(item):
        title = clean_epic_title(item.title)
        if not title:
            return None
        return ClassifiedGame(
            platform=PLATFORM_EPIC,
            title=title,
            description=item.description or '',
            url=extract_epic_url(item.description) or item.link,
            start_date=item.published,
            end_date=extract_end_date(item.description, now),
        )

    if is_steam_item(item):
        app_id = extract_steam_app_id(item.description)
        if app_id is None:
            return None
        title = clean_steam_title(item.title)
        if not title:
            return None
        return ClassifiedGame(
            platform=PLATFORM_STEAM,
            title=title,
            description=item.description or '',
            url=STEAM_STORE_APP_URL.format(app_id=app_id),
            app_id=app_id,
            start_date=item.published,
            end_date=extract_end_date(item.description, now),
        )

    return None
