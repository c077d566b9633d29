"""
Model: FreeGame
One row per promotional listing discovered in the free games feed.
"""

from db import db
from utils import now_utc, ensure_utc, isoformat_utc
from constants import PLATFORM_EPIC, PLATFORM_STEAM, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_UPCOMING


class FreeGame(db.Model):
    __tablename__ = "free_games"

    id = db.Column(db.Integer, primary_key=True)
    platform = db.Column(db.String(10), nullable=False, index=True)  # 'epic' | 'steam'
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    url = db.Column(db.String(500))
    app_id = db.Column(db.Integer, index=True)  # Steam only

    # 'epic:<normalized title>' or 'steam:<app id>'
    dedup_key = db.Column(db.String(300), nullable=False)

    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)

    is_claimed = db.Column(db.Boolean, default=False, nullable=False)
    claimed_date = db.Column(db.DateTime)
    is_expired = db.Column(db.Boolean, default=False, nullable=False)

    # Last store verification result (Steam only)
    availability = db.Column(db.String(20))
    last_verified_at = db.Column(db.DateTime)

    discovered_at = db.Column(db.DateTime, default=now_utc, nullable=False)
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    __table_args__ = (
        db.UniqueConstraint("dedup_key", name="uq_free_games_dedup_key"),
        db.Index("idx_free_games_platform_expired", "platform", "is_expired"),
    )

    @staticmethod
    def make_dedup_key(platform, title=None, app_id=None):
        from utils import normalize_title

        if platform == PLATFORM_STEAM:
            return f"{PLATFORM_STEAM}:{app_id}"
        return f"{PLATFORM_EPIC}:{normalize_title(title)}"

    def is_past_end_date(self, now=None):
        end_date = ensure_utc(self.end_date)
        if end_date is None:
            return False
        return end_date < (now or now_utc())

    def get_status(self, now=None):
        now = now or now_utc()
        if self.is_expired or self.is_past_end_date(now):
            return STATUS_EXPIRED
        start_date = ensure_utc(self.start_date)
        if start_date and start_date > now:
            return STATUS_UPCOMING
        return STATUS_ACTIVE

    def to_dict(self, now=None):
        return {
            "id": self.id,
            "platform": self.platform,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "app_id": self.app_id,
            "status": self.get_status(now),
            "is_claimed": bool(self.is_claimed),
            "claimed_date": isoformat_utc(self.claimed_date),
            "is_expired": bool(self.is_expired),
            "availability": self.availability,
            "last_verified_at": isoformat_utc(self.last_verified_at),
            "start_date": isoformat_utc(self.start_date),
            "end_date": isoformat_utc(self.end_date),
            "discovered_at": isoformat_utc(self.discovered_at),
        }
