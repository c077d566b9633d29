"""
Repository for FreeGame database operations
"""

from datetime import timedelta
from sqlalchemy import or_, and_, func, case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging
from db import db
from models.free_game import FreeGame
from utils import now_utc
from exceptions import DatabaseException
from constants import PLATFORMS, PLATFORM_STEAM, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_UPCOMING

logger = logging.getLogger("main")


class FreeGamesRepository:
    """Repository for FreeGame database operations"""

    @staticmethod
    def get_by_id(id):
        """Get FreeGame by ID"""
        return db.session.get(FreeGame, id)

    @staticmethod
    def find_by_title(platform, title):
        """Get the most recently discovered FreeGame with the given title"""
        key = FreeGame.make_dedup_key(platform, title=title)
        return (
            FreeGame.query.filter(or_(FreeGame.dedup_key == key, and_(FreeGame.platform == platform, FreeGame.title == title)))
            .order_by(FreeGame.discovered_at.desc())
            .first()
        )

    @staticmethod
    def find_by_app_id(app_id):
        """Get Steam FreeGame by App ID"""
        return FreeGame.query.filter_by(platform=PLATFORM_STEAM, app_id=app_id).first()

    @staticmethod
    def create(**kwargs):
        """Create new FreeGame record

        Returns None when the dedup key is already taken by a concurrent insert.
        """
        if "dedup_key" not in kwargs:
            kwargs["dedup_key"] = FreeGame.make_dedup_key(
                kwargs.get("platform"), title=kwargs.get("title"), app_id=kwargs.get("app_id")
            )
        try:
            item = FreeGame(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except IntegrityError:
            db.session.rollback()
            logger.info(f"Free game already recorded, skipping insert: {kwargs['dedup_key']}")
            return None
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseException(f"Failed to save free game {kwargs.get('title')}: {e}")

    @staticmethod
    def get_all(platform=None):
        """Get all FreeGame records, newest first"""
        query = FreeGame.query
        if platform:
            query = query.filter_by(platform=platform)
        return query.order_by(FreeGame.discovered_at.desc(), FreeGame.id.desc()).all()

    @staticmethod
    def _active_filter(now):
        return and_(
            FreeGame.is_expired == False,  # noqa: E712
            or_(FreeGame.end_date == None, FreeGame.end_date > now),  # noqa: E711
            or_(FreeGame.start_date == None, FreeGame.start_date <= now),  # noqa: E711
        )

    @staticmethod
    def get_current(platform=None, now=None):
        """Get listings that are currently claimable"""
        now = now or now_utc()
        query = FreeGame.query.filter(FreeGamesRepository._active_filter(now))
        if platform:
            query = query.filter(FreeGame.platform == platform)
        return query.order_by(FreeGame.discovered_at.desc(), FreeGame.id.desc()).all()

    @staticmethod
    def get_active_steam(now=None):
        """Get Steam listings that the verification sweep should re-check"""
        return FreeGamesRepository.get_current(platform=PLATFORM_STEAM, now=now)

    @staticmethod
    def set_claimed(id, is_claimed):
        """Set claimed flag; claiming stamps claimed_date, unclaiming clears it"""
        item = FreeGamesRepository.get_by_id(id)
        if not item:
            return None

        item.is_claimed = bool(is_claimed)
        item.claimed_date = now_utc() if item.is_claimed else None
        db.session.commit()
        return item

    @staticmethod
    def toggle_claimed(id):
        item = FreeGamesRepository.get_by_id(id)
        if not item:
            return None
        return FreeGamesRepository.set_claimed(id, not item.is_claimed)

    @staticmethod
    def mark_expired(id):
        item = FreeGamesRepository.get_by_id(id)
        if not item:
            return None

        item.is_expired = True
        db.session.commit()
        logger.info(f"Free game marked as expired: {item.title} ({item.platform})")
        return item

    @staticmethod
    def record_verification(id, availability):
        item = FreeGamesRepository.get_by_id(id)
        if not item:
            return None

        item.availability = availability
        item.last_verified_at = now_utc()
        db.session.commit()
        return item

    @staticmethod
    def get_stats(now=None):
        """Totals, claimed, unclaimed, active and claim rate per platform"""
        now = now or now_utc()
        stats = {}
        for platform in PLATFORMS:
            total, claimed = (
                db.session.query(
                    func.count(FreeGame.id),
                    func.coalesce(func.sum(case((FreeGame.is_claimed == True, 1), else_=0)), 0),  # noqa: E712
                )
                .filter(FreeGame.platform == platform)
                .one()
            )
            active = (
                FreeGame.query.filter(FreeGame.platform == platform)
                .filter(FreeGamesRepository._active_filter(now))
                .count()
            )
            stats[platform] = {
                "total": int(total or 0),
                "claimed": int(claimed or 0),
                "unclaimed": int(total or 0) - int(claimed or 0),
                "active": active,
                "claimRate": round(claimed / total * 100) if total else 0,
            }

        total_all = sum(s["total"] for s in stats.values())
        claimed_all = sum(s["claimed"] for s in stats.values())
        stats["all"] = {
            "total": total_all,
            "claimed": claimed_all,
            "unclaimed": total_all - claimed_all,
            "active": sum(stats[p]["active"] for p in PLATFORMS),
            "claimRate": round(claimed_all / total_all * 100) if total_all else 0,
        }
        return stats

    @staticmethod
    def delete_old_unclaimed(days_old, now=None):
        """Delete unclaimed records discovered more than `days_old` days ago"""
        cutoff = (now or now_utc()) - timedelta(days=days_old)
        try:
            deleted = (
                FreeGame.query.filter(FreeGame.is_claimed == False, FreeGame.discovered_at < cutoff)  # noqa: E712
                .delete(synchronize_session=False)
            )
            db.session.commit()
            return deleted
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def count():
        """Count total FreeGame records"""
        return FreeGame.query.count()


def filter_by_status(games, status=None, claimed=None, now=None):
    """Apply the listing filters that depend on derived status"""
    now = now or now_utc()
    if status in (STATUS_ACTIVE, STATUS_EXPIRED, STATUS_UPCOMING):
        games = [g for g in games if g.get_status(now) == status]
    if claimed is not None:
        games = [g for g in games if bool(g.is_claimed) == claimed]
    return games
