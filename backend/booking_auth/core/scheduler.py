"""
Background scheduler for periodic tasks.

This module manages background jobs that run on a schedule:
- Cleanup orphaned avatars: every AVATAR_CLEANUP_INTERVAL_HOURS
"""

from datetime import timedelta
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from booking_auth.core.config import settings
from booking_auth.core.database import SessionLocal
from booking_auth.services.avatar_reference_service import avatar_reference_service
from booking_auth.storage.local_storage import storage
import logging

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def cleanup_orphaned_avatars_job(media=storage,
                                 grace_minutes: int = settings.AVATAR_CLEANUP_GRACE_MINUTES) -> int:
    """
    Delete stored avatars that no user points at.

    Files younger than grace_minutes are left alone. Returns the number
    of files deleted.
    """
    db = SessionLocal()
    total_deleted = 0
    try:
        orphaned = avatar_reference_service.get_orphaned_avatars(
            db, media, grace=timedelta(minutes=grace_minutes))
        if not orphaned:
            logger.info("Cleanup job completed: No orphaned avatars found")
            return 0

        for file_path in orphaned:
            try:
                if media.delete_file(file_path):
                    total_deleted += 1
                    logger.info(f"Deleted orphaned avatar: {file_path}")
            except OSError as e:
                logger.error(f"Error deleting orphaned avatar {file_path}: {str(e)}")

        logger.info(f"Cleanup job completed: Deleted {total_deleted} orphaned avatars")
    except Exception as e:
        logger.error(f"Error in cleanup_orphaned_avatars_job: {str(e)}")
    finally:
        db.close()
    return total_deleted


def start_scheduler():
    """
    Start the background scheduler.

    Called from the FastAPI lifespan when ENABLE_SCHEDULER is set.
    """
    if not scheduler.running:
        scheduler.add_job(
            cleanup_orphaned_avatars_job,
            trigger=IntervalTrigger(hours=settings.AVATAR_CLEANUP_INTERVAL_HOURS),
            id="cleanup_orphaned_avatars",
            name="Cleanup orphaned avatars",
            replace_existing=True
        )

        scheduler.start()
        logger.info(
            "Background scheduler started. Avatar cleanup runs every %s hours.",
            settings.AVATAR_CLEANUP_INTERVAL_HOURS,
        )


def stop_scheduler():
    """Stop the background scheduler on app shutdown"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped.")
