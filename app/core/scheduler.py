import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.assessment_session import assessment_session_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def sweep_stale_sessions():
    db = SessionLocal()
    try:
        swept = assessment_session_service.sweep_stale_sessions(
            db, stale_after_minutes=settings.SESSION_STALE_AFTER_MINUTES
        )
        db.commit()
        if swept:
            logger.info(f"Stale session sweep closed {swept} abandoned session(s)")
    except Exception as e:
        db.rollback()
        logger.error(f"Error sweeping stale proctoring sessions: {e}")
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not settings.SESSION_SWEEP_ENABLED:
        logger.info("Stale session sweep disabled; abandoned sessions stay active")
        return

    if not scheduler.running:
        scheduler.add_job(
            sweep_stale_sessions,
            'interval',
            minutes=settings.SESSION_SWEEP_INTERVAL_MINUTES,
            id='stale_session_sweep',
            name='Close Abandoned Proctoring Sessions',
            replace_existing=True
        )
        scheduler.start()
        logger.info("Scheduler started with stale session sweep job")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
