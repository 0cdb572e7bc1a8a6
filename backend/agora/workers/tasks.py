"""Celery tasks for scheduled maintenance."""
import logging

from agora.config import get_settings
from agora.context import Context
from agora.database import Database
from agora.services.audit import cleanup_old_audit_logs
from agora.services.sessions import cleanup_expired_sessions as sweep_sessions
from agora.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def run_maintenance(job, database: Database | None = None) -> dict:
    """
    Run one maintenance job in a system context (no identity).

    The database is opened for this run only and disposed afterwards unless
    the caller supplied its own.
    """
    owned = database is None
    database = database or Database.from_settings(get_settings())
    db = database.session()

    try:
        deleted = job(Context(db=db))
        return {"status": "completed", "deleted": deleted}

    except Exception:
        db.rollback()
        raise

    finally:
        db.close()
        if owned:
            database.dispose()


@celery_app.task(bind=True, max_retries=3)
def cleanup_expired_sessions(self):
    """Delete sessions whose expiry has passed."""
    try:
        result = run_maintenance(sweep_sessions)
        logger.info(f"Session cleanup removed {result['deleted']} sessions")
        return result
    except Exception as e:
        logger.exception(f"Session cleanup failed: {e}")
        raise self.retry(exc=e, countdown=60 * (self.request.retries + 1))


@celery_app.task(bind=True, max_retries=3)
def purge_expired_audit_logs(self):
    """Delete audit entries whose retention period has elapsed."""
    try:
        result = run_maintenance(cleanup_old_audit_logs)
        logger.info(f"Audit purge removed {result['deleted']} entries")
        return result
    except Exception as e:
        logger.exception(f"Audit purge failed: {e}")
        raise self.retry(exc=e, countdown=60 * (self.request.retries + 1))
