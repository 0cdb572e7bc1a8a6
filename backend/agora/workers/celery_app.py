"""Celery app configuration."""
from celery import Celery

from agora.config import get_settings

settings = get_settings()

celery_app = Celery(
    "agora",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["agora.workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

celery_app.conf.beat_schedule = {
    "cleanup-expired-sessions": {
        "task": "agora.workers.tasks.cleanup_expired_sessions",
        "schedule": float(settings.session_cleanup_interval_seconds),
    },
    "purge-expired-audit-logs": {
        "task": "agora.workers.tasks.purge_expired_audit_logs",
        "schedule": float(settings.audit_cleanup_interval_seconds),
    },
}
