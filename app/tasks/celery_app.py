from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from celery import Celery

from app.core.config import settings

EMAIL_QUEUE_INTERVAL_SECONDS = 120.0


def broker_url(url: str) -> str:
    """rediss:// brokers need ssl_cert_reqs in the query or Celery refuses to start."""
    if not url or not url.lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    query.setdefault("ssl_cert_reqs", ["CERT_NONE"])
    return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))


celery = Celery(
    "tour_booking",
    broker=broker_url(settings.REDIS_URL),
    backend=broker_url(settings.REDIS_URL),
    include=["app.tasks.jobs"],
)

celery.conf.update(
    timezone="Asia/Jakarta",
    task_acks_late=True,
    worker_hijack_root_logger=False,
    beat_schedule={
        "process-email-queue": {
            "task": "app.tasks.jobs.process_email_queue",
            "schedule": EMAIL_QUEUE_INTERVAL_SECONDS,
            "kwargs": {"limit": 50},
        },
    },
)
