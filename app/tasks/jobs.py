from celery.signals import setup_logging

from app.core.logging_config import configure_logging
from app.tasks.celery_app import celery
from app.tasks import worker_jobs


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()


@celery.task(name="app.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50) -> dict:
    return worker_jobs.process_email_queue(limit=limit)
