"""
Celery workers module.

Background processing of analysis jobs and the periodic stuck-job sweep.

Dependencies: celery, cvtailor.configs
System role: Background task processing
"""

from celery import Celery
from celery.signals import setup_logging

from cvtailor.configs import get_settings
from cvtailor.observability.logger import configure_logging

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    "cvtailor",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["cvtailor.workers.tasks.analysis"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_max_retries=celery_config.task_max_retries,
    task_default_queue=celery_config.queue_name,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "sweep-analysis-jobs": {
            "task": "cvtailor.sweep_analysis_jobs",
            "schedule": float(settings.pipeline.sweep_interval_seconds),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(settings.log_level)
