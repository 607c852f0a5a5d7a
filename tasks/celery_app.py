"""
Celery application configuration.

This module sets up Celery for background bulk-create jobs with Redis
as the message broker and result backend.
"""

import os
from celery import Celery
from kombu import Exchange, Queue

# Get Redis URL from environment
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', REDIS_URL)

# Create Celery application
celery_app = Celery(
    'directory',
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=['tasks.import_tasks']
)

celery_app.conf.update(
    # Serialization
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],

    timezone='UTC',
    enable_utc=True,

    # Task execution
    task_track_started=True,
    task_time_limit=600,  # 10 minutes hard timeout
    task_soft_time_limit=540,
    worker_prefetch_multiplier=1,

    # Results
    result_expires=3600,
    result_extended=True,

    # Task routing
    task_default_queue='default',
    task_default_exchange='default',
    task_default_routing_key='default',

    worker_max_tasks_per_child=100,

    # Creates are not idempotent; never redeliver a started batch
    task_acks_late=False,

    worker_send_task_events=True,
    task_send_sent_event=True,
)

celery_app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('import', Exchange('import'), routing_key='import.#'),
)

celery_app.conf.task_routes = {
    'tasks.import_tasks.create_businesses': {'queue': 'import', 'routing_key': 'import.businesses'},
}

celery_app.conf.beat_schedule = {
    'cleanup-old-jobs': {
        'task': 'tasks.import_tasks.cleanup_old_jobs',
        'schedule': 86400.0,  # Daily
        'kwargs': {'days_to_keep': int(os.getenv('JOB_RETENTION_DAYS', '30'))},
    },
}


if __name__ == '__main__':
    celery_app.start()
