"""
Worker entrypoint: celery -A src.application.tasks.celery_worker.celery worker --beat
Builds the Flask app so every task runs inside its app context.
"""
from celery.schedules import crontab

from src.app import create_app
from src.extensions import celery

flask_app = create_app()

celery.conf.beat_schedule = {
    'daily-full-sync': {
        'task': 'data_pipeline.run_full_sync',
        'schedule': crontab(hour=3, minute=0),
    },
}
