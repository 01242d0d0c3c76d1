from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from celery import Celery

db = SQLAlchemy()
migrate = Migrate()


def make_celery(app_name=__name__):
    return Celery(app_name)


def init_celery(app):
    """
    Binds the Celery instance to the Flask app.
    Tasks run inside an app context so services can use db.session and current_app.
    """
    celery.conf.update(
        broker_url=app.config.get('CELERY_BROKER_URL'),
        result_backend=app.config.get('CELERY_RESULT_BACKEND'),
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
    )

    class ContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery


celery = make_celery()
