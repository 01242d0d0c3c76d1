import click
from flask import Flask

from src.config import Config
from src.extensions import db, migrate, init_celery
from src.application.services.ingestion import IngestionService
from src.application.services.culture_score import CultureScoreService
from src.application.tasks.background import async_ingest_data
from src.application.tasks.ai_tasks import async_generate_culture_score
from src.interface.api.routes import api_bp


def create_app(test_config=None):
    app = Flask(__name__)
    if test_config is None:
        # Load from .env / config.py (Production/Dev)
        app.config.from_object(Config)
    else:
        # Defaults first, then whatever Pytest overrides
        app.config.from_object(Config)
        app.config.from_mapping(test_config)

    # Initialize Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    init_celery(app)

    app.register_blueprint(api_bp)

    @app.cli.command("ingest-csv")
    @click.argument("file_path")
    def ingest_csv(file_path):
        """Seeds the database from a local answers CSV."""
        try:
            stats = IngestionService.run_pipeline(force_local=True, local_cache_path=file_path)
            print(f"Done. {stats}")
        except Exception as e:
            print(e)

    @app.cli.command("trigger-ingestion")
    def trigger_ingestion():
        """Triggers the Celery task to ingest the seed CSV."""
        task = async_ingest_data.delay()
        print(f"Task triggered! ID: {task.id}")

    @app.cli.command("generate-culture-score")
    @click.option("--force", is_flag=True, help="Ignore a fresh cached report.")
    def generate_culture_score(force):
        """Runs the culture score pipeline synchronously."""
        try:
            report = CultureScoreService.generate_culture_score(force_refresh=force)
            print(f"Culture score ready (updated {report.lastUpdated}).")
        except Exception as e:
            print(f"Culture score generation failed: {e}")

    @app.cli.command("trigger-culture-score")
    @click.option("--force", is_flag=True, help="Ignore a fresh cached report.")
    def trigger_culture_score(force):
        """Triggers the culture score generation as a background task."""
        task = async_generate_culture_score.delay(force_refresh=force)
        print(f"Task started! ID: {task.id}")
        print("Check worker logs for progress.")

    @app.cli.command("bootstrap")
    def bootstrap():
        """
        Full synchronous setup: Ingestion -> Culture Score.
        Blocks until complete. Used for container startup.
        """
        print("🚀 [Bootstrap] Starting system initialization...")
        print("📥 [Bootstrap] Step 1/2: Running Data Ingestion...")
        try:
            result = IngestionService.run_pipeline()
            print(f"✅ [Bootstrap] Ingestion Complete: {result}")
        except Exception as e:
            print(f"❌ [Bootstrap] Ingestion Failed: {e}")

        print("🧠 [Bootstrap] Step 2/2: Generating Culture Score...")
        try:
            report = CultureScoreService.generate_culture_score(force_refresh=False)
            print(f"✅ [Bootstrap] Culture Score ready ({report.lastUpdated}).")
        except Exception as e:
            print(f"❌ [Bootstrap] Culture Score Failed: {e}")

        print("✨ [Bootstrap] System Ready!")

    # Healthcheck
    @app.route('/health')
    def health():
        return {"status": "ok", "service": "web"}

    return app
