from src.extensions import celery
from src.application.services.ingestion import IngestionService
from src.application.services.culture_score import CultureScoreService
import logging

logger = logging.getLogger(__name__)


@celery.task(bind=True, max_retries=3)
def async_ingest_data(self, url: str = None, force_local: bool = False):
    """
    Background task to seed the database from the answers CSV.
    Retries automatically on network failure.

    Args:
        url (str, optional): Custom URL to fetch data from. Defaults to Service default.
        force_local (bool): If True, skips download and uses local backup immediately.
    """
    target_url = url or IngestionService.DEFAULT_URL

    logger.info(f"Task: Starting async ingestion. Target: {target_url}, Force Local: {force_local}")

    try:
        stats = IngestionService.run_pipeline(source_url=target_url, force_local=force_local)
        return stats

    except Exception as exc:
        logger.error(f"Task failed: {exc}")
        # Exponential backoff retry: 60s, 120s, 240s...
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))


@celery.task(
    name='data_pipeline.run_full_sync',
    bind=True,  # Access to 'self'
    autoretry_for=(IOError,),
    retry_backoff=True,
    retry_kwargs={'max_retries': 3},
    retry_jitter=True
)
def run_full_data_sync(self):
    """
    Scheduled (daily) task: seed ingestion followed by a culture score refresh.
    The refresh respects the freshness window, so a fresh report is not regenerated.
    Only I/O errors are retried; AI generation failures are reported as-is.
    """
    logger.info(f"[Celery] Starting Full Data Sync Task (Try {self.request.retries + 1})...")

    ingestion_stats = IngestionService.run_pipeline()
    report = CultureScoreService.generate_culture_score(force_refresh=False)

    msg = f"Pipeline completed. Ingestion: {ingestion_stats}. Report updated at {report.lastUpdated}"
    logger.info(f"[Celery] {msg}")
    return msg
