from src.extensions import celery
from src.application.services.culture_score import CultureScoreService
from src.application.services.employee_summary import EmployeeSummaryService
import logging

logger = logging.getLogger(__name__)


@celery.task(bind=True)
def async_generate_culture_score(self, force_refresh: bool = False):
    """
    Background culture score generation.
    Generation failures are not retried: a failed run costs a model call and
    the admin can trigger a manual refresh.
    """
    logger.info(f"Task: Starting culture score generation (force_refresh={force_refresh})...")

    try:
        report = CultureScoreService.generate_culture_score(force_refresh=force_refresh)
        return report.model_dump(mode='json')

    except Exception as fatal_error:
        logger.critical(f"Task: Culture score generation failed: {fatal_error}")
        raise fatal_error


@celery.task(bind=True)
def async_generate_employee_summary(self, employee_id: int, force_refresh: bool = False):
    """Background generation of one employee's AI summary."""
    logger.info(f"Task: Generating summary for employee {employee_id}...")

    result = EmployeeSummaryService.generate_summary(employee_id, force_refresh=force_refresh)
    if result is None:
        return None
    return result.model_dump(mode='json')
