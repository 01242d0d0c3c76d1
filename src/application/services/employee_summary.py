import logging
from datetime import datetime
from typing import Optional

from src.extensions import db
from src.domain.models import Employee, Response, Survey
from src.domain.schemas import EmployeeSummaryResponse
from src.application.services.aggregator import SurveyAggregator
from src.application.services.prompt_builder import PromptBuilder
from src.application.services.completion_client import CompletionClient
from src.application.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class EmployeeSummaryService:
    """
    Per-employee AI engagement summary, cached on the employee row.
    """

    NO_DATA_MESSAGE = "Not enough survey data available to generate a summary."
    SUMMARY_MAX_TOKENS = 400

    @classmethod
    def generate_summary(cls, employee_id: int, force_refresh: bool = False,
                         client: Optional[CompletionClient] = None) -> Optional[EmployeeSummaryResponse]:
        """
        Returns None when the employee does not exist.
        Employees without responses get a placeholder and no model call.
        """
        employee = db.session.get(Employee, employee_id)
        if not employee:
            logger.error(f"AI: Employee ID {employee_id} not found.")
            return None

        responses = db.session.query(Response).filter(Response.email == employee.email).all()
        if not responses:
            return EmployeeSummaryResponse(summary=cls.NO_DATA_MESSAGE)

        if not force_refresh and employee.ai_summary_text:
            return EmployeeSummaryResponse(
                summary=employee.ai_summary_text,
                lastUpdated=employee.ai_summary_updated_at
            )

        survey_ids = {r.survey_id for r in responses}
        surveys = db.session.query(Survey).filter(Survey.id.in_(survey_ids)).all()
        bundles = SurveyAggregator.build_employee_bundles(employee.email, responses, surveys)

        system_prompt, user_prompt = PromptBuilder.build_summary_prompt(employee.name, employee.team, bundles)

        if client is None:
            settings = SettingsService.get_completion_settings().with_max_tokens(cls.SUMMARY_MAX_TOKENS)
            client = CompletionClient(settings)

        try:
            summary = client.complete(system_prompt, user_prompt)

            employee.ai_summary_text = summary
            employee.ai_summary_updated_at = datetime.utcnow()
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"AI: Failed to generate summary for {employee.email}: {e}")
            raise e

        logger.info(f"AI: Summary stored for {employee.email}.")
        return EmployeeSummaryResponse(summary=summary, lastUpdated=employee.ai_summary_updated_at)

    @staticmethod
    def get_summary(email: str) -> Optional[EmployeeSummaryResponse]:
        """Cached summary read; None when the employee does not exist."""
        employee = Employee.query.filter_by(email=email).first()
        if not employee:
            return None
        if not employee.ai_summary_text:
            return EmployeeSummaryResponse()
        return EmployeeSummaryResponse(
            summary=employee.ai_summary_text,
            lastUpdated=employee.ai_summary_updated_at
        )
