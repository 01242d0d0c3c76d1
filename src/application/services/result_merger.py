import logging
from datetime import datetime
from typing import Dict, Any, Optional

from pydantic import ValidationError

from src.application.services.aggregator import AggregatedSurveyData
from src.domain.exceptions import InvalidAIOutputError
from src.domain.schemas import CultureScoreReport

logger = logging.getLogger(__name__)


class ResultMerger:
    """
    Overlays locally computed counts on the model's qualitative output.
    Countable facts always come from the data store; the model only supplies
    scores and recommendations.
    """

    @staticmethod
    def merge(analysis: Dict[str, Any], aggregated: AggregatedSurveyData,
              now: Optional[datetime] = None) -> CultureScoreReport:
        """Raises InvalidAIOutputError when the sections cannot form a valid report."""
        try:
            return ResultMerger._merge(analysis, aggregated, now)
        except (ValidationError, AttributeError, TypeError) as e:
            logger.error(f"[CultureScore] AI output failed report validation: {e}")
            raise InvalidAIOutputError("AI output does not match the report shape", details=str(e)) from e

    @staticmethod
    def _merge(analysis: Dict[str, Any], aggregated: AggregatedSurveyData,
               now: Optional[datetime]) -> CultureScoreReport:
        company_overview = {
            **analysis['companyOverview'],
            'totalEmployees': aggregated.totalEmployees,
            'employeesWithResponses': aggregated.employeesWithResponses,
            'responseRate': aggregated.responseRate,
        }

        team_metrics = []
        for metric in analysis['teamMetrics']:
            stats = aggregated.team_stats.get(metric.get('team'))
            if stats is None:
                logger.warning(
                    f"[CultureScore] AI returned team '{metric.get('team')}' with no local statistics. "
                    f"Defaulting counts to 0."
                )
            team_metrics.append({
                **metric,
                'totalCount': stats.totalCount if stats else 0,
                'respondedCount': stats.respondedCount if stats else 0,
                'responseRate': stats.responseRate if stats else '0',
            })

        return CultureScoreReport(
            lastUpdated=now or datetime.utcnow(),
            companyOverview=company_overview,
            teamMetrics=team_metrics,
            actionItems=analysis['actionItems'],
            aiGenerated=True,
        )
