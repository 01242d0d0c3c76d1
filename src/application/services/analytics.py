from datetime import datetime
from typing import Optional, Tuple
from sqlalchemy import func
from src.extensions import db
from src.domain.models import Response, Employee, Survey
from src.domain.schemas import SurveyStats, SurveyCompletion


class AnalyticsService:
    """
    Service dedicated to dashboard statistics (survey completion per quarter).
    """

    @staticmethod
    def quarter_window(now: datetime) -> Tuple[datetime, datetime, str]:
        """
        Returns (start, end, label) for the calendar quarter containing `now`.
        Label format: Q<n>Y<yy>, e.g. Q4Y26.
        """
        quarter = (now.month - 1) // 3 + 1
        start = datetime(now.year, (quarter - 1) * 3 + 1, 1)
        if quarter == 4:
            end = datetime(now.year + 1, 1, 1)
        else:
            end = datetime(now.year, quarter * 3 + 1, 1)
        label = f"Q{quarter}Y{str(now.year)[-2:]}"
        return start, end, label

    @staticmethod
    def get_survey_stats(now: Optional[datetime] = None) -> SurveyStats:
        """
        Counts responses per survey inside the current quarter.
        Surveys without responses this quarter report 0.
        """
        now = now or datetime.utcnow()
        start, end, label = AnalyticsService.quarter_window(now)

        total_employees = db.session.query(func.count(Employee.id)).scalar() or 0

        counts = db.session.query(
            Response.survey_id,
            func.count(Response.id)
        ).filter(Response.timestamp >= start, Response.timestamp < end) \
            .group_by(Response.survey_id).all()
        count_map = {survey_id: count for survey_id, count in counts}

        surveys = Survey.query.order_by(Survey.id).all()

        return SurveyStats(
            totalEmployees=total_employees,
            surveys=[
                SurveyCompletion(id=s.id, title=s.title, completedCount=count_map.get(s.id, 0))
                for s in surveys
            ],
            quarter=label
        )
