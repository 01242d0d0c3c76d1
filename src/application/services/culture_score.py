import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from src.extensions import db
from src.domain.models import Employee, Response, Survey, CultureScore
from src.domain.schemas import CultureScoreReport
from src.domain.exceptions import NoReportAvailableError
from src.application.services.aggregator import SurveyAggregator
from src.application.services.prompt_builder import PromptBuilder
from src.application.services.completion_client import CompletionClient
from src.application.services.response_parser import parse_analysis
from src.application.services.result_merger import ResultMerger
from src.application.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class CultureScoreService:
    """
    Culture analytics pipeline: aggregate -> prompt -> complete -> parse -> merge -> persist.

    Reports are cached for a freshness window (24h by default). Generation is
    atomic: either a fully merged report is committed or nothing is.
    Concurrent generations inside one process are collapsed: a caller that waited
    for another generation returns that result instead of calling the model again.
    """

    DEFAULT_FRESHNESS_HOURS = 24

    _generation_lock = threading.Lock()
    _generation_count = 0

    @classmethod
    def generate_culture_score(cls, force_refresh: bool = False,
                               client: Optional[CompletionClient] = None,
                               now: Optional[datetime] = None) -> CultureScoreReport:
        """Full pipeline entry point. Serves a fresh cached report unless forced."""
        now = now or datetime.utcnow()

        if not force_refresh:
            cached = cls.find_fresh_report(now)
            if cached is not None:
                logger.info(f"[CultureScore] Serving cached report from {cached.last_updated}.")
                return CultureScoreReport.from_model(cached)

        seen_generation = cls._generation_count
        with cls._generation_lock:
            if cls._generation_count != seen_generation:
                # Another caller generated a report while we waited
                latest = cls._find_latest()
                if latest is not None:
                    logger.info("[CultureScore] Reusing report generated by a concurrent request.")
                    return CultureScoreReport.from_model(latest)

            report = cls._run_pipeline(client, now)
            cls._generation_count += 1
            return report

    @staticmethod
    def get_latest_culture_score() -> CultureScoreReport:
        """Cache read without triggering generation."""
        latest = CultureScoreService._find_latest()
        if latest is None:
            raise NoReportAvailableError("No culture score available")
        return CultureScoreReport.from_model(latest)

    @classmethod
    def find_fresh_report(cls, now: datetime) -> Optional[CultureScore]:
        hours = current_app.config.get('CULTURE_SCORE_FRESHNESS_HOURS', cls.DEFAULT_FRESHNESS_HOURS)
        threshold = now - timedelta(hours=hours)
        return db.session.query(CultureScore) \
            .filter(CultureScore.last_updated >= threshold) \
            .order_by(CultureScore.last_updated.desc(), CultureScore.id.desc()) \
            .first()

    # Private Helpers

    @staticmethod
    def _find_latest() -> Optional[CultureScore]:
        return db.session.query(CultureScore) \
            .order_by(CultureScore.last_updated.desc(), CultureScore.id.desc()) \
            .first()

    @staticmethod
    def _run_pipeline(client: Optional[CompletionClient], now: datetime) -> CultureScoreReport:
        logger.info("🚀 [CultureScore] Starting culture score generation...")

        try:
            employees = db.session.query(Employee).all()
            responses = db.session.query(Response).all()
            surveys = db.session.query(Survey).all()

            aggregated = SurveyAggregator.aggregate(employees, responses, surveys)
            logger.info(
                f"   -> Aggregated {aggregated.totalEmployees} employees, "
                f"{aggregated.employeesWithResponses} with responses ({aggregated.responseRate}%)."
            )

            system_prompt, user_prompt = PromptBuilder.build_culture_prompt(aggregated.team_bundles)

            client = client or SettingsService.build_completion_client()
            raw_text = client.complete(system_prompt, user_prompt)

            analysis = parse_analysis(raw_text)
            report = ResultMerger.merge(analysis, aggregated, now=now)

            record = CultureScore(
                last_updated=report.lastUpdated,
                company_overview=report.companyOverview.model_dump(),
                team_metrics=[m.model_dump() for m in report.teamMetrics],
                action_items=[a.model_dump() for a in report.actionItems],
                ai_generated=report.aiGenerated,
            )
            db.session.add(record)
            db.session.commit()

            logger.info(f"✅ [CultureScore] Report {record.id} saved.")
            return CultureScoreReport.from_model(record)

        except Exception as e:
            db.session.rollback()
            logger.error(f"❌ [CultureScore] Generation failed: {e}")
            raise e
