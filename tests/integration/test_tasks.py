from unittest.mock import patch

from src.application.tasks.ai_tasks import async_generate_culture_score, async_generate_employee_summary
from src.application.tasks.background import run_full_data_sync
from src.domain.models import CultureScore, Employee


BUILD_CLIENT = 'src.application.services.culture_score.SettingsService.build_completion_client'


class TestBackgroundTasks:
    """
    Tasks run eagerly (CELERY_TASK_ALWAYS_EAGER) inside the app context.
    """

    def test_async_generate_culture_score(self, culture_data, ai_analysis, fake_completion_client):
        fake = fake_completion_client(ai_analysis)

        with patch(BUILD_CLIENT, return_value=fake):
            result = async_generate_culture_score.delay(force_refresh=True).get()

        assert result["companyOverview"]["employeesWithResponses"] == 5
        assert result["aiGenerated"] is True
        assert CultureScore.query.count() == 1

    def test_async_generate_employee_summary_unknown_employee(self, db_session):
        assert async_generate_employee_summary.delay(999).get() is None

    def test_async_generate_employee_summary(self, culture_data, fake_completion_client):
        employee = Employee.query.filter_by(email="tech1@culture.com").first()
        fake = fake_completion_client("<ul><li>Steady</li></ul>")

        with patch('src.application.services.employee_summary.CompletionClient', return_value=fake):
            result = async_generate_employee_summary.delay(employee.id).get()

        assert result["summary"] == "<ul><li>Steady</li></ul>"

    def test_full_sync_runs_ingestion_then_culture_score(self, db_session):
        """
        GIVEN the daily sync task
        WHEN it runs
        THEN ingestion runs first and the culture score is refreshed without forcing
        """
        with patch('src.application.tasks.background.IngestionService.run_pipeline',
                   return_value={"created": 3}) as mock_ingest, \
                patch('src.application.tasks.background.CultureScoreService.generate_culture_score') as mock_generate:
            message = run_full_data_sync.delay().get()

        mock_ingest.assert_called_once_with()
        mock_generate.assert_called_once_with(force_refresh=False)
        assert "Pipeline completed" in message


class TestCliCommands:

    def test_generate_culture_score_command(self, runner, culture_data, ai_analysis, fake_completion_client):
        fake = fake_completion_client(ai_analysis)

        with patch(BUILD_CLIENT, return_value=fake):
            result = runner.invoke(args=["generate-culture-score", "--force"])

        assert "Culture score ready" in result.output
        fake.complete.assert_called_once()

    def test_generate_culture_score_command_reports_failure(self, runner, culture_data, fake_completion_client):
        fake = fake_completion_client("not json")

        with patch(BUILD_CLIENT, return_value=fake):
            result = runner.invoke(args=["generate-culture-score"])

        assert "Culture score generation failed" in result.output
