import pytest
import os
from unittest.mock import patch, MagicMock
import requests
from src.application.services.ingestion import IngestionService
from src.domain.models import Employee, Survey, Question, Response

HEADER = "email;name;gender;team;date_of_birth;survey;question;answer;submitted_at"

CSV_CONTENT_V1 = f"""{HEADER}
john.doe@culture.com;John Doe;male;Tech;15/03/1990;Engagement Pulse;How satisfied are you with your current role?;4;2026-10-01 09:00:00
john.doe@culture.com;John Doe;male;Tech;15/03/1990;Engagement Pulse;What would make our company a better place to work?;More focus time;2026-10-01 09:00:00
jane.roe@culture.com;Jane Roe;female;sales;02/11/1988;Engagement Pulse;How satisfied are you with your current role?;2;2026-10-02 10:30:00
jane.roe@culture.com;Jane Roe;female;sales;02/11/1988;Engagement Pulse;What would make our company a better place to work?;Clearer targets;2026-10-02 10:30:00"""

CSV_CONTENT_V2_TEAM_CHANGE = f"""{HEADER}
john.doe@culture.com;John Doe;male;product;15/03/1990;Engagement Pulse;How satisfied are you with your current role?;4;2026-10-01 09:00:00"""

CSV_CONTENT_INVALID_ROWS = f"""{HEADER}
not-an-email;Broken Row;;tech;;Engagement Pulse;How satisfied are you with your current role?;3;2026-10-01 09:00:00
ghost@culture.com;Ghost;;finance;;Engagement Pulse;How satisfied are you with your current role?;3;2026-10-01 09:00:00
john.doe@culture.com;John Doe;male;tech;15/03/1990;Engagement Pulse;How satisfied are you with your current role?;5;2026-10-05 09:00:00"""


def mock_download(mock_get, text):
    mock_response = MagicMock()
    mock_response.text = text
    mock_response.raise_for_status.return_value = None
    mock_get.return_value = mock_response


class TestIngestionService:
    """
    Level 1 Tests: Seed Pipeline & Integrity.
    Uses a temporary cache file to avoid polluting the working directory.
    """

    @pytest.fixture
    def test_cache_path(self, tmp_path):
        """Creates a temporary file path for the CSV cache."""
        return str(tmp_path / "test_answers.csv")

    @patch('src.application.services.ingestion.requests.get')
    def test_run_pipeline_fresh_ingestion(self, mock_get, db_session, test_cache_path):
        """
        GIVEN a fresh database and valid CSV data
        WHEN run_pipeline is called with a custom test cache path
        THEN it should populate employees, surveys, questions and responses
        """
        mock_download(mock_get, CSV_CONTENT_V1)

        stats = IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        assert stats == {"employees": 2, "surveys": 1, "created": 2, "skipped": 0, "errors": 0}

        # File isolation
        assert os.path.exists(test_cache_path)
        with open(test_cache_path, 'r') as f:
            assert "More focus time" in f.read()

        john = Employee.query.filter_by(email="john.doe@culture.com").first()
        assert john.team == "tech"
        assert john.date_of_birth.year == 1990

        survey = Survey.query.filter_by(title="Engagement Pulse").first()
        types = {q.text: q.type for q in survey.questions}
        assert types["How satisfied are you with your current role?"] == "rating"
        assert types["What would make our company a better place to work?"] == "text"

        response = Response.query.filter_by(email="john.doe@culture.com").first()
        assert len(response.answers) == 2
        assert "More focus time" in response.answers.values()

    @patch('src.application.services.ingestion.requests.get')
    def test_run_pipeline_is_idempotent(self, mock_get, db_session, test_cache_path):
        """
        GIVEN data already ingested
        WHEN the same CSV is ingested again
        THEN existing responses are skipped and nothing is duplicated
        """
        mock_download(mock_get, CSV_CONTENT_V1)
        IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        stats = IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        assert stats['created'] == 0
        assert stats['skipped'] == 2
        assert Response.query.count() == 2
        assert Question.query.count() == 2
        assert Employee.query.count() == 2

    @patch('src.application.services.ingestion.requests.get')
    def test_run_pipeline_updates_employee_team(self, mock_get, db_session, test_cache_path):
        """
        GIVEN an existing employee
        WHEN a new CSV moves them to another team
        THEN the employee row is updated in place
        """
        mock_download(mock_get, CSV_CONTENT_V1)
        IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        mock_download(mock_get, CSV_CONTENT_V2_TEAM_CHANGE)
        IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        john = Employee.query.filter_by(email="john.doe@culture.com").first()
        assert john.team == "product"
        assert Employee.query.count() == 2

    @patch('src.application.services.ingestion.requests.get')
    def test_invalid_rows_are_counted_not_fatal(self, mock_get, db_session, test_cache_path):
        """
        GIVEN rows with a bad email and an unknown team
        WHEN run_pipeline is called
        THEN those rows are reported as errors and the valid row is stored
        """
        mock_download(mock_get, CSV_CONTENT_INVALID_ROWS)

        stats = IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        assert stats['errors'] == 2
        assert stats['created'] == 1
        assert Employee.query.filter_by(email="ghost@culture.com").first() is None

    @patch('src.application.services.ingestion.requests.get')
    def test_fallback_to_local_cache(self, mock_get, db_session, test_cache_path):
        """
        GIVEN the remote source is unreachable
        WHEN a local cache exists
        THEN the pipeline ingests from the cache
        """
        with open(test_cache_path, 'w', encoding='utf-8') as f:
            f.write(CSV_CONTENT_V1)
        mock_get.side_effect = requests.ConnectionError("offline")

        stats = IngestionService.run_pipeline(source_url="http://mock.com", local_cache_path=test_cache_path)

        assert stats['created'] == 2

    @patch('src.application.services.ingestion.requests.get')
    def test_missing_source_and_cache_raises(self, mock_get, db_session, tmp_path):
        mock_get.side_effect = requests.ConnectionError("offline")

        with pytest.raises(FileNotFoundError):
            IngestionService.run_pipeline(
                source_url="http://mock.com",
                local_cache_path=str(tmp_path / "missing.csv")
            )

    def test_force_local_skips_download(self, db_session, test_cache_path):
        with open(test_cache_path, 'w', encoding='utf-8') as f:
            f.write(CSV_CONTENT_V1)

        with patch('src.application.services.ingestion.requests.get') as mock_get:
            IngestionService.run_pipeline(force_local=True, local_cache_path=test_cache_path)
            mock_get.assert_not_called()

        assert Response.query.count() == 2
