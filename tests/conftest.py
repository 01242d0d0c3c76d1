import json
import pytest
from datetime import datetime
from unittest.mock import MagicMock
from src.app import create_app
from src.extensions import db
from src.domain.models import Employee, Survey, Question, Response
from src.application.services.completion_client import CompletionClient


@pytest.fixture(scope='session')
def app():
    """
    Creates a Flask app context for tests.
    Passes test_config to force SQLite and override environment variables.
    """
    test_config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "OPENAI_API_KEY": "sk-test",
        "CELERY_BROKER_URL": "memory://",
        "CELERY_RESULT_BACKEND": "cache+memory://",
        "CELERY_TASK_ALWAYS_EAGER": True,
    }

    app = create_app(test_config=test_config)

    yield app


@pytest.fixture(scope='function')
def client(app):
    """
    A test client for the app.
    """
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """
    A test runner for the app's CLI commands.
    """
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def db_session(app):
    """
    Creates a fresh database for each test function.
    Create tables -> Run Test -> Drop tables.
    """
    with app.app_context():
        db.create_all()

        yield db.session

        db.session.remove()
        db.drop_all()


AI_ANALYSIS = {
    "companyOverview": {"averageSatisfaction": 3.8, "averageWorkLifeBalance": 3.4},
    "teamMetrics": [
        {"team": "tech", "satisfaction": 4.1, "workLifeBalance": 3.2},
        {"team": "sales", "satisfaction": 3.5, "workLifeBalance": 3.6},
    ],
    "actionItems": [
        {"text": "Introduce no-meeting Fridays", "tags": ["wellbeing", "focus"], "priority": "high"},
        {"text": "Run quarterly career conversations", "tags": ["growth"], "priority": "medium"},
        {"text": "Publish team goals company-wide", "tags": ["transparency"], "priority": "low"},
        {"text": "Review on-call rotation", "tags": ["workload"], "priority": "high"},
        {"text": "Celebrate team wins monthly", "tags": ["recognition"], "priority": "low"},
    ],
}


@pytest.fixture
def ai_analysis():
    """A well-formed model payload (deep copy per test)."""
    return json.loads(json.dumps(AI_ANALYSIS))


@pytest.fixture
def fake_completion_client():
    """
    Factory for a CompletionClient double returning a canned reply.
    Usage: fake_completion_client(reply_text) or fake_completion_client(side_effect=Error(...)).
    """
    def _make(reply=None, side_effect=None):
        fake = MagicMock(spec=CompletionClient)
        if side_effect is not None:
            fake.complete.side_effect = side_effect
        else:
            fake.complete.return_value = reply if isinstance(reply, str) else json.dumps(reply)
        return fake

    return _make


@pytest.fixture
def culture_data(db_session):
    """
    Controlled scenario for culture analytics.
    - 10 employees: 4 tech, 6 sales
    - 6 responses covering 5 distinct employees (3 tech, 2 sales)
    Expected: 5/10 responded (50.0), tech 3/4 (75.0), sales 2/6 (33.3).
    """
    survey = Survey(title="Engagement Pulse", description="Quarterly pulse")
    survey.questions = [
        Question(text="How satisfied are you with your current role?", type="rating", position=0),
        Question(text="What would make our company a better place to work?", type="text", position=1),
    ]
    db_session.add(survey)
    db_session.flush()

    q_rating, q_text = survey.questions

    employees = [Employee(name=f"Tech {i}", email=f"tech{i}@culture.com", team="tech") for i in range(4)]
    employees += [Employee(name=f"Sales {i}", email=f"sales{i}@culture.com", team="sales") for i in range(6)]
    db_session.add_all(employees)
    db_session.flush()

    responders = ["tech0@culture.com", "tech1@culture.com", "tech2@culture.com",
                  "sales0@culture.com", "sales1@culture.com"]
    responses = [
        Response(email=email, survey_id=survey.id, timestamp=datetime(2026, 10, 1, 9, 0),
                 answers={str(q_rating.id): "4", str(q_text.id): f"More focus time ({email})"})
        for email in responders
    ]
    # Second response from tech0 (still one distinct employee)
    responses.append(Response(email="tech0@culture.com", survey_id=survey.id,
                              timestamp=datetime(2026, 10, 8, 9, 0),
                              answers={str(q_rating.id): "5"}))
    db_session.add_all(responses)
    db_session.commit()

    return {"survey": survey, "employees": employees, "q_rating": q_rating, "q_text": q_text}
