from datetime import datetime
from src.application.services.analytics import AnalyticsService
from src.domain.models import Employee, Survey, Response


def test_quarter_window_labels():
    """
    GIVEN dates across the year
    WHEN quarter_window is called
    THEN it returns the calendar quarter bounds and a QnYyy label
    """
    start, end, label = AnalyticsService.quarter_window(datetime(2026, 10, 19))
    assert (start, end, label) == (datetime(2026, 10, 1), datetime(2027, 1, 1), "Q4Y26")

    start, end, label = AnalyticsService.quarter_window(datetime(2025, 2, 3))
    assert (start, end, label) == (datetime(2025, 1, 1), datetime(2025, 4, 1), "Q1Y25")


def test_survey_stats_empty(db_session):
    stats = AnalyticsService.get_survey_stats(now=datetime(2026, 10, 19))

    assert stats.totalEmployees == 0
    assert stats.surveys == []
    assert stats.quarter == "Q4Y26"


def test_survey_stats_counts_current_quarter_only(db_session):
    """
    GIVEN responses inside and outside the current quarter
    WHEN get_survey_stats is called
    THEN only the in-quarter responses are counted per survey
    """
    db_session.add_all([
        Employee(name="Ana", email="ana@culture.com", team="tech"),
        Employee(name="Bo", email="bo@culture.com", team="sales"),
    ])
    pulse = Survey(title="Pulse", description="d")
    wellbeing = Survey(title="Wellbeing", description="d")
    db_session.add_all([pulse, wellbeing])
    db_session.flush()

    db_session.add_all([
        Response(email="ana@culture.com", survey_id=pulse.id, answers={}, timestamp=datetime(2026, 10, 2)),
        Response(email="bo@culture.com", survey_id=pulse.id, answers={}, timestamp=datetime(2026, 12, 31, 23, 0)),
        # Previous quarter
        Response(email="bo@culture.com", survey_id=pulse.id, answers={}, timestamp=datetime(2026, 9, 30, 23, 59)),
        Response(email="bo@culture.com", survey_id=wellbeing.id, answers={}, timestamp=datetime(2026, 7, 1)),
    ])
    db_session.commit()

    stats = AnalyticsService.get_survey_stats(now=datetime(2026, 10, 19))

    assert stats.totalEmployees == 2
    counts = {s.title: s.completedCount for s in stats.surveys}
    assert counts == {"Pulse": 2, "Wellbeing": 0}
