from dataclasses import dataclass, field
from typing import Dict, List, Any, Iterable


def format_rate(numerator: int, denominator: int) -> str:
    """
    Percentage formatted with one decimal place ('50.0').
    A zero denominator yields '0' instead of a division error.
    """
    if not denominator:
        return '0'
    return f"{(numerator / denominator) * 100:.1f}"


@dataclass
class TeamStats:
    totalCount: int = 0
    respondedCount: int = 0

    @property
    def responseRate(self) -> str:
        return format_rate(self.respondedCount, self.totalCount)


@dataclass
class AggregatedSurveyData:
    """
    Locally computed, trustworthy figures plus the per-team response bundles
    handed to the prompt builder.
    """
    totalEmployees: int
    employeesWithResponses: int
    responseRate: str
    team_stats: Dict[str, TeamStats] = field(default_factory=dict)
    # team -> [ {responses: [ {surveyTitle, answers: [{question, answer}]} ]} ]
    team_bundles: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


class SurveyAggregator:
    """
    Computes per-employee and per-team response statistics from raw records.
    Works on any objects exposing the ORM attribute names (email, team,
    survey_id, answers, timestamp / id, title, questions).
    """

    @staticmethod
    def aggregate(employees: Iterable, responses: Iterable, surveys: Iterable) -> AggregatedSurveyData:
        employees = list(employees)
        responses = list(responses)

        surveys_by_id = {s.id: s for s in surveys}

        # Group responses by employee identity, oldest first
        responses_by_email: Dict[str, list] = {}
        for response in sorted(responses, key=SurveyAggregator._response_sort_key):
            responses_by_email.setdefault(response.email, []).append(response)

        total_employees = len(employees)
        # Responses from deleted employees are ignored so the count never exceeds the headcount
        known_emails = {emp.email for emp in employees}
        employees_with_responses = len(known_emails & responses_by_email.keys())

        team_stats: Dict[str, TeamStats] = {}
        team_bundles: Dict[str, List[Dict[str, Any]]] = {}

        for emp in employees:
            # Employees without a team still count toward totalEmployees only
            if not emp.team:
                continue

            stats = team_stats.setdefault(emp.team, TeamStats())
            stats.totalCount += 1

            emp_responses = responses_by_email.get(emp.email)
            if not emp_responses:
                continue

            stats.respondedCount += 1
            team_bundles.setdefault(emp.team, []).append({
                'responses': [
                    SurveyAggregator.build_response_bundle(r, surveys_by_id.get(r.survey_id))
                    for r in emp_responses
                ]
            })

        return AggregatedSurveyData(
            totalEmployees=total_employees,
            employeesWithResponses=employees_with_responses,
            responseRate=format_rate(employees_with_responses, total_employees),
            team_stats=team_stats,
            team_bundles=team_bundles,
        )

    @staticmethod
    def build_response_bundle(response, survey) -> Dict[str, Any]:
        """
        Resolves question ids to question text.
        Unknown ids (e.g. a question removed from the survey) keep the raw key.
        """
        question_text = {}
        survey_title = 'Unknown Survey'
        if survey is not None:
            survey_title = survey.title
            question_text = {str(q.id): q.text for q in survey.questions}

        answers = [
            {'question': question_text.get(str(key), str(key)), 'answer': value}
            for key, value in (response.answers or {}).items()
        ]
        return {'surveyTitle': survey_title, 'answers': answers}

    @staticmethod
    def build_employee_bundles(email: str, responses: Iterable, surveys: Iterable) -> List[Dict[str, Any]]:
        """Response bundles for a single employee (used by the summary generator)."""
        surveys_by_id = {s.id: s for s in surveys}
        own = sorted((r for r in responses if r.email == email), key=SurveyAggregator._response_sort_key)
        return [SurveyAggregator.build_response_bundle(r, surveys_by_id.get(r.survey_id)) for r in own]

    @staticmethod
    def _response_sort_key(response):
        return (response.timestamp is None, response.timestamp or 0, response.id or 0)
