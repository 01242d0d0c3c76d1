import json
from typing import Dict, List, Any, Tuple


class PromptBuilder:
    """
    Turns aggregated survey data into chat prompts.
    Employee counts are never requested from the model: they are computed locally.
    """

    CULTURE_SYSTEM_PROMPT = (
        "You are an expert HR analyst who provides detailed cultural analysis of organizations. "
        "Always respond with valid JSON."
    )

    SUMMARY_SYSTEM_PROMPT = (
        "You are a professional HR analyst who provides concise, insightful summaries "
        "of employee survey responses."
    )

    RESPONSE_SHAPE = """{
    "companyOverview": {
        "averageSatisfaction": number,
        "averageWorkLifeBalance": number
    },
    "teamMetrics": [
        {
            "team": string,
            "satisfaction": number,
            "workLifeBalance": number
        }
    ],
    "actionItems": [
        {
            "text": string,
            "tags": string[],
            "priority": "high" | "medium" | "low"
        }
    ]
}"""

    ACTION_ITEM_COUNT = 5

    @classmethod
    def build_culture_prompt(cls, team_bundles: Dict[str, List[Dict[str, Any]]]) -> Tuple[str, str]:
        """
        Returns (system_prompt, user_prompt).
        Teams without responding employees are absent from team_bundles and so from the prompt.
        """
        team_names = ', '.join(team_bundles.keys())
        survey_data = json.dumps(team_bundles, indent=2, ensure_ascii=False, default=str)

        user_prompt = (
            "Analyze the following employee survey data and generate a comprehensive culture score report.\n"
            f"For each team ({team_names}), calculate:\n"
            "1. Average satisfaction score (1-5)\n"
            "2. Average work-life balance score (1-5)\n"
            "3. Key themes in feedback\n\n"
            f"Then, provide exactly {cls.ACTION_ITEM_COUNT} specific, actionable recommendations for management, "
            "each with relevant tags and priority levels.\n"
            "Format the response as a JSON object with the following structure:\n"
            f"{cls.RESPONSE_SHAPE}\n\n"
            "Survey Data:\n"
            f"{survey_data}"
        )
        return cls.CULTURE_SYSTEM_PROMPT, user_prompt

    @classmethod
    def build_summary_prompt(cls, employee_name: str, team: str, bundles: List[Dict[str, Any]]) -> Tuple[str, str]:
        """Prompt pair for the per-employee engagement summary."""
        formatted = '\n\n'.join(
            f"Survey: {bundle['surveyTitle']}\n" + '\n'.join(
                f"Question: {a['question']}\nAnswer: {a['answer']}" for a in bundle['answers']
            )
            for bundle in bundles
        )

        user_prompt = (
            f"Based on the following survey responses from {employee_name} ({team or 'unassigned'} team), "
            "generate a brief, professional 7 crisp bulletpoints summary of their engagement, well-being, "
            "and general sentiment in HTML format. Focus on key insights and patterns. "
            "Keep the tone positive and constructive.\n\n"
            f"Survey Responses:\n{formatted}"
        )
        return cls.SUMMARY_SYSTEM_PROMPT, user_prompt
