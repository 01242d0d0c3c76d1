import json
import logging
import re
from typing import Dict, Any

from src.domain.exceptions import MalformedAIOutputError, IncompleteAIOutputError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ('companyOverview', 'teamMetrics', 'actionItems')

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Removes a ```json ... ``` or ``` ... ``` wrapper if present."""
    content = text.strip()
    if content.startswith('```'):
        content = _FENCE_OPEN.sub('', content, count=1)
        content = _FENCE_CLOSE.sub('', content, count=1)
    return content.strip()


def parse_analysis(raw_text: str) -> Dict[str, Any]:
    """
    Parses the model reply into an untyped document.
    Only the presence of the top-level sections is checked; nested fields are
    coerced later when the report is built.
    """
    content = strip_code_fences(raw_text or '')

    try:
        analysis = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"AI: Failed to parse AI response: {raw_text!r}")
        raise MalformedAIOutputError("AI analysis returned invalid JSON format", raw_text=raw_text) from e

    if not isinstance(analysis, dict):
        logger.error(f"AI: AI response is not a JSON object: {raw_text!r}")
        raise MalformedAIOutputError("AI analysis returned invalid JSON format", raw_text=raw_text)

    missing = [key for key in REQUIRED_KEYS if analysis.get(key) is None]
    if missing:
        logger.error(f"AI: AI response missing sections {missing}")
        raise IncompleteAIOutputError("AI analysis returned incomplete data structure", missing_keys=missing)

    return analysis
