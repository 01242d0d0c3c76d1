import logging
from dataclasses import dataclass, replace
from typing import Optional

import openai
from openai import OpenAI

from src.domain.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionSettings:
    """
    Explicit configuration for one completion call.
    Built per request from app config + organization settings, never kept as a global.
    """
    api_key: Optional[str]
    model: str = "gpt-4o-mini"
    max_tokens: int = 1500
    temperature: float = 0.7
    timeout: float = 60.0

    @classmethod
    def from_config(cls, config, api_key_override: Optional[str] = None) -> 'CompletionSettings':
        return cls(
            api_key=api_key_override or config.get('OPENAI_API_KEY'),
            model=config.get('OPENAI_MODEL', cls.model),
            max_tokens=int(config.get('OPENAI_MAX_TOKENS', cls.max_tokens)),
            temperature=float(config.get('OPENAI_TEMPERATURE', cls.temperature)),
            timeout=float(config.get('OPENAI_TIMEOUT_SECONDS', cls.timeout)),
        )

    def with_max_tokens(self, max_tokens: int) -> 'CompletionSettings':
        return replace(self, max_tokens=max_tokens)


class CompletionClient:
    """
    Thin adapter over the OpenAI chat completions API.
    Transport and HTTP-status failures surface as UpstreamUnavailableError.
    """

    def __init__(self, settings: CompletionSettings, client: Optional[OpenAI] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.settings.api_key:
                raise UpstreamUnavailableError("No OpenAI API key configured")
            # SDK retries disabled: failures are reported, the caller decides on retry
            self._client = OpenAI(
                api_key=self.settings.api_key,
                timeout=self.settings.timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Sends the prompt pair and returns the raw text of the first choice."""
        logger.info(
            f"AI: Requesting completion (model={self.settings.model}, "
            f"max_tokens={self.settings.max_tokens}, temperature={self.settings.temperature})"
        )
        try:
            completion = self.client.chat.completions.create(
                model=self.settings.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
        except openai.APIStatusError as e:
            logger.error(f"AI: Completion API returned HTTP {e.status_code}: {e}")
            raise UpstreamUnavailableError(f"Completion API returned HTTP {e.status_code}") from e
        except openai.APIError as e:
            # Connection errors and timeouts
            logger.error(f"AI: Completion API unreachable: {e}")
            raise UpstreamUnavailableError(f"Completion API unreachable: {e}") from e

        if not completion.choices:
            raise UpstreamUnavailableError("Completion API returned no choices")

        content = completion.choices[0].message.content or ''
        return content.strip()
