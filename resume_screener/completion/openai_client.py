"""Chat completion through the OpenAI SDK (OpenAI or any compatible endpoint)."""
from __future__ import annotations

from openai import OpenAI, OpenAIError

from resume_screener.completion.base import CompletionService
from resume_screener.config import CompletionSettings
from resume_screener.errors import ScoringError
from resume_screener.log import get_logger

log = get_logger(__name__)


class OpenAICompletionService(CompletionService):
    def __init__(self, settings: CompletionSettings, client: OpenAI | None = None) -> None:
        self.settings = settings
        # max_retries=0: the core never retries the completion call
        self.client = client or OpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    def complete(self, prompt: str) -> str:
        log.debug("Calling completion API with model: %s", self.settings.model)
        try:
            r = self.client.chat.completions.create(
                model=self.settings.model,
                messages=[
                    {"role": "system", "content": self.settings.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
        except OpenAIError as exc:
            log.error("Error calling completion API: %s", exc)
            raise ScoringError(f"Completion request failed: {exc}") from exc

        if not r.choices:
            raise ScoringError("Completion API returned no choices")
        content = (r.choices[0].message.content or "").strip()
        log.info("Completion response received, length: %d", len(content))
        return content
