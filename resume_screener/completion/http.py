"""Chat completion over plain HTTP, for endpoints the SDK does not cover."""
from __future__ import annotations

import requests

from resume_screener.completion.base import CompletionService
from resume_screener.config import CompletionSettings
from resume_screener.errors import ScoringError
from resume_screener.log import get_logger

log = get_logger(__name__)


class HttpCompletionService(CompletionService):
    def __init__(self, settings: CompletionSettings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.url = settings.base_url.rstrip("/") + "/chat/completions"

    def complete(self, prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": self.settings.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        try:
            r = self.session.post(
                self.url, headers=headers, json=payload, timeout=self.settings.timeout_seconds
            )
            r.raise_for_status()
            data = r.json()
        except requests.Timeout as exc:
            raise ScoringError(
                f"Completion request timed out after {self.settings.timeout_seconds:.0f}s"
            ) from exc
        except (requests.RequestException, ValueError) as exc:
            log.error("Error calling %s: %s", self.url, exc)
            raise ScoringError(f"Completion request failed: {exc}") from exc

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ScoringError("Completion response has no choices[0].message.content") from exc
        log.info("Completion response received, length: %d", len(content))
        return content.strip()
