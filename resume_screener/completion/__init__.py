from .base import CompletionService
from .http import HttpCompletionService
from .mock import MockCompletionService, heuristic_analysis
from .openai_client import OpenAICompletionService

from resume_screener.config import CompletionSettings
from resume_screener.errors import ConfigurationError
from resume_screener.log import get_logger

log = get_logger(__name__)

__all__ = [
    "CompletionService", "HttpCompletionService", "MockCompletionService",
    "OpenAICompletionService", "heuristic_analysis", "get_completion_service",
]


def get_completion_service(settings: CompletionSettings) -> CompletionService:
    """Build the configured provider. Only ``mock`` ever yields offline scores."""
    provider = (settings.provider or "openai").lower()

    if provider == "mock":
        log.info("Registered completion service: mock (%d scripted)", len(settings.mock_responses))
        return MockCompletionService(settings.mock_responses)

    if provider == "http":
        # Local OpenAI-compatible servers usually need no key
        log.info(
            "Registered completion service: HTTP (%s, %s)",
            settings.base_url, "with key" if settings.api_key else "no key",
        )
        return HttpCompletionService(settings)

    if provider == "openai":
        if not settings.api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not set; set it, or use COMPLETION_PROVIDER=mock for offline runs"
            )
        log.info("Registered completion service: OpenAI SDK (%s, %s)", settings.base_url, settings.model)
        return OpenAICompletionService(settings)

    raise ConfigurationError(f"Unknown completion provider: {provider}")
