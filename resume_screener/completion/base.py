from abc import ABC, abstractmethod


class CompletionService(ABC):
    """Prompt in, raw text out. No retries and no parsing."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        pass
