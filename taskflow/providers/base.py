import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for all AI chat providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The name of this provider (e.g. 'anthropic', 'openai')."""
        ...

    @abstractmethod
    async def chat(self, messages: list[dict], model: str | None = None,
                   max_tokens: int = 1024, json_mode: bool = False) -> dict:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            model: Optional model identifier. Provider uses its default if None.
            max_tokens: Upper bound on the generated length.
            json_mode: Ask the provider for a bare JSON object where it supports that.

        Returns:
            dict with keys:
                - text: str | None  — the generated text
                - provider: str     — provider name
                - model: str        — model used
                - status: "success" | "failed"
                - error: str | None — error message on failure
        """
        ...

    async def test_connection(self, model: str | None = None) -> bool:
        """Send a tiny request and report whether the provider answered."""
        result = await self.chat([{"role": "user", "content": "test"}], model, max_tokens=10)
        if result["status"] != "success":
            logger.warning("%s connection test failed: %s", self.name, result["error"])
            return False
        return bool(result["text"])

    def _result(self, model: str, text: str | None = None, error: str | None = None) -> dict:
        return {
            "text": text,
            "provider": self.name,
            "model": model,
            "status": "failed" if error else "success",
            "error": error,
        }
