import logging

import httpx
from taskflow.providers.base import BaseProvider

logger = logging.getLogger(__name__)

ANTHROPIC_MODELS = [
    "claude-haiku-4-5",
    "claude-sonnet-4-5",
]
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseProvider):
    """Provider for the Anthropic Messages API using standard httpx."""

    def __init__(self, api_key: str, timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self.endpoint = "https://api.anthropic.com/v1/messages"

    @property
    def name(self) -> str:
        return "anthropic"

    async def chat(self, messages: list[dict], model: str | None = None,
                   max_tokens: int = 1024, json_mode: bool = False) -> dict:
        used_model = model or ANTHROPIC_MODELS[0]
        try:
            headers = {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            }
            # System prompt travels outside the message list
            system = "\n".join(m["content"] for m in messages if m.get("role") == "system")
            body = {
                "model": used_model,
                "max_tokens": max_tokens,
                "messages": [m for m in messages if m.get("role") != "system"],
            }
            if system:
                body["system"] = system

            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
                text = "".join(
                    block.get("text", "") for block in data.get("content", []) if block.get("type") == "text"
                ) or None

            return self._result(used_model, text=text)
        except httpx.TimeoutException:
            logger.warning("anthropic request timed out")
            return self._result(used_model, error="Timeout")
        except Exception as e:
            logger.warning("anthropic request failed: %s", e)
            return self._result(used_model, error=str(e))
