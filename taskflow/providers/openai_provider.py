import logging

import httpx
from taskflow.providers.base import BaseProvider

logger = logging.getLogger(__name__)

OPENAI_MODELS = [
    "gpt-4o-mini",
    "gpt-4o",
]


class OpenAIProvider(BaseProvider):
    """Provider for OpenAI chat completions using standard httpx."""

    endpoint = "https://api.openai.com/v1/chat/completions"
    models = OPENAI_MODELS

    def __init__(self, api_key: str, timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def name(self) -> str:
        return "openai"

    async def chat(self, messages: list[dict], model: str | None = None,
                   max_tokens: int = 1024, json_mode: bool = False) -> dict:
        used_model = model or self.models[0]
        try:
            headers = {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json"
            }
            body = {
                "model": used_model,
                "messages": messages,
                "max_tokens": max_tokens,
            }
            if json_mode:
                body["response_format"] = {"type": "json_object"}

            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
                text = data["choices"][0]["message"]["content"] if "choices" in data and data["choices"] else None

            return self._result(used_model, text=text)
        except httpx.TimeoutException:
            logger.warning("%s request timed out", self.name)
            return self._result(used_model, error="Timeout")
        except Exception as e:
            logger.warning("%s request failed: %s", self.name, e)
            return self._result(used_model, error=str(e))
