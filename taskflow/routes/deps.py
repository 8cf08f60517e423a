from fastapi import HTTPException

from taskflow.config import (
    AI_PROVIDER,
    AI_MODEL,
    AI_TIMEOUT_SECONDS,
    ANTHROPIC_API_KEY,
    OPENAI_API_KEY,
    GROQ_API_KEYS,
)
from taskflow.providers import BaseProvider, ProviderConfigError, build_provider
from taskflow.services.results import ActionResult, ErrorKind
from taskflow.services.scoring_service import LLMScoringOracle, ScoringOracle


def respond(result: ActionResult) -> ActionResult:
    """Missing entities become a 404; every other outcome is returned as-is."""
    if result.error_kind == ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail=result.error)
    return result


def _api_key(provider: str) -> str:
    if provider == "anthropic":
        return ANTHROPIC_API_KEY
    if provider == "openai":
        return OPENAI_API_KEY
    if provider == "groq":
        return GROQ_API_KEYS[0] if GROQ_API_KEYS else ""
    return ""


def get_provider() -> BaseProvider:
    try:
        return build_provider(AI_PROVIDER, _api_key(AI_PROVIDER), timeout=AI_TIMEOUT_SECONDS)
    except ProviderConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))


def get_scoring_oracle() -> ScoringOracle:
    return LLMScoringOracle(get_provider(), model=AI_MODEL)
