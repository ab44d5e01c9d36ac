"""
Model service for LLM provider management.
Handles model resolution and building answer generators.
"""
from typing import Dict, List, Optional, Protocol, Tuple

from ..config import Settings
from ..ollama_client import OllamaAnswerGenerator
from ..openai_client import OpenAIAnswerGenerator

AVAILABLE_MODELS = {
    "openai": ["gpt-4o-mini"],
    "ollama": ["qwen2.5:7b"],
}


class AnswerGenerator(Protocol):
    async def generate(self, query: str, context: str) -> str:
        ...


def get_available_models() -> Dict[str, List[str]]:
    return AVAILABLE_MODELS


def resolve_model(model_string: Optional[str], settings: Settings) -> Tuple[str, str]:
    """
    Resolve a model string to provider and model name.

    Args:
        model_string: "provider:model_name" (e.g. "ollama:qwen2.5:7b") or None
        settings: Supplies the default when model_string is empty or malformed

    Examples:
        >>> resolve_model("ollama:qwen2.5:7b", Settings())
        ('ollama', 'qwen2.5:7b')
        >>> resolve_model(None, Settings())
        ('openai', 'gpt-4o-mini')
    """
    model_string = model_string or settings.default_model
    if not model_string:
        return "openai", settings.openai_model

    provider, sep, model_name = model_string.partition(":")
    if sep and provider in AVAILABLE_MODELS and model_name:
        return provider, model_name
    return "openai", settings.openai_model


def build_generator(
    settings: Settings,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> AnswerGenerator:
    """
    Create the answer generator for a request. An api_key given here wins
    over the configured one.
    """
    provider, model_name = resolve_model(model, settings)
    if provider == "ollama":
        return OllamaAnswerGenerator(model_name, settings.ollama_url, settings.generation_timeout)
    return OpenAIAnswerGenerator(
        api_key or settings.openai_api_key,
        model=model_name,
        timeout=settings.generation_timeout,
    )
