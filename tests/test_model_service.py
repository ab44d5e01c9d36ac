import pytest

from localrag.config import Settings
from localrag.errors import AuthError
from localrag.ollama_client import OllamaAnswerGenerator
from localrag.openai_client import OpenAIAnswerGenerator
from localrag.services.model_service import build_generator, get_available_models, resolve_model


@pytest.mark.parametrize("model_string,expected", [
    ("openai:gpt-4o-mini", ("openai", "gpt-4o-mini")),
    ("ollama:qwen2.5:7b", ("ollama", "qwen2.5:7b")),
    (None, ("openai", "gpt-4o-mini")),
    ("", ("openai", "gpt-4o-mini")),
    ("mystery-model", ("openai", "gpt-4o-mini")),
    ("ollama:", ("openai", "gpt-4o-mini")),
])
def test_resolve_model(model_string, expected):
    assert resolve_model(model_string, Settings()) == expected


def test_resolve_model_uses_configured_default():
    settings = Settings(default_model="ollama:llama3")
    assert resolve_model(None, settings) == ("ollama", "llama3")


def test_available_models():
    assert "openai" in get_available_models()
    assert "ollama" in get_available_models()


def test_build_ollama_generator():
    settings = Settings(ollama_url="http://ollama:11434/", generation_timeout=12.0)
    generator = build_generator(settings, model="ollama:qwen2.5:7b")
    assert isinstance(generator, OllamaAnswerGenerator)
    assert generator.model == "qwen2.5:7b"
    assert generator.base_url == "http://ollama:11434"
    assert generator.timeout == 12.0


def test_openai_without_key_is_auth_error():
    with pytest.raises(AuthError):
        build_generator(Settings(openai_api_key=None), model="openai:gpt-4o-mini")


def test_request_key_overrides_configured_key():
    generator = build_generator(Settings(openai_api_key=None), api_key="sk-request")
    assert isinstance(generator, OpenAIAnswerGenerator)
    assert generator.model == "gpt-4o-mini"
