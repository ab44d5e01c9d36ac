import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from localrag.errors import AuthError, GenerationTimeout, RateLimited, TransportError
from localrag.ollama_client import OllamaAnswerGenerator
from localrag.openai_client import OpenAIAnswerGenerator
from localrag.prompts import SYSTEM_PROMPT

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, status):
    return cls("provider said no", response=httpx.Response(status, request=_REQUEST), body=None)


class FakeCompletions:
    def __init__(self, error=None, content=" The answer. "):
        self.error = error
        self.content = content
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _openai_with(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIAnswerGenerator(api_key=None, model="gpt-4o-mini", client=client)


# ==================== OpenAI ====================

def test_openai_generate_sends_question_and_context():
    completions = FakeCompletions()
    answer = asyncio.run(_openai_with(completions).generate("What?", "Some context."))

    assert answer == "The answer."
    messages = completions.kwargs["messages"]
    assert completions.kwargs["model"] == "gpt-4o-mini"
    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "QUESTION: What?" in messages[1]["content"]
    assert "Some context." in messages[1]["content"]


@pytest.mark.parametrize("error,expected", [
    (_status_error(openai.AuthenticationError, 401), AuthError),
    (_status_error(openai.PermissionDeniedError, 403), AuthError),
    (_status_error(openai.RateLimitError, 429), RateLimited),
    (_status_error(openai.InternalServerError, 500), TransportError),
    (openai.APIConnectionError(request=_REQUEST), TransportError),
    (openai.APITimeoutError(request=_REQUEST), GenerationTimeout),
])
def test_openai_errors_are_translated(error, expected):
    with pytest.raises(expected):
        asyncio.run(_openai_with(FakeCompletions(error=error)).generate("q", "c"))


def test_openai_empty_content():
    assert asyncio.run(_openai_with(FakeCompletions(content=None)).generate("q", "c")) == ""


# ==================== Ollama ====================

def _run_against(handler, timeout=5.0):
    async def scenario():
        app = web.Application()
        app.router.add_post("/api/chat", handler)
        async with TestServer(app) as server:
            generator = OllamaAnswerGenerator("qwen2.5:7b", str(server.make_url("/")), timeout=timeout)
            return await generator.generate("What?", "Some context.")

    return asyncio.run(scenario())


def test_ollama_generate():
    received = {}

    async def handler(request):
        received.update(await request.json())
        return web.json_response({"message": {"role": "assistant", "content": " Hello there. "}})

    assert _run_against(handler) == "Hello there."
    assert received["model"] == "qwen2.5:7b"
    assert received["stream"] is False
    assert received["messages"][1]["content"].startswith("QUESTION: What?")


@pytest.mark.parametrize("status,expected", [
    (401, AuthError),
    (429, RateLimited),
    (500, TransportError),
])
def test_ollama_http_errors(status, expected):
    async def handler(request):
        return web.Response(status=status, text="nope")

    with pytest.raises(expected):
        _run_against(handler)


@pytest.mark.parametrize("make_response", [
    lambda: web.Response(status=200, text="<html>proxy error</html>", content_type="text/html"),
    lambda: web.json_response(["not", "an", "object"]),
    lambda: web.json_response({"done": True}),
])
def test_ollama_malformed_reply(make_response):
    async def handler(request):
        return make_response()

    with pytest.raises(TransportError):
        _run_against(handler)


def test_ollama_timeout():
    async def handler(request):
        await asyncio.sleep(2)
        return web.json_response({"message": {"content": "late"}})

    with pytest.raises(GenerationTimeout):
        _run_against(handler, timeout=0.1)


def test_ollama_unreachable():
    generator = OllamaAnswerGenerator("m", "http://127.0.0.1:9", timeout=2.0)
    with pytest.raises(TransportError):
        asyncio.run(generator.generate("q", "c"))
