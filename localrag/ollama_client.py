import asyncio

import aiohttp

from .errors import AuthError, GenerationTimeout, RateLimited, TransportError
from .logging_config import logger
from .prompts import build_messages

OLLAMA_URL = "http://localhost:11434"


class OllamaAnswerGenerator:
    """Answers through a local Ollama server (/api/chat, non-streaming)."""

    provider = "ollama"

    def __init__(self, model: str, base_url: str = OLLAMA_URL, timeout: float = 60.0):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def generate(self, query: str, context: str) -> str:
        payload = {
            "model": self.model,
            "messages": build_messages(query, context),
            "stream": False,
        }
        logger.info("Sent request to Ollama model", model=self.model, context_length=len(context))
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(f"{self.base_url}/api/chat", json=payload) as resp:
                    if resp.status in (401, 403):
                        raise AuthError(f"Ollama refused the request ({resp.status})")
                    if resp.status == 429:
                        raise RateLimited("Ollama rate limit")
                    if resp.status >= 400:
                        body = await resp.text()
                        raise TransportError(f"Ollama error {resp.status}: {body[:200]}")
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError as e:
                        raise TransportError("Ollama returned a non-JSON response") from e
        except asyncio.TimeoutError as e:
            raise GenerationTimeout("Ollama request timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Ollama request failed: {e}") from e

        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise TransportError("Ollama response has no message")
        return (message.get("content") or "").strip()
