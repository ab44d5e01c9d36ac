from typing import Optional

import openai
from openai import AsyncOpenAI

from .errors import AuthError, GenerationTimeout, RateLimited, TransportError
from .logging_config import logger
from .prompts import build_messages

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIAnswerGenerator:
    """Answers through the OpenAI chat completions API."""

    provider = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None:
            if not api_key:
                raise AuthError("OPENAI_API_KEY is not set. Put it in env or .env, or pass an api_key.")
            # Failures are surfaced to the caller, never retried here.
            client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self._client = client

    async def generate(self, query: str, context: str) -> str:
        logger.info("Sent request to OpenAI API", model=self.model, context_length=len(context))
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=build_messages(query, context),
                temperature=0.2,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise AuthError(f"OpenAI rejected the credentials: {e}") from e
        except openai.RateLimitError as e:
            raise RateLimited(f"OpenAI rate limit: {e}") from e
        except openai.APITimeoutError as e:
            raise GenerationTimeout("OpenAI request timed out") from e
        except (openai.APIConnectionError, openai.APIStatusError) as e:
            raise TransportError(f"OpenAI request failed: {e}") from e

        return (response.choices[0].message.content or "").strip()
