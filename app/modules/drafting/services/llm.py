from typing import List, Optional, Protocol
import logging

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from core.config import GenerationConfig, get_llm_client
from core.errors import BackendError
from core.utils.perf import profile_stage

logger = logging.getLogger(__name__)

JSON_OBJECT = "json_object"


class LanguageModel(Protocol):
    async def complete(
        self,
        system_messages: List[str],
        user_message: str,
        response_format: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        ...


def build_messages(system_messages: List[str], user_message: str) -> list[dict]:
    messages = [{"role": "system", "content": m} for m in system_messages if m and m.strip()]
    messages.append({"role": "user", "content": user_message})
    return messages


class OpenAIChatModel:
    """Chat Completions collaborator. One request per call, no retries."""

    def __init__(self, config: GenerationConfig, client: Optional[AsyncOpenAI] = None):
        self._config = config
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_llm_client(self._config)
        return self._client

    @profile_stage("llm_completion")
    async def complete(
        self,
        system_messages: List[str],
        user_message: str,
        response_format: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        params = {
            "model": self._config.model,
            "messages": build_messages(system_messages, user_message),
            "temperature": self._config.temperature,
        }
        if max_tokens:
            params["max_tokens"] = max_tokens
        if response_format:
            params["response_format"] = {"type": response_format}

        if self._config.debug:
            chars = sum(len(m["content"]) for m in params["messages"])
            logger.info(
                f"[llm] model={self._config.model} messages={len(params['messages'])} "
                f"chars={chars} format={response_format or 'text'}"
            )

        try:
            response = await self._get_client().chat.completions.create(**params)
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"[llm] backend returned {e.status_code}: {body[:500]}")
            raise BackendError("Language model request failed", status=e.status_code, body=body) from e
        except APIConnectionError as e:
            logger.error(f"[llm] backend unreachable: {e}")
            raise BackendError("Language model backend unreachable", status=None, body=str(e)) from e

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
