# SPDX-FileCopyrightText: 2023 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

from dataclasses import dataclass, field
from typing import Any, TypeAlias

from .config import MissingEnvVarError, Settings
from .openai_client import OpenAIChatMessage, OpenAIClient

ChatMessage: TypeAlias = OpenAIChatMessage

DEFAULT_COMPLETION_ARGS: dict[str, Any] = {
    'temperature': 0.2,
    'max_completion_tokens': 1200,
}


@dataclass
class LLM:
    """Manages access to a language model with lazy client initialization."""
    model: str
    api_key: str
    endpoint: str | None = None  # if None, use the default OpenAI endpoint
    default_params: dict[str, Any] | None = None
    _client: OpenAIClient | None = field(default=None, init=False, repr=False)  # Instantiated only when needed

    @property
    def client(self) -> OpenAIClient:
        if self._client is None:
            self._client = OpenAIClient(self.model, self.api_key, base_url=self.endpoint)
        return self._client

    def make_args(self, extra_args: dict[str, Any] | None) -> dict[str, Any]:
        completion_args = DEFAULT_COMPLETION_ARGS.copy()
        if self.default_params:
            completion_args |= self.default_params
        if extra_args:
            completion_args |= extra_args

        return completion_args

    async def get_completion(self, *, messages: list[ChatMessage], extra_args: dict[str, Any] | None = None) -> tuple[dict[str, Any], str]:
        """Get a completion from the language model.

        Args:
            messages: A list of chat messages in OpenAI format
            extra_args: A dictionary of additional named arguments to pass to the API

        Delegates to OpenAIClient.get_completion() (see openai_client.py)
        """
        completion_args = self.make_args(extra_args)
        return await self.client.get_completion(messages, completion_args)

    async def transcribe(self, audio: bytes, filename: str) -> str:
        return await self.client.transcribe(audio, filename)

    async def synthesize_speech(self, text: str) -> bytes:
        return await self.client.synthesize_speech(text)


def get_llm(settings: Settings) -> LLM:
    ''' Build an LLM from the configured model and system API key.

    Raises MissingEnvVarError if no API key is configured.
    '''
    if not settings.openai_api_key:
        raise MissingEnvVarError("OPENAI_API_KEY")

    return LLM(
        model=settings.model,
        api_key=settings.openai_api_key,
        endpoint=settings.openai_base_url,
    )
