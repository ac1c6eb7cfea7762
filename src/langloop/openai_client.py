import logging
from typing import Any, TypeAlias

import openai

OpenAIChatMessage: TypeAlias = openai.types.chat.ChatCompletionMessageParam

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when the model provider cannot produce a result.

    The message is suitable for showing to a learner; details are logged.
    """


class OpenAIClient:
    """Client for interacting with OpenAI or compatible API endpoints."""

    def __init__(self, model: str, api_key: str, *, base_url: str | None = None):
        """Initialize an OpenAI client.

        Args:
            model: The model identifier to use for completions
            api_key: The API key for authentication
            base_url: Optional base URL for non-OpenAI providers
        """
        if base_url:
            self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)
        else:
            self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model

    def _translate_openai_error(self, e: openai.APIError) -> tuple[str, str]:
        common_error_text = "Error ({error_type}).  Something went wrong while checking your writing.  Please try again."
        match e:
            case openai.APITimeoutError():
                user_msg = "Error (APITimeoutError).  The system timed out producing the response.  Please try again."
                log_msg = f"OpenAI Timeout: {e}"
            case openai.RateLimitError():
                if "exceeded your current quota" in str(e):
                    user_msg = "Error (RateLimitError).  The configured API key has exceeded its current quota.  Check the API plan and billing details."
                else:
                    user_msg = "Error (RateLimitError).  The system is receiving too many requests right now.  Please try again in one minute."
                log_msg = f"OpenAI RateLimitError: {e}"
            case openai.AuthenticationError():
                user_msg = "Error (AuthenticationError).  The configured API key is invalid.  A valid OPENAI_API_KEY is needed for analysis."
                log_msg = f"OpenAI AuthenticationError: {e}"
            case openai.BadRequestError():
                if "maximum context length" in str(e):
                    user_msg = "Error (BadRequestError).  Your text is too long for the model to process.  Please shorten it."
                else:
                    user_msg = common_error_text.format(error_type='BadRequestError')
                log_msg = f"OpenAI BadRequestError: {e}"
            case _:
                user_msg = common_error_text.format(error_type='APIError')
                log_msg = f"Exception (OpenAI {type(e).__name__}, not handled specifically): {e}"

        return user_msg, log_msg

    def _fail(self, e: openai.APIError) -> ProviderError:
        user_msg, log_msg = self._translate_openai_error(e)
        logger.error(log_msg)
        return ProviderError(user_msg)

    async def get_completion(self, messages: list[OpenAIChatMessage], completion_args: dict[str, Any]) -> tuple[dict[str, Any], str]:
        """Get a completion from the LLM.

        Args:
            messages: A list of chat messages in OpenAI format
            completion_args: A dictionary of additional named arguments to pass to the API

        Returns:
            A tuple containing:
            - The raw API response as a dict
            - The response text (stripped)

        Raises:
            ProviderError: with a user-suitable message if the API call fails.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                **completion_args
            )

        except openai.APIError as e:
            raise self._fail(e) from e

        choice = response.choices[0]
        response_txt = choice.message.content or ""

        if choice.finish_reason == "length":  # "length" if max_completion_tokens reached
            logger.warning("Completion truncated at maximum length (model %s).", self._model)

        return response.model_dump(), response_txt.strip()

    async def transcribe(self, audio: bytes, filename: str, *, model: str = "whisper-1") -> str:
        """Transcribe recorded speech to plain text."""
        try:
            transcript = await self._client.audio.transcriptions.create(
                model=model,
                file=(filename, audio),
                response_format="text",
            )

        except openai.APIError as e:
            raise self._fail(e) from e

        return str(transcript).strip()

    async def synthesize_speech(self, text: str, *, model: str = "tts-1", voice: str = "alloy") -> bytes:
        """Render text as spoken audio (mp3 bytes)."""
        try:
            response = await self._client.audio.speech.create(
                model=model,
                voice=voice,
                input=text,
            )

        except openai.APIError as e:
            raise self._fail(e) from e

        return response.content
