"""
Gemini text client.

Wraps LangChain's ChatGoogleGenerativeAI behind the TextGenerator protocol.
Transient failures are retried with exponential backoff; once attempts are
exhausted the error surfaces as UpstreamModelError and the job is failed.
There is no per-call timeout: a generation may legitimately take tens of
seconds.

Dependencies: langchain_google_genai, langchain_core, tenacity
System role: Upstream model adapter for CV analysis
"""

import logging
from typing import Any

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from cvtailor.configs.llm import LLMSettings
from cvtailor.core.exceptions import UpstreamModelError

logger = logging.getLogger(__name__)


def response_text(content: Any) -> str:
    """
    Flatten a chat model response content into plain text.

    Content is either a string or a list of parts (strings or dicts with a
    ``text`` key); non-text parts are ignored.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


class GeminiTextClient:
    """
    Gemini-backed TextGenerator.

    Usage:
        client = GeminiTextClient(get_settings().llm)
        text = await client.generate(prompt)
    """

    def __init__(
        self,
        settings: LLMSettings,
        chat_model: ChatGoogleGenerativeAI | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Model id, sampling parameters and retry budget
            chat_model: Preconfigured chat model (built from settings when omitted)
        """
        self._settings = settings
        self.model_name = settings.model
        self._chat_model = chat_model or ChatGoogleGenerativeAI(
            model=settings.model,
            google_api_key=settings.api_key,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
            top_p=settings.top_p,
            top_k=settings.top_k,
            max_retries=1,
        )
        logger.info(f"{__name__}:__init__ - Initialized Gemini client with {settings.model}")

    def _log_retry(self, retry_state) -> None:
        logger.warning(
            f"{__name__}:generate - Retry {retry_state.attempt_number}/"
            f"{self._settings.max_attempts} after error: {retry_state.outcome.exception()}"
        )

    async def _invoke(self, prompt: str) -> str:
        response = await self._chat_model.ainvoke([HumanMessage(content=prompt)])
        text = response_text(response.content).strip()
        if not text:
            raise UpstreamModelError("Model returned an empty response", model=self.model_name)
        return text

    async def generate(self, prompt: str) -> str:
        """
        Generate a completion, retrying transient failures.

        Args:
            prompt: Full analysis prompt

        Returns:
            str: Non-empty model output

        Raises:
            UpstreamModelError: All attempts failed or the model returned no text
        """
        retrying = AsyncRetrying(
            retry=retry_if_not_exception_type(UpstreamModelError),
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential_jitter(initial=1, max=30, jitter=5),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return await retrying(self._invoke, prompt)
        except UpstreamModelError:
            raise
        except Exception as e:
            logger.error(f"{__name__}:generate - Gemini call failed: {e}")
            raise UpstreamModelError(
                f"AI service unavailable: {e}",
                model=self.model_name,
                details={"error_type": type(e).__name__},
            ) from e
