"""
Model Invocation Adapter

The only place that talks to the hosted model.  One call = one user-role
message with fixed decoding parameters, no stop sequence.  Transport errors
are translated into the pipeline's error taxonomy so callers never see SDK
exception types.

Retries: by default exactly one request is made.  ``LLM_MAX_RETRIES`` enables
bounded exponential backoff, and only for UpstreamUnavailable; timeouts and
empty completions are never retried.
"""
import asyncio
import logging
from dataclasses import dataclass

import anthropic
from fastapi import Depends

from config import Settings, get_settings
from services.errors import EmptyCompletion, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger("receiptlens.llm")


@dataclass(frozen=True)
class CompletionSettings:
    temperature: float
    top_p: float
    max_tokens: int


# Deterministic extraction vs. more natural narrative text
INTERPRET_SETTINGS = CompletionSettings(temperature=0.0, top_p=1.0, max_tokens=2048)
SUMMARY_SETTINGS = CompletionSettings(temperature=0.7, top_p=1.0, max_tokens=500)


class LLMClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    async def complete(self, prompt: str, params: CompletionSettings) -> str:
        """Send ``prompt`` and return the first text block of the reply."""
        attempts = 1 + max(0, self.settings.llm_max_retries)
        for attempt in range(1, attempts + 1):
            try:
                return await self._complete_once(prompt, params)
            except UpstreamUnavailable as e:
                if attempt >= attempts:
                    raise
                delay = self.settings.llm_retry_backoff_seconds * (2 ** (attempt - 1))
                logger.warning(
                    "Model call failed (%s), retry %d/%d in %.2fs",
                    e.detail, attempt, attempts - 1, delay,
                )
                await asyncio.sleep(delay)
        raise AssertionError("unreachable")

    async def _complete_once(self, prompt: str, params: CompletionSettings) -> str:
        if not self.settings.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY not set, cannot call the model")
            raise UpstreamUnavailable("ANTHROPIC_API_KEY not set")

        logger.debug(
            "Sending %d-char prompt to %s (temperature=%s, max_tokens=%d)",
            len(prompt), self.settings.llm_model, params.temperature, params.max_tokens,
        )
        try:
            async with anthropic.AsyncAnthropic(
                api_key=self.settings.anthropic_api_key,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            ) as client:
                message = await client.messages.create(
                    model=self.settings.llm_model,
                    max_tokens=params.max_tokens,
                    temperature=params.temperature,
                    top_p=params.top_p,
                    messages=[{"role": "user", "content": prompt}],
                )
        except anthropic.APITimeoutError as e:
            logger.error("Model call timed out after %ss", self.settings.llm_timeout_seconds)
            raise UpstreamTimeout(
                f"Model did not respond within {self.settings.llm_timeout_seconds}s"
            ) from e
        except anthropic.APIError as e:
            logger.error("Model API error: %s", e)
            raise UpstreamUnavailable(f"Model API error: {e}") from e

        text = _first_text(message)
        if not text or not text.strip():
            logger.error("Model returned no content (stop_reason=%s)",
                         getattr(message, "stop_reason", None))
            raise EmptyCompletion("No response content from model")

        logger.debug("Model response: %s", text)
        return text


def _first_text(message) -> str:
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return ""


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    """FastAPI dependency.  Tests swap in a fake via dependency_overrides."""
    return LLMClient(settings)
