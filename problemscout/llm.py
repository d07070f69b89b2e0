"""LLM client wrapper using PydanticAI.

One client class serves every supported provider (Anthropic, Google Gemini,
Groq); the concrete model is picked from Settings when first needed.
Structured calls go through an Agent with ``output_type`` so the provider's
JSON is validated against the pydantic schema before it reaches callers.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

import httpx
import structlog
from pydantic import BaseModel
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError, UnexpectedModelBehavior

from problemscout.config import Settings
from problemscout.errors import (
    GenerationError,
    ProblemScoutError,
    ProviderError,
    TransientProviderError,
)
from problemscout.metrics import llm_requests_total, llm_tokens_total
from problemscout.retry import async_with_retry

if TYPE_CHECKING:
    from pydantic_ai import Agent
    from pydantic_ai.models import Model
    from pydantic_ai.settings import ModelSettings
    from pydantic_ai.usage import RunUsage

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)
_OutputT = TypeVar("_OutputT")

_DEFAULT_SYSTEM = "You are a helpful assistant."


def build_model(settings: Settings) -> Model:
    """Construct the PydanticAI model for the configured provider."""
    name = settings.resolved_llm_model
    if settings.llm_provider == "anthropic":
        from pydantic_ai.models.anthropic import AnthropicModel
        from pydantic_ai.providers.anthropic import AnthropicProvider

        return AnthropicModel(name, provider=AnthropicProvider(api_key=settings.anthropic_api_key))
    if settings.llm_provider == "google":
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        return GoogleModel(name, provider=GoogleProvider(api_key=settings.google_api_key))
    if settings.llm_provider == "groq":
        from pydantic_ai.models.groq import GroqModel
        from pydantic_ai.providers.groq import GroqProvider

        return GroqModel(name, provider=GroqProvider(api_key=settings.groq_api_key))
    raise ValueError(f"Unsupported LLM provider: {settings.llm_provider}")


class LLMClient:
    """Wrapper around the configured LLM provider with PydanticAI for structured outputs."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._model: Model | None = None

    @property
    def model(self) -> Model:
        if self._model is None:
            if not self.is_available:
                raise ProviderError(
                    f"No API key configured for LLM provider {self.settings.llm_provider}"
                )
            self._model = build_model(self.settings)
        return self._model

    @property
    def is_available(self) -> bool:
        return bool(self.settings.llm_api_key)

    def _build_model_settings(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ModelSettings:
        """Build model_settings; Anthropic additionally gets prompt caching."""
        temp = temperature if temperature is not None else self.settings.llm_temperature
        tokens = max_tokens if max_tokens is not None else self.settings.llm_max_tokens
        if self.settings.llm_provider == "anthropic":
            from pydantic_ai.models.anthropic import AnthropicModelSettings

            return AnthropicModelSettings(
                temperature=temp,
                max_tokens=tokens,
                anthropic_cache_instructions=True,
            )
        from pydantic_ai.settings import ModelSettings

        return ModelSettings(temperature=temp, max_tokens=tokens)

    def _log_and_record_usage(self, output_type: str, usage: RunUsage) -> None:
        """Log LLM usage and record Prometheus token counters."""
        model_label = self.settings.resolved_llm_model
        logger.info(
            "LLM response",
            provider=self.settings.llm_provider,
            model=model_label,
            output_type=output_type,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_tokens=usage.total_tokens,
        )
        llm_tokens_total.labels(model=model_label, token_type="request").inc(
            usage.input_tokens or 0
        )
        llm_tokens_total.labels(model=model_label, token_type="response").inc(
            usage.output_tokens or 0
        )

    async def _run_once(
        self,
        agent: Agent[None, _OutputT],
        prompt: str,
        model_settings: ModelSettings,
    ) -> tuple[_OutputT, RunUsage]:
        """Run the agent once, translating provider failures into our taxonomy."""
        try:
            async with asyncio.timeout(self.settings.llm_timeout_s):
                result = await agent.run(prompt, model_settings=model_settings)
        except TimeoutError as exc:
            raise TransientProviderError(
                f"LLM call timed out after {self.settings.llm_timeout_s}s"
            ) from exc
        except UnexpectedModelBehavior as exc:
            raise GenerationError(f"Model output failed validation: {exc}") from exc
        except ModelHTTPError as exc:
            message = f"{self.settings.llm_provider} returned HTTP {exc.status_code}"
            if exc.status_code == 429 or exc.status_code >= 500:
                raise TransientProviderError(message) from exc
            raise ProviderError(message) from exc
        except AgentRunError as exc:
            raise ProviderError(f"LLM run failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransientProviderError(f"Connection to LLM provider failed: {exc}") from exc
        return result.output, result.usage()

    async def _run(
        self,
        agent: Agent[None, _OutputT],
        prompt: str,
        model_settings: ModelSettings,
        output_type: str,
    ) -> _OutputT:
        logger.debug(
            "LLM request",
            provider=self.settings.llm_provider,
            model=self.settings.resolved_llm_model,
            response_model=output_type,
        )
        try:
            output, usage = await async_with_retry(
                lambda: self._run_once(agent, prompt, model_settings),
                max_retries=self.settings.llm_max_retries,
                base_delay=self.settings.llm_retry_base_delay,
                retryable=(TransientProviderError,),
                label=f"llm_{output_type}",
            )
        except ProblemScoutError as exc:
            llm_requests_total.labels(
                provider=self.settings.llm_provider, outcome=type(exc).__name__
            ).inc()
            logger.warning("LLM request failed", output_type=output_type, error=str(exc))
            raise
        llm_requests_total.labels(provider=self.settings.llm_provider, outcome="success").inc()
        self._log_and_record_usage(output_type, usage)
        return output

    async def generate(
        self,
        prompt: str,
        response_model: type[T],
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> T:
        """Generate a response validated against *response_model*.

        Raises GenerationError when the model cannot produce schema-valid
        output within its output retries, ProviderError on transport failure.
        """
        from pydantic_ai import Agent

        agent: Agent[None, T] = Agent(
            self.model,
            output_type=response_model,
            system_prompt=system or _DEFAULT_SYSTEM,
            retries=self.settings.llm_output_retries,
        )
        model_settings = self._build_model_settings(temperature, max_tokens)
        return await self._run(agent, prompt, model_settings, response_model.__name__)

    async def generate_text(
        self,
        prompt: str,
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Generate plain text response (no structured output)."""
        from pydantic_ai import Agent

        agent: Agent[None, str] = Agent(
            self.model,
            output_type=str,
            system_prompt=system or _DEFAULT_SYSTEM,
        )
        model_settings = self._build_model_settings(temperature, max_tokens)
        return await self._run(agent, prompt, model_settings, "str")
