"""Integration tests for LLMClient via PydanticAI TestModel and FunctionModel.

TestModel generates synthetic data from JSON schemas (no LLM, just
procedural Python). FunctionModel lets a test script the model's reply,
including malformed tool arguments and provider HTTP failures.
"""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ConfigDict
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelResponse, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel

from problemscout.config import Settings
from problemscout.errors import (
    GenerationError,
    ProviderError,
    RetryExhaustedError,
    TransientProviderError,
)
from problemscout.llm import LLMClient
from problemscout.models.problem import ProblemClusters
from problemscout.models.research import ResearchPlan, ResearchStage
from problemscout.providers import LLMResearchProvider
from problemscout.research import ResearchOrchestrator


class _SimpleOutput(BaseModel):
    model_config = ConfigDict(frozen=True)
    name: str
    score: int


def _client(settings: Settings, model: object) -> LLMClient:
    client = LLMClient(settings)
    client._model = model  # type: ignore[assignment]
    return client


class TestLLMClientWithTestModel:
    async def test_generate_structured_output(self, settings):
        client = _client(settings, TestModel())

        result = await client.generate(
            prompt="Test prompt",
            response_model=_SimpleOutput,
            system="You are a test assistant.",
        )

        assert isinstance(result, _SimpleOutput)
        assert isinstance(result.name, str)
        assert isinstance(result.score, int)

    async def test_generate_research_plan(self, settings):
        client = _client(settings, TestModel())
        plan = await client.generate("Plan it", ResearchPlan)
        assert isinstance(plan, ResearchPlan)
        assert isinstance(plan.subreddits, list)

    async def test_generate_text_output(self, settings):
        client = _client(settings, TestModel())
        result = await client.generate_text(prompt="Test prompt", system="Be brief.")
        assert isinstance(result, str)
        assert len(result) > 0

    async def test_generate_text_custom_output(self, settings):
        client = _client(settings, TestModel(custom_output_text="r/realestate: my CRM is slow"))
        assert await client.generate_text("Simulate") == "r/realestate: my CRM is slow"


class TestModelSettings:
    def test_anthropic_gets_prompt_caching(self):
        settings = Settings(llm_provider="anthropic", anthropic_api_key="k", _env_file=None)
        ms = LLMClient(settings)._build_model_settings(temperature=0.5, max_tokens=1024)

        # AnthropicModelSettings is a TypedDict, so use dict access
        assert ms["temperature"] == 0.5
        assert ms["max_tokens"] == 1024
        assert ms["anthropic_cache_instructions"] is True

    def test_other_providers_plain_settings(self, settings):
        ms = LLMClient(settings)._build_model_settings()
        assert ms["temperature"] == settings.llm_temperature
        assert ms["max_tokens"] == settings.llm_max_tokens
        assert "anthropic_cache_instructions" not in ms

    def test_is_available_tracks_selected_provider_key(self):
        settings = Settings(llm_provider="groq", google_api_key="g", groq_api_key="", _env_file=None)
        assert LLMClient(settings).is_available is False

    def test_default_model_per_provider(self):
        assert Settings(llm_provider="groq", _env_file=None).resolved_llm_model.startswith("llama")
        assert (
            Settings(llm_provider="google", llm_model="gemini-x", _env_file=None).resolved_llm_model
            == "gemini-x"
        )


class TestLLMClientErrors:
    async def test_missing_api_key(self):
        settings = Settings(llm_provider="groq", groq_api_key="", _env_file=None)
        with pytest.raises(ProviderError, match="No API key"):
            await LLMClient(settings).generate_text("Hi")

    async def test_schema_invalid_output_raises_generation_error(self, settings, problem_payload):
        bad = problem_payload(6.0)
        del bad["scores"]["monetization"]

        def reply(_messages, info: AgentInfo) -> ModelResponse:
            tool_name = info.output_tools[0].name
            return ModelResponse(parts=[ToolCallPart(tool_name, {"problems": [bad]})])

        client = _client(settings, FunctionModel(reply))
        with pytest.raises(GenerationError):
            await client.generate("Cluster", ProblemClusters)

    async def test_auth_failure_is_not_retried(self, settings):
        calls = {"count": 0}

        def reply(_messages, _info) -> ModelResponse:
            calls["count"] += 1
            raise ModelHTTPError(status_code=401, model_name="test", body="bad key")

        client = _client(settings, FunctionModel(reply))
        with pytest.raises(ProviderError) as exc_info:
            await client.generate_text("Hi")
        assert not isinstance(exc_info.value, TransientProviderError)
        assert calls["count"] == 1

    async def test_server_errors_retried_then_exhausted(self, settings):
        calls = {"count": 0}

        def reply(_messages, _info) -> ModelResponse:
            calls["count"] += 1
            raise ModelHTTPError(status_code=503, model_name="test", body="overloaded")

        client = _client(settings, FunctionModel(reply))
        with pytest.raises(RetryExhaustedError):
            await client.generate_text("Hi")
        assert calls["count"] == settings.llm_max_retries + 1

    async def test_rate_limit_recovers(self, settings):
        calls = {"count": 0}

        def reply(_messages, info: AgentInfo) -> ModelResponse:
            calls["count"] += 1
            if calls["count"] == 1:
                raise ModelHTTPError(status_code=429, model_name="test", body="slow down")
            args = {"name": "x", "score": 3}
            return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, args)])

        client = _client(settings, FunctionModel(reply))
        result = await client.generate("Hi", _SimpleOutput)
        assert result == _SimpleOutput(name="x", score=3)
        assert calls["count"] == 2


class TestLLMResearchProviderWithModels:
    async def test_invalid_cluster_output_tagged_with_stage(self, settings, problem_payload):
        bad = problem_payload(6.0)
        del bad["scores"]["monetization"]

        def reply(_messages, info: AgentInfo) -> ModelResponse:
            tool_name = info.output_tools[0].name
            return ModelResponse(parts=[ToolCallPart(tool_name, {"problems": [bad]})])

        provider = LLMResearchProvider(_client(settings, FunctionModel(reply)), settings)
        with pytest.raises(GenerationError) as exc_info:
            await provider.cluster_and_score("crm", "some evidence")
        assert exc_info.value.stage == ResearchStage.ANALYZING

    async def test_valid_cluster_output(self, settings, problem_payload):
        def reply(_messages, info: AgentInfo) -> ModelResponse:
            payload = {"problems": [problem_payload(4.1, "a"), problem_payload(9.2, "b")]}
            return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, payload)])

        provider = LLMResearchProvider(_client(settings, FunctionModel(reply)), settings)
        problems = await provider.cluster_and_score("crm", "some evidence")
        assert [p.id for p in problems] == ["a", "b"]

    async def test_full_pipeline_on_test_model(self, settings):
        provider = LLMResearchProvider(_client(settings, TestModel()), settings)
        result = await ResearchOrchestrator(provider).run("AI for real estate agents")
        scores = [p.signal_score for p in result]
        assert scores == sorted(scores, reverse=True)
