"""
Unit tests for client/azure_openai.py and utils/tracer.py
"""
import json
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import httpx
import openai
import pytest

from maturagrader.client.azure_openai import AzureOpenAILLM, ensure_strict_json_schema
from maturagrader.core.exceptions import LLMConnectionError, ScoringServiceError
from maturagrader.models.rubric import RubricResult
from maturagrader.utils.tracer import ObservedLLM


def completion(content, usage=True):
    resp = Mock()
    resp.choices = [Mock(message=Mock(content=content))]
    resp.usage = Mock(prompt_tokens=120, completion_tokens=80, total_tokens=200) if usage else None
    return resp


@pytest.mark.unit
class TestStrictSchema:
    """Test schema patching for strict structured outputs"""

    def test_every_object_is_closed_and_fully_required(self):
        schema = ensure_strict_json_schema(RubricResult.model_json_schema(by_alias=True))

        objects = [schema] + [d for d in schema["$defs"].values() if d.get("type") == "object"]
        for node in objects:
            assert node["additionalProperties"] is False
            assert set(node["required"]) == set(node["properties"])

    def test_unsupported_keywords_removed(self):
        schema = ensure_strict_json_schema(RubricResult.model_json_schema(by_alias=True))
        text = json.dumps(schema)

        assert '"default"' not in text
        assert '"minLength"' not in text

    def test_input_is_not_mutated(self):
        schema = {"type": "object", "properties": {"a": {"type": "string", "default": "x"}}}

        ensure_strict_json_schema(schema)

        assert schema == {"type": "object", "properties": {"a": {"type": "string", "default": "x"}}}

    def test_nested_arrays(self):
        schema = {
            "type": "object",
            "properties": {
                "items": {"type": "array", "items": {"type": "object", "properties": {"x": {"type": "integer"}}}},
            },
        }

        patched = ensure_strict_json_schema(schema)

        inner = patched["properties"]["items"]["items"]
        assert inner["additionalProperties"] is False
        assert inner["required"] == ["x"]


@pytest.mark.unit
class TestAzureOpenAILLM:
    """Test the Azure OpenAI wrapper with a mocked client"""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.mark.asyncio
    async def test_parses_json_content(self, client):
        client.chat.completions.create.return_value = completion('{"totalScore": 3}')
        llm = AzureOpenAILLM(client=client)

        out = await llm.run_azure_openai(
            messages=[{"role": "user", "content": "x"}],
            json_schema={"title": "RubricResult", "type": "object", "properties": {}},
            name="rubric_grading",
        )

        assert out["content"] == {"totalScore": 3}
        assert out["usage"] == {"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200}
        response_format = client.chat.completions.create.call_args.kwargs["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["strict"] is True
        assert response_format["json_schema"]["name"] == "RubricResult"

    @pytest.mark.asyncio
    async def test_missing_usage(self, client):
        client.chat.completions.create.return_value = completion('{}', usage=False)
        llm = AzureOpenAILLM(client=client)

        out = await llm.run_azure_openai(messages=[], json_schema={"type": "object"})

        assert out["usage"]["total_tokens"] == 0

    @pytest.mark.asyncio
    async def test_empty_content(self, client):
        client.chat.completions.create.return_value = completion(None)
        llm = AzureOpenAILLM(client=client)

        with pytest.raises(ScoringServiceError, match="Empty content"):
            await llm.run_azure_openai(messages=[], json_schema={"type": "object"})

    @pytest.mark.asyncio
    async def test_malformed_json(self, client):
        client.chat.completions.create.return_value = completion("{not json")
        llm = AzureOpenAILLM(client=client)

        with pytest.raises(ScoringServiceError, match="malformed JSON"):
            await llm.run_azure_openai(messages=[], json_schema={"type": "object"})

    @pytest.mark.asyncio
    async def test_connection_error_is_retryable(self, client):
        request = httpx.Request("POST", "https://example.openai.azure.com/openai/deployments/x/chat/completions")
        client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)
        llm = AzureOpenAILLM(client=client)

        with pytest.raises(LLMConnectionError):
            await llm.run_azure_openai(messages=[], json_schema={"type": "object"})


@pytest.mark.unit
class TestObservedLLM:
    """Test the Langfuse observation wrapper"""

    @pytest.mark.asyncio
    @patch("maturagrader.utils.tracer.LANGFUSE_AVAILABLE", False)
    async def test_passthrough_without_langfuse(self):
        inner = Mock()
        inner.deployment = "gpt-test"
        inner.run_azure_openai = AsyncMock(return_value={"content": {"a": 1}, "usage": {}})
        observed = ObservedLLM(inner)

        out = await observed.run_azure_openai(messages=[], json_schema={}, name="rubric_grading")

        assert out == {"content": {"a": 1}, "usage": {}}
        assert observed.deployment == "gpt-test"
        inner.run_azure_openai.assert_awaited_once_with(messages=[], json_schema={}, name="rubric_grading")

    @pytest.mark.asyncio
    @patch("maturagrader.utils.tracer.LANGFUSE_AVAILABLE", True)
    @patch("maturagrader.utils.tracer.lf")
    async def test_generation_recorded_with_langfuse(self, mock_lf):
        inner = Mock()
        inner.deployment = "gpt-test"
        inner.run_azure_openai = AsyncMock(
            return_value={"content": {"a": 1}, "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7}}
        )
        observed = ObservedLLM(inner)

        await observed.run_azure_openai(messages=[], json_schema={}, name="rubric_grading", prompt_meta={"language": "pl"})

        mock_lf.start_as_current_generation.assert_called_once_with(name="llm.rubric_grading", model="gpt-test")
        generation = mock_lf.start_as_current_generation.return_value.__enter__.return_value
        generation.update.assert_any_call(
            output={"a": 1},
            usage_details={"input": 3, "output": 4, "total": 7},
        )
        mock_lf.flush.assert_called_once()

    @pytest.mark.asyncio
    @patch("maturagrader.utils.tracer.LANGFUSE_AVAILABLE", True)
    @patch("maturagrader.utils.tracer.lf")
    async def test_failure_recorded_and_reraised(self, mock_lf):
        inner = Mock()
        inner.deployment = None
        inner.run_azure_openai = AsyncMock(side_effect=LLMConnectionError("down"))
        observed = ObservedLLM(inner)

        with pytest.raises(LLMConnectionError):
            await observed.run_azure_openai(messages=[], json_schema={})

        generation = mock_lf.start_as_current_generation.return_value.__enter__.return_value
        generation.update.assert_any_call(level="ERROR", status_message="down")
