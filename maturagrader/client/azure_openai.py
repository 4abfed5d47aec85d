import asyncio, json, logging
from typing import Any, Dict, List, Optional

import openai
from openai import AzureOpenAI

from maturagrader.core.config import settings
from maturagrader.core.exceptions import LLMConnectionError, ScoringServiceError

logger = logging.getLogger(__name__)

UNSUPPORTED_SCHEMA_KEYWORDS = ("default", "minLength", "maxLength")
_SCHEMA_MAPS = ("properties", "$defs", "definitions")
_SCHEMA_LISTS = ("allOf", "anyOf", "oneOf")


def _strict(node: Any) -> Any:
    if isinstance(node, list):
        return [_strict(item) for item in node]
    if not isinstance(node, dict):
        return node

    out = {key: value for key, value in node.items() if key not in UNSUPPORTED_SCHEMA_KEYWORDS}
    for key in _SCHEMA_MAPS:
        if isinstance(out.get(key), dict):
            out[key] = {name: _strict(sub) for name, sub in out[key].items()}
    for key in _SCHEMA_LISTS:
        if isinstance(out.get(key), list):
            out[key] = _strict(out[key])
    if "items" in out:
        out["items"] = _strict(out["items"])

    if out.get("type") == "object":
        out["additionalProperties"] = False
        out["required"] = list(out.get("properties", {}))
    return out


def ensure_strict_json_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of a Pydantic-generated schema accepted by OpenAI strict structured outputs.

    Every object schema gets additionalProperties=false and lists all of its
    properties as required; optional values stay expressible as nullable.
    """
    return _strict(schema)


def _usage(resp: Any) -> Dict[str, int]:
    usage = resp.usage
    return {
        "prompt_tokens": usage.prompt_tokens if usage else 0,
        "completion_tokens": usage.completion_tokens if usage else 0,
        "total_tokens": usage.total_tokens if usage else 0,
    }


class AzureOpenAILLM:
    """Azure OpenAI chat client returning schema-constrained JSON."""

    def __init__(self, client: Optional[AzureOpenAI] = None):
        self.client = client or AzureOpenAI(
            api_key=settings.AZURE_OPENAI_API_KEY,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
        )
        self.deployment = settings.AZURE_OPENAI_DEPLOYMENT

    def _complete(self, messages: List[Dict[str, str]], json_schema: Dict[str, Any], name: Optional[str]) -> Dict[str, Any]:
        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": json_schema.get("title", "RubricResult"),
                "schema": ensure_strict_json_schema(json_schema),
                "strict": True,
            },
        }
        try:
            resp = self.client.chat.completions.create(
                model=self.deployment,
                messages=messages,
                response_format=response_format,
            )
        except (openai.APIConnectionError, openai.RateLimitError) as e:
            # APITimeoutError is a subclass of APIConnectionError
            raise LLMConnectionError(f"Azure OpenAI unavailable: {e}", {"operation": name}) from e
        except openai.APIError as e:
            raise ScoringServiceError(f"Azure OpenAI request failed: {e}", {"operation": name}) from e

        raw = resp.choices[0].message.content
        if not raw:
            raise ScoringServiceError("Empty content received from Azure OpenAI", {"operation": name})
        try:
            content = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {raw[:500]}")
            raise ScoringServiceError("Azure OpenAI returned malformed JSON", {"operation": name}) from e

        return {"content": content, "usage": _usage(resp)}

    async def run_azure_openai(
        self,
        *,
        messages: List[Dict[str, str]],
        json_schema: Dict[str, Any],
        name: Optional[str] = None,
        prompt_meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        # synchronous SDK call, run off the event loop
        return await asyncio.to_thread(self._complete, messages, json_schema, name)
