# maturagrader/utils/tracer.py
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
import logging, os

from langfuse import Langfuse

logger = logging.getLogger(__name__)

public_key = os.getenv("LANGFUSE_PUBLIC_KEY")
secret_key = os.getenv("LANGFUSE_SECRET_KEY")
host = os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com")

LANGFUSE_AVAILABLE = bool(public_key and secret_key)

lf: Optional[Langfuse] = None

if LANGFUSE_AVAILABLE:
    try:
        lf = Langfuse(public_key=public_key, secret_key=secret_key, host=host, release="maturagrader")
        logger.info(f"Langfuse initialized. Host: {host}")
    except Exception as e:
        logger.warning(f"Langfuse initialization failed: {e}. Tracing disabled.")
        LANGFUSE_AVAILABLE = False
else:
    logger.debug("Langfuse credentials not set. Tracing disabled.")


@runtime_checkable
class LLM(Protocol):
    deployment: Optional[str]
    async def run_azure_openai(
        self, *, messages: List[Dict[str, str]],
        json_schema: Dict[str, Any],
        name: Optional[str] = None,
        prompt_meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]: ...


class ObservedLLM:
    """Wraps an LLM client and records each call as a Langfuse generation."""

    def __init__(self, inner: LLM, service: str = "azure-openai"):
        self.inner = inner
        self.service = service

    @property
    def deployment(self) -> Optional[str]:
        return getattr(self.inner, "deployment", None)

    async def run_azure_openai(
        self,
        *,
        messages: List[Dict[str, str]],
        json_schema: Dict[str, Any],
        name: Optional[str] = None,
        prompt_meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not (LANGFUSE_AVAILABLE and lf):
            return await self.inner.run_azure_openai(messages=messages, json_schema=json_schema, name=name)

        model_name = self.deployment or "azure-openai"
        with lf.start_as_current_generation(name=f"llm.{name or 'grade'}", model=model_name) as gen:
            gen.update(
                input={"messages": messages},
                metadata={"service": self.service, **(prompt_meta or {})},
            )
            try:
                result = await self.inner.run_azure_openai(messages=messages, json_schema=json_schema, name=name)
                usage_info = result.get("usage", {})
                gen.update(
                    output=result.get("content"),
                    usage_details={
                        "input": usage_info.get("prompt_tokens", 0),
                        "output": usage_info.get("completion_tokens", 0),
                        "total": usage_info.get("total_tokens", 0),
                    },
                )
                return result
            except Exception as e:
                gen.update(level="ERROR", status_message=str(e))
                raise
            finally:
                try:
                    lf.flush()
                except Exception as e:
                    logger.debug(f"Langfuse flush failed: {e}")
