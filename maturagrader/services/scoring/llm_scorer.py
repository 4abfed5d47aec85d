from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from maturagrader.core.async_manager import async_retry, run_with_timeout
from maturagrader.core.config import settings
from maturagrader.core.exceptions import LLMConnectionError, ScoringServiceError
from maturagrader.models.rubric import RubricResult
from maturagrader.utils.prompt_loader import PromptLoader
from maturagrader.utils.tracer import LLM

logger = logging.getLogger(__name__)


class LLMScoringService:
    """Scores an essay with an Azure OpenAI deployment.

    The model answers with JSON constrained to the `RubricResult` schema; the
    session validates that answer before it is shown.
    """

    def __init__(
        self,
        llm: LLM,
        loader: PromptLoader,
        language: Optional[str] = None,
        timeout_s: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self.llm = llm
        self.prompt_loader = loader
        self.language = language or settings.PROMPT_LANGUAGE
        self.timeout_s = timeout_s if timeout_s is not None else settings.API_TIMEOUT_S
        self.max_attempts = max_attempts if max_attempts is not None else settings.LLM_MAX_ATTEMPTS

    def _get_rubric_schema(self) -> Dict[str, Any]:
        return RubricResult.model_json_schema(by_alias=True)

    async def grade(self, text: str) -> Dict[str, Any]:
        system_message = self.prompt_loader.load_prompt("grading", self.language)
        messages = [
            {"role": "system", "content": system_message},
            {"role": "user", "content": text},
        ]

        @async_retry(max_attempts=self.max_attempts, delay=1.0, retry_on=(LLMConnectionError,))
        async def _call() -> Dict[str, Any]:
            return await self.llm.run_azure_openai(
                messages=messages,
                json_schema=self._get_rubric_schema(),
                name="rubric_grading",
                prompt_meta={
                    "language": self.language,
                    "prompt_version": self.prompt_loader.version,
                    "text_length": len(text),
                },
            )

        start_time = time.perf_counter()
        response = await run_with_timeout(_call(), self.timeout_s, operation="rubric grading")
        elapsed = time.perf_counter() - start_time

        token_usage = response.get("usage", {})
        logger.info(
            f"LLM grading finished in {elapsed:.3f}s - prompt tokens: {token_usage.get('prompt_tokens', 0)}, "
            f"completion tokens: {token_usage.get('completion_tokens', 0)}"
        )

        content = response.get("content")
        if not content:
            raise ScoringServiceError("Empty content received from LLM", {"elapsed_s": round(elapsed, 3)})
        return content
