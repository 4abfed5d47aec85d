# maturagrader/client/bootstrap.py
import logging
from typing import Optional

from maturagrader.client.azure_openai import AzureOpenAILLM
from maturagrader.core.config import Settings, settings as default_settings
from maturagrader.services.collaborators import ScoringService
from maturagrader.services.scoring.llm_scorer import LLMScoringService
from maturagrader.services.scoring.sample_scorer import SampleScoringService
from maturagrader.utils.prompt_loader import PromptLoader
from maturagrader.utils.tracer import LLM, ObservedLLM

logger = logging.getLogger(__name__)

SCORER_BACKENDS = ("sample", "llm")


def build_llm() -> LLM:
    base = AzureOpenAILLM()       # 순수 LLM 클라이언트
    return ObservedLLM(base)      # Langfuse 관측 래퍼


def build_scorer(backend: Optional[str] = None, settings: Optional[Settings] = None) -> ScoringService:
    settings = settings or default_settings
    backend = (backend or settings.SCORER_BACKEND).strip().lower()

    if backend == "sample":
        logger.info("Using sample scorer")
        return SampleScoringService(delay_s=settings.SAMPLE_SCORER_DELAY_S)

    if backend == "llm":
        if not settings.azure_configured:
            raise ValueError(
                "SCORER_BACKEND=llm requires AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY and AZURE_OPENAI_DEPLOYMENT"
            )
        loader = PromptLoader(version=settings.PROMPT_VERSION)
        logger.info(f"Using LLM scorer (deployment={settings.AZURE_OPENAI_DEPLOYMENT}, prompts={loader.version})")
        return LLMScoringService(
            build_llm(),
            loader,
            language=settings.PROMPT_LANGUAGE,
            timeout_s=settings.API_TIMEOUT_S,
            max_attempts=settings.LLM_MAX_ATTEMPTS,
        )

    raise ValueError(f"Unknown scorer backend '{backend}'. Choose one of: {', '.join(SCORER_BACKENDS)}")
