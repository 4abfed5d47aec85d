# maturagrader/core/config.py
import os
from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()


class Settings:
    AZURE_OPENAI_ENDPOINT: str = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    AZURE_OPENAI_API_KEY: str = os.getenv("AZURE_OPENAI_API_KEY", "")
    AZURE_OPENAI_DEPLOYMENT: str = os.getenv("AZURE_OPENAI_DEPLOYMENT", "")
    AZURE_OPENAI_API_VERSION: str = os.getenv("AZURE_OPENAI_API_VERSION", "2025-04-01-preview")
    API_TIMEOUT_S: float = float(os.getenv("API_TIMEOUT_S", "60.0"))
    LLM_MAX_ATTEMPTS: int = int(os.getenv("LLM_MAX_ATTEMPTS", "2"))

    # "sample" (offline demo scorer) or "llm" (Azure OpenAI)
    SCORER_BACKEND: str = os.getenv("SCORER_BACKEND", "sample")
    SAMPLE_SCORER_DELAY_S: float = float(os.getenv("SAMPLE_SCORER_DELAY_S", "2.5"))

    PROMPT_VERSION: str = os.getenv("PROMPT_VERSION", "v1.0.0")
    PROMPT_LANGUAGE: str = os.getenv("PROMPT_LANGUAGE", "pl")

    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(1024 * 1024)))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def azure_configured(self) -> bool:
        return bool(self.AZURE_OPENAI_ENDPOINT and self.AZURE_OPENAI_API_KEY and self.AZURE_OPENAI_DEPLOYMENT)


settings = Settings()
