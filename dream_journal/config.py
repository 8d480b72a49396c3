import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    openai_api_key: Optional[str] = None
    model_name: str = "gpt-4o"
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 2000
    generation_timeout: float = 60.0
    log_level: str = "info"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["*"]

    @property
    def generation_enabled(self) -> bool:
        return bool(self.openai_api_key)


def _split_origins(value: Optional[str]) -> List[str]:
    if not value:
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Read settings from the environment (and .env, loaded on import)."""
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        model_name=os.getenv("DREAM_MODEL", "gpt-4o"),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        temperature=float(os.getenv("DREAM_TEMPERATURE", "0.7")),
        max_tokens=int(os.getenv("DREAM_MAX_TOKENS", "2000")),
        generation_timeout=float(os.getenv("GENERATION_TIMEOUT", "60")),
        log_level=os.getenv("LOG_LEVEL", "info"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS")),
    )
