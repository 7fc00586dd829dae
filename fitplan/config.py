import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_AI_MODEL = "openai/gpt-4o-mini"


DATA_DIR = os.getenv(
    "FITPLAN_DATA_DIR",
    os.path.join(os.path.dirname(__file__), "user_data"),
)


class AIServiceConfig(BaseModel):
    """Connection settings for the chat-completion endpoint."""

    api_key: Optional[str] = Field(default=None, repr=False)
    base_url: str = OPENROUTER_BASE_URL
    model: str = DEFAULT_AI_MODEL
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: float = Field(default=60.0, description="Seconds before the HTTP call is abandoned.")
    max_retries: int = 0


def load_ai_config() -> AIServiceConfig:
    """Build the AI config from the environment (and .env, loaded above)."""
    return AIServiceConfig(
        api_key=os.getenv("OPENROUTER_API_KEY"),
        base_url=os.getenv("FITPLAN_AI_BASE_URL", OPENROUTER_BASE_URL),
        model=os.getenv("FITPLAN_AI_MODEL", DEFAULT_AI_MODEL),
        timeout=float(os.getenv("FITPLAN_AI_TIMEOUT", "60")),
        max_retries=int(os.getenv("FITPLAN_AI_MAX_RETRIES", "0")),
    )
