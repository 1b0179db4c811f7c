import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from the .env file at the project root
dotenv_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=dotenv_path)

HOST = os.getenv("HOST", "0.0.0.0")
MCP_PORT = int(os.getenv("MCP_PORT", "6969"))
CHAT_PORT = int(os.getenv("CHAT_PORT", "3939"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SERVER_NAME = "1inch-mcp-server"
SERVER_VERSION = "1.0.0"


class ServiceConfig(BaseModel):
    """Connection settings shared by every 1inch API service."""
    base_url: str = Field(min_length=1)
    api_key: str = ""
    timeout: float = Field(default=30.0, gt=0)  # Seconds


class OpenRouterConfig(BaseModel):
    base_url: str = Field(min_length=1)
    api_key: str = ""
    timeout: float = Field(default=60.0, gt=0)  # Seconds
    small_model: str = ""
    large_model: str = ""
    max_tokens: int = Field(default=4000, gt=0)
    temperature: float = Field(default=0.7, ge=0, le=2)


def _millis_to_seconds(value: str) -> float:
    return int(value) / 1000


def get_service_config() -> ServiceConfig:
    """Builds the 1inch service settings from the environment."""
    return ServiceConfig(
        base_url=os.getenv("ONEINCH_BASE_URL", "https://api.1inch.dev"),
        api_key=os.getenv("ONEINCH_API_KEY", ""),
        timeout=_millis_to_seconds(os.getenv("ONEINCH_TIMEOUT", "30000")),
    )


def get_openrouter_config() -> OpenRouterConfig:
    """Builds the OpenRouter settings from the environment."""
    return OpenRouterConfig(
        base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        api_key=os.getenv("OPENROUTER_API_KEY", ""),
        timeout=_millis_to_seconds(os.getenv("OPENROUTER_TIMEOUT", "60000")),
        small_model=os.getenv("OPENROUTER_SMALL_MODEL", ""),
        large_model=os.getenv("OPENROUTER_LARGE_MODEL", ""),
        max_tokens=int(os.getenv("OPENROUTER_MAX_TOKENS", "4000")),
        temperature=float(os.getenv("OPENROUTER_TEMPERATURE", "0.7")),
    )
