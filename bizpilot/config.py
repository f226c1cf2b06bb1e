"""Application configuration for the BizPilot backend."""
from dataclasses import dataclass
from typing import Optional
import os

from dotenv import load_dotenv

# Load environment variables from a local .env file when present
load_dotenv()


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


@dataclass
class Settings:
    """
    Process-wide configuration, read once at startup.

    Every component receives the Settings instance explicitly; nothing below
    the application factory reads the environment at request time.
    """
    # Chat-completion providers
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    groq_api_key: Optional[str] = None
    groq_model: str = "llama-3.1-8b-instant"
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = "mistralai/mistral-7b-instruct:free"
    cohere_api_key: Optional[str] = None
    cohere_model: str = "command-r-plus-08-2024"
    llm_provider: str = ""  # explicit preference: openai, groq, openrouter, cohere
    offline_mode: bool = False

    # Tools
    tavily_api_key: Optional[str] = None
    max_citations: int = 5

    # Storage
    database_url: Optional[str] = None
    storage_backend: str = "auto"  # auto, database, memory

    # HTTP / auth
    jwt_secret: str = "dev-secret"
    client_url: str = "http://localhost:5173"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            openai_api_key=_env("OPENAI_API_KEY"),
            openai_model=_env("OPENAI_MODEL", "gpt-4o-mini"),
            groq_api_key=_env("GROQ_API_KEY"),
            groq_model=_env("GROQ_MODEL", "llama-3.1-8b-instant"),
            openrouter_api_key=_env("OPENROUTER_API_KEY"),
            openrouter_model=_env("OPENROUTER_MODEL", "mistralai/mistral-7b-instruct:free"),
            cohere_api_key=_env("COHERE_API_KEY"),
            cohere_model=_env("COHERE_MODEL", "command-r-plus-08-2024"),
            llm_provider=(_env("LLM_PROVIDER", "") or "").lower(),
            offline_mode=_env("OFFLINE_MODE", "0") == "1",
            tavily_api_key=_env("TAVILY_API_KEY"),
            max_citations=int(_env("MAX_CITATIONS", "5")),
            database_url=_env("DATABASE_URL"),
            storage_backend=(_env("STORAGE_BACKEND", "auto") or "auto").lower(),
            jwt_secret=_env("JWT_SECRET", "dev-secret"),
            client_url=_env("CLIENT_URL", "http://localhost:5173"),
            environment=_env("ENVIRONMENT", "development"),
        )

    def describe(self) -> dict:
        """Credential presence summary that is safe to log."""
        return {
            "OPENAI_API_KEY": "set" if self.openai_api_key else "missing",
            "GROQ_API_KEY": "set" if self.groq_api_key else "missing",
            "OPENROUTER_API_KEY": "set" if self.openrouter_api_key else "missing",
            "COHERE_API_KEY": "set" if self.cohere_api_key else "missing",
            "TAVILY_API_KEY": "set" if self.tavily_api_key else "missing",
            "OFFLINE_MODE": "1" if self.offline_mode else "0",
            "STORAGE_BACKEND": self.storage_backend,
        }
