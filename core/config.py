"""
Core Configuration and Services
Consolidated configuration settings and service wiring for the drafting service
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from openai import AsyncOpenAI
from pydantic_settings import BaseSettings

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # RAG Debug Configuration
    DEBUG_RAG: bool = False  # log prompt sizes and per-stage details

    # OpenAI Configuration
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    OPENAI_CHAT_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.2
    OPENAI_TIMEOUT_SECS: int = 120
    PHASE1_MAX_TOKENS: int = 2000
    PHASE2_MAX_TOKENS: int = 4000

    # Drafting pipeline policy
    RAG_MAX_CANDIDATES: int = 5
    RAG_CONTEXT_BUDGET: int = 16000
    RAG_MIN_SOURCE_CHARS: int = 1000
    RAG_MAX_CONCURRENT_EXTRACTIONS: int = 5
    RAG_LOW_TEXT_THRESHOLD: int = 200

    # Storage
    STORAGE_ROOT: str = "./storage"
    SOURCE_BUCKET: str = "database-uploads"
    TEMPLATE_BUCKET: str = "templates"

    # Records database
    DATABASE_URL: str = "sqlite+aiosqlite:///./drafting.sqlite"

    # CORS Configuration
    CORS_ALLOWED_ORIGINS: list[str] = [
        "http://127.0.0.1:8000",
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


settings = Settings()


@dataclass(frozen=True)
class GenerationConfig:
    """Everything the drafting pipeline needs, resolved once at construction time."""

    api_key: Optional[str]
    model: str
    base_url: Optional[str] = None
    temperature: float = 0.2
    timeout_secs: int = 120
    phase1_max_tokens: int = 2000
    phase2_max_tokens: int = 4000
    max_candidates: int = 5
    context_budget: int = 16000
    min_source_chars: int = 1000
    max_concurrent_extractions: int = 5
    low_text_threshold: int = 200
    source_bucket: str = "database-uploads"
    template_bucket: str = "templates"
    debug: bool = False

    @classmethod
    def from_settings(cls, s: Settings) -> "GenerationConfig":
        return cls(
            api_key=s.OPENAI_API_KEY,
            model=s.OPENAI_CHAT_MODEL,
            base_url=s.OPENAI_BASE_URL,
            temperature=s.OPENAI_TEMPERATURE,
            timeout_secs=s.OPENAI_TIMEOUT_SECS,
            phase1_max_tokens=s.PHASE1_MAX_TOKENS,
            phase2_max_tokens=s.PHASE2_MAX_TOKENS,
            max_candidates=s.RAG_MAX_CANDIDATES,
            context_budget=s.RAG_CONTEXT_BUDGET,
            min_source_chars=s.RAG_MIN_SOURCE_CHARS,
            max_concurrent_extractions=s.RAG_MAX_CONCURRENT_EXTRACTIONS,
            low_text_threshold=s.RAG_LOW_TEXT_THRESHOLD,
            source_bucket=s.SOURCE_BUCKET,
            template_bucket=s.TEMPLATE_BUCKET,
            debug=s.DEBUG_RAG,
        )

    def require_credentials(self) -> None:
        """Fail fast before any collaborator is contacted."""
        if not (self.api_key or "").strip():
            raise ConfigurationError(
                "Missing OpenAI API key. Set OPENAI_API_KEY in the environment."
            )
        if not (self.model or "").strip():
            raise ConfigurationError("Missing chat model name. Set OPENAI_CHAT_MODEL.")


def get_llm_client(config: GenerationConfig) -> AsyncOpenAI:
    """Create the chat client. Retries are disabled: backend errors are fatal to a request."""
    return AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout_secs,
        max_retries=0,
    )


def wire_services(app: FastAPI) -> None:
    """Wire all singleton services into app.state on startup."""
    from app.modules.drafting.services.llm import OpenAIChatModel
    from app.modules.drafting.services.pipeline import DraftingPipeline
    from app.modules.drafting.services.records.db import create_session_factory
    from app.modules.drafting.services.records.stores import (
        SqlFirmDirectory,
        SqlGenerationRecorder,
        SqlTemplateStore,
    )
    from app.modules.drafting.services.storage import LocalFileStore

    logger.info("Wiring drafting services...")

    config = GenerationConfig.from_settings(settings)
    app.state.settings = settings
    app.state.generation_config = config

    app.state.session_factory = create_session_factory(settings.DATABASE_URL)
    app.state.file_store = LocalFileStore(settings.STORAGE_ROOT)
    app.state.template_store = SqlTemplateStore(app.state.session_factory)

    if not config.api_key:
        logger.warning("OPENAI_API_KEY is not set; /generate will fail with a configuration error")

    app.state.drafting_pipeline = DraftingPipeline(
        config=config,
        file_store=app.state.file_store,
        template_store=app.state.template_store,
        llm=OpenAIChatModel(config),
        firm_directory=SqlFirmDirectory(app.state.session_factory),
        recorder=SqlGenerationRecorder(app.state.session_factory),
    )

    logger.info("Service container wiring completed successfully")


def get_pipeline(request: Request):
    return request.app.state.drafting_pipeline


def get_file_store(request: Request):
    return request.app.state.file_store


def get_template_store(request: Request):
    return request.app.state.template_store


def get_generation_config(request: Request) -> GenerationConfig:
    return request.app.state.generation_config
