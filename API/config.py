from fastapi import APIRouter
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # MongoDB
    MONGODB_URI: str | None = None
    MONGODB_DATABASE: str = "test"
    MONGODB_COLLECTION: str = "sample"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGODB_QUERY_TIMEOUT_MS: int = 5000

    # LLM
    LLM_PROVIDER: str = "openai"  # ollama | openai | gemini

    # OpenAI
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None  # optional (for proxies)

    # Ollama
    OLLAMA_BASE_URL: str = "http://127.0.0.1:11434"

    # Gemini
    GOOGLE_API_KEY: str | None = None

    # analysis is exploratory, compilation must stay close to greedy
    ANALYSIS_MODEL: str = "gpt-4o"
    ANALYSIS_TEMPERATURE: float = 0.4
    COMPILATION_MODEL: str = "gpt-4o-mini"
    COMPILATION_TEMPERATURE: float = 0.1

    DEMO_TEMPLATE_NAME: str = "Candidate/Resume Database"

    # App
    APP_NAME: str = "MQL Generator"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/mql_generator.log"  # empty string disables file logging

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()


config_router = APIRouter()


@config_router.get("/config")
def get_config():
    return {
        "llm_provider": settings.LLM_PROVIDER,
        "analysis_model": settings.ANALYSIS_MODEL,
        "analysis_temperature": settings.ANALYSIS_TEMPERATURE,
        "compilation_model": settings.COMPILATION_MODEL,
        "compilation_temperature": settings.COMPILATION_TEMPERATURE,
        "mongodb_database": settings.MONGODB_DATABASE,
        "mongodb_collection": settings.MONGODB_COLLECTION,
        "demo_template": settings.DEMO_TEMPLATE_NAME,
        "env": settings.ENV,
    }
