import os
from typing import Literal, Optional
from pydantic_settings import BaseSettings


DEFAULT_SYSTEM_PROMPT = (
    "You are an expert electrical code tutor specializing in the National Electrical "
    "Code (NEC) 2017. You provide accurate, detailed explanations of electrical code "
    "requirements, safety practices, and installation standards. Always reference "
    "specific NEC sections when applicable and prioritize safety in your responses."
)


class Settings(BaseSettings):
    """Application settings and configuration"""

    # ============ APP SETTINGS ============
    APP_NAME: str = "NEC Chat Router"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # ============ SERVER SETTINGS ============
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    RELOAD: bool = os.getenv("RELOAD", "False").lower() == "true"

    # ============ CORS SETTINGS ============
    ALLOWED_ORIGINS: list = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")

    # ============ CLOUDFLARE SETTINGS ============
    CLOUDFLARE_ACCOUNT_ID: str = os.getenv("CLOUDFLARE_ACCOUNT_ID", "")
    CLOUDFLARE_API_TOKEN: Optional[str] = os.getenv("CLOUDFLARE_API_TOKEN", None)
    CLOUDFLARE_API_BASE_URL: str = os.getenv(
        "CLOUDFLARE_API_BASE_URL", "https://api.cloudflare.com/client/v4"
    )

    # ============ LLM SETTINGS (Workers AI) ============
    # https://developers.cloudflare.com/workers-ai/models/
    LLM_MODEL_NAME: str = os.getenv("LLM_MODEL_NAME", "@cf/meta/llama-3.3-70b-instruct-fp8-fast")
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", 1024))
    SYSTEM_PROMPT: str = os.getenv("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT)

    # ============ STREAMING SETTINGS ============
    # "translate" re-frames SSE into NDJSON, "passthrough" returns the upstream body as is
    STREAM_MODE: Literal["translate", "passthrough"] = os.getenv("STREAM_MODE", "translate")
    STREAM_PAYLOAD_FIELD: str = "response"

    # ============ RETRIEVAL SETTINGS (AutoRAG) ============
    RETRIEVAL_ENABLED: bool = os.getenv("RETRIEVAL_ENABLED", "True").lower() == "true"
    RETRIEVAL_MODE: str = os.getenv("RETRIEVAL_MODE", "search")  # search or ai_search
    AUTORAG_NAME: str = os.getenv("AUTORAG_NAME", "electrical-code-rag")
    RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", 5))
    SIMILARITY_THRESHOLD: float = float(os.getenv("SIMILARITY_THRESHOLD", 0.3))
    RETRIEVAL_REWRITE_QUERY: bool = True

    # ============ ROUTING SETTINGS ============
    API_PREFIX: str = "/api/"
    CHAT_ENDPOINT: str = "/api/chat"
    STATIC_ASSETS_DIR: str = os.getenv("STATIC_ASSETS_DIR", "./public")

    # ============ HTTP SETTINGS ============
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", 60))

    # ============ LOGGING SETTINGS ============
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", None)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Instantiate settings
settings = Settings()
