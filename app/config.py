from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM provider (any OpenAI-compatible endpoint)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    default_model: str = "gpt-4o"
    follow_up_model: str = ""  # optional override for follow-up questions only
    router_model: str = ""  # optional override for query routing only
    llm_max_tokens: int = 2048

    # Embeddings
    embedding_backend: str = "openai"  # openai | local
    embedding_api_key: str = ""  # falls back to llm_api_key when empty
    embedding_base_url: str = ""
    embedding_model: str = "text-embedding-3-small"
    embedding_batch_size: int = 64
    local_embed_model: str = "BAAI/bge-small-en-v1.5"

    # Search provider
    search_provider: str = "serper"  # serper | tavily
    search_fallback_enabled: bool = False
    serper_api_key: str = ""
    serper_base_url: str = "https://google.serper.dev"
    tavily_api_key: str = ""
    search_timeout_seconds: float = 15.0

    # Fetching
    page_fetch_timeout_seconds: float = 10.0
    page_fetch_user_agent: str = "AnswerEngineBot/1.0 (+https://example.local)"
    media_check_timeout_seconds: float = 5.0

    # Pipeline
    answer_strategy: str = "direct"  # direct | dialogue
    enrichments: str = "follow_ups,images,videos"
    route_queries: bool = False

    # App
    cors_origins: str = "*"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def enrichment_list(self) -> list[str]:
        return [e.strip().lower() for e in self.enrichments.split(",") if e.strip()]


settings = Settings()
