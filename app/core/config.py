from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # .env wird automatisch gelesen
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "CopyVerificationAPI"
    environment: str = "dev"
    log_level: str = "INFO"

    # Wird in jedes Audit geschrieben
    policy_version: str = "v1.0.0"

    # Katalog / Events
    event_window_days: int = 7
    catalog_timeout_seconds: float = 2.0

    # LLM (OPENAI_API_KEY liest der OpenAI-Client selbst aus der Umgebung)
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.8
    llm_candidates: int = 3

    # Kanal-Defaults
    push_max_len: int = 90
    email_max_len: int = 500
    default_locale: str = "en-US"
    default_market: str = "US"

    # Limit greift nur in production
    rate_limit_per_day: int = 10

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
