from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = "Gemini Content Moderation Gateway"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    # Unset means the SDK default (no explicit deadline).
    gemini_timeout_ms: int | None = None
    log_level: str = "INFO"
    log_file: str | None = None

    class Config:
        env_file = ".env"

settings = Settings()
