from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)
    db_path: str = Field(default="./data/findash.db", alias="DB_PATH")
    local_tz: str = Field(default="UTC", alias="LOCAL_TZ")
    refresh_cron: str = Field(default="0 */2 * * *", alias="REFRESH_CRON")
    scheduler_enabled: int = Field(default=1, alias="SCHEDULER_ENABLED")
    refresh_on_startup: int = Field(default=1, alias="REFRESH_ON_STARTUP")
    source_timeout_seconds: float = Field(default=30.0, alias="SOURCE_TIMEOUT_SECONDS")
    http_retry_attempts: int = Field(default=3, alias="HTTP_RETRY_ATTEMPTS")
    http_retry_backoff_seconds: float = Field(default=1.0, alias="HTTP_RETRY_BACKOFF_SECONDS")
    addepar_key: str | None = Field(default=None, alias="ADDEPAR_KEY")
    addepar_secret: str | None = Field(default=None, alias="ADDEPAR_SECRET")
    addepar_view_id: str | None = Field(default=None, alias="ADDEPAR_VIEW_ID")
    addepar_base_url: str = Field(default="https://api.addepar.com", alias="ADDEPAR_BASE_URL")
    portfolio_file: str = Field(default="./data/portfolio.xlsx", alias="PORTFOLIO_FILE")
    portfolio_sheet: str = Field(default="Portfolio View", alias="PORTFOLIO_SHEET")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_error_file: str = Field(default="", alias="LOG_ERROR_FILE")

settings = Settings()
