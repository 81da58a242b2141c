from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    LEDGER_API_URL: str = "http://localhost:8000/api/accounting"
    LEDGER_API_TOKEN: str | None = None
    HTTP_TIMEOUT: float = 30.0
    CURRENCY_DECIMALS: int = 2
    DESCRIPTION_MAX_LENGTH: int = 255
    MIN_LINES: int = 2
    BLOCK_ON_SERVER_ERRORS: bool = True
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
