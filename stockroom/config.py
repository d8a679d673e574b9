from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Stockroom"
    DATABASE_URL: str = "sqlite:///./stockroom.db"

    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False

    # Products at or below this quantity are reported as low stock
    LOW_STOCK_THRESHOLD: int = 5

    model_config = {"env_file": ".env"}


settings = Settings()
