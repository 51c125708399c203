from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///flashcards.db"
    SECRET_KEY: str
    JWT_ALG: str = "HS256"
    JWT_TOKEN_LOCATION: list[str] = ["headers"]
    STORE_BACKEND: str = "sql"
    DUE_CARDS_LIMIT: int = 50
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"


settings = Settings()
