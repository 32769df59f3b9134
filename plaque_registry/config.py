from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./data/db.sqlite3"
    secret_key: str = "change-me-in-production"
    token_max_age_seconds: int = 24 * 60 * 60  # 24h
    bcrypt_rounds: int = 12
    default_page_size: int = 10
    max_page_size: int = 100
    expiring_soon_days: int = 30
    default_validity_days: int = 365
    admin_username: str = "admin"
    admin_email: str = "admin@example.com"
    admin_password: str = "password"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
