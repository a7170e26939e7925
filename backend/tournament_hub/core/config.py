from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- DB ---
    DATABASE_URL: str = "sqlite:///./tournament_hub.sqlite"

    # --- JWT ---
    JWT_SECRET: str = "change-me-in-the-env-file"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MIN: int = 60

    # --- Real-time mirror (Firebase Realtime Database REST) ---
    # Empty URL disables mirroring; events are still stored normally.
    FIREBASE_DATABASE_URL: str = ""
    FIREBASE_AUTH_TOKEN: str = ""
    REALTIME_TIMEOUT_S: float = 5.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Bootstrap admin (Scripts/make_admin.py) ---
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = ""
    ADMIN_NAME: str = "Administrator"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
