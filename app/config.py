from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Runtime
    environment: str = "development"  # "production" hides stack traces in error bodies
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./app.db"

    # JWT: access and refresh tokens are signed with different keys
    secret_key: str = "your-secret-key-change-in-production"
    refresh_secret_key: str = "your-refresh-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours
    refresh_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:5173"

    # Uploads root: videos/ holds originals, processed/<video_id>/ holds HLS output
    # (empty = backend/uploads)
    upload_dir: str = ""
    max_upload_size_bytes: int = 100 * 1024 * 1024  # 100 MB

    # "placeholder" writes a fixed manifest; "ffmpeg" segments the upload for real
    transcoder_provider: str = "placeholder"
    ffmpeg_timeout_seconds: int = 3600

    # Bootstrap admin for app.scripts.create_admin
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
