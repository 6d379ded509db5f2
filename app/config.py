from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./app.db"

    # JWT
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Port the API is served on; thumbnail URLs point back at it
    port: str = "8091"

    # Thumbnails: folder served under /assets (empty = backend/assets)
    assets_root: str = ""

    # S3 bucket for uploaded videos
    s3_bucket: str = ""
    s3_region: str = "us-east-1"
    s3_endpoint_url: str = ""  # e.g. http://localhost:9000 for MinIO; empty = AWS

    # ffprobe binary and timeout (seconds) for aspect-ratio detection
    ffprobe_path: str = "ffprobe"
    ffprobe_timeout_seconds: float = 60

    # Upload caps
    max_video_upload_bytes: int = 1 << 30  # 1 GiB
    max_thumbnail_upload_bytes: int = 10 << 20  # 10 MiB

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
