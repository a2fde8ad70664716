import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./sleeptrack.db"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # Lifetime of bearer tokens issued at sign-in
    SESSION_TTL_HOURS: int = 720

    # Parent directory for per-import scratch dirs (system temp dir if unset)
    IMPORT_SCRATCH_DIR: str | None = None


settings = Settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
