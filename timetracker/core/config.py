import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

ENVIRONMENTS = ("development", "test", "production")

DEFAULT_DB_PATH = "data/time_tracking.db"


@dataclass(frozen=True)
class Settings:
    database_url: str
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "Settings":
        """
        Build settings from the process environment.

        Values from the .env file (defaults to ./.env) are loaded first with
        override=False, so variables already set on the host take precedence.
        """
        if env_file is None:
            env_file = Path.cwd() / ".env"
        if Path(env_file).exists():
            load_dotenv(env_file, override=False)

        environment = os.getenv("APP_ENV", "development").strip().lower()
        if environment not in ENVIRONMENTS:
            raise ValueError(
                f"APP_ENV must be one of {', '.join(ENVIRONMENTS)} (got {environment!r})"
            )

        raw_port = os.getenv("PORT", "3000")
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ValueError(f"PORT must be an integer (got {raw_port!r})") from exc

        return cls(
            database_url=_get_database_url(),
            environment=environment,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=port,
        )


def _get_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url
    return f"sqlite:///{os.getenv('DB_PATH', DEFAULT_DB_PATH)}"
