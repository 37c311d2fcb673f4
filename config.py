"""
Configuration for the Sobriety Tracker

Everything is read from environment variables. The server only needs
DatabaseConfig/ServerConfig; the client side (tracker, reconciler)
reads ClientConfig.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class DatabaseConfig:
    url: Optional[str] = None
    name: str = "sober_tracker"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class ClientConfig:
    api_base_url: str = "http://127.0.0.1:8000/api"
    remote_timeout: float = 5.0
    data_dir: Path = Path("data")
    local_store_file: str = "local_store.json"

    @property
    def local_store_path(self) -> Path:
        return self.data_dir / self.local_store_file


@dataclass
class Settings:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the environment, raising ValueError listing every bad value."""
    errors = []

    def _number(key, default, cast):
        raw = os.getenv(key)
        if raw is None or raw == "":
            return default
        try:
            return cast(raw)
        except ValueError:
            errors.append(f"{key} must be a number, got {raw!r}")
            return default

    settings = Settings(
        database=DatabaseConfig(
            url=os.getenv("DATABASE_URL") or None,
            name=os.getenv("DATABASE_NAME", "sober_tracker"),
        ),
        server=ServerConfig(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_number("PORT", 8000, int),
        ),
        client=ClientConfig(
            api_base_url=os.getenv("API_BASE_URL", "http://127.0.0.1:8000/api").rstrip("/"),
            remote_timeout=_number("REMOTE_TIMEOUT", 5.0, float),
            data_dir=Path(os.getenv("DATA_DIR", "data")),
            local_store_file=os.getenv("LOCAL_STORE_FILE", "local_store.json"),
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    if settings.client.remote_timeout <= 0:
        errors.append("REMOTE_TIMEOUT must be greater than zero")
    if not 1 <= settings.server.port <= 65535:
        errors.append(f"PORT {settings.server.port} out of range (1-65535)")
    if settings.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"LOG_LEVEL {settings.log_level!r} is not a logging level")

    if errors:
        raise ValueError("Invalid configuration:\n" + "\n".join(f"- {e}" for e in errors))
    return settings


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)
