import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError

log = logging.getLogger(__name__)

CONFIG_PATH = os.environ.get("SERIALGATE_CONFIG", "config.json")


class ConfigError(Exception):
    pass


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    admin_token: str
    database_url: str = "sqlite:///./serials.db"
    log_file: Optional[str] = None
    log_level: str = "INFO"


def load_settings(path: str = CONFIG_PATH) -> Settings:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to open config file: {e}") from e

    try:
        settings = Settings.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigError(f"failed to parse config: {e}") from e

    if not settings.admin_token:
        raise ConfigError("admin_token is not set in config file")

    log.info("Configuration loaded from %s", path)
    return settings


def setup_logging(settings: Settings) -> None:
    if settings.log_file:
        handler: logging.Handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())
