"""
JSON-file configuration stores.

Each store is one file under config_dir() named after its key. The session
core never reads these; only the CLI does.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ValidationError

from convo_stream.errors import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"


def config_dir() -> Path:
    override = os.environ.get("CONVO_STREAM_HOME")
    if override:
        return Path(override)
    return Path.home() / ".convo-stream"


class JsonConfigStore:
    def __init__(self, key: str):
        self.key = key

    @property
    def path(self) -> Path:
        return config_dir() / f"{self.key}.json"

    def load(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: top level is not an object", self.path)
            return {}
        return data

    def save(self, obj: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(obj, indent=2))
        logger.info("Wrote %s", self.path)


class Settings(BaseModel):
    protocol: Literal["text", "envelope"] = "envelope"
    show_tool_blocks: bool = True


def load_settings(store: Optional[JsonConfigStore] = None) -> Settings:
    store = store or JsonConfigStore(SETTINGS_KEY)
    try:
        return Settings.model_validate(store.load())
    except ValidationError as e:
        logger.warning("Invalid settings in %s, using defaults: %s", store.path, e)
        return Settings()


def update_setting(key: str, value: str, store: Optional[JsonConfigStore] = None) -> Settings:
    """Set one field from its command-line text form and persist the result."""
    store = store or JsonConfigStore(SETTINGS_KEY)
    if key not in Settings.model_fields:
        raise ConfigError(f"Unknown setting {key!r}")
    data = load_settings(store).model_dump()
    data[key] = value
    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    store.save(settings.model_dump())
    return settings
