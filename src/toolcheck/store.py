"""Local JSON store of saved endpoint configs."""

from __future__ import annotations

import json
import threading
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolcheck.adapters.urls import normalize_api_url
from toolcheck.errors import ConfigNotFoundError
from toolcheck.types import ConnectionConfig


class ApiConfig(BaseModel):
    """One saved endpoint: ``{name, url, key, model, isDefault}`` on disk."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    url: str
    key: str
    model: str
    is_default: bool = Field(default=False, alias="isDefault")

    def connection(self) -> ConnectionConfig:
        return ConnectionConfig(url=self.url, key=self.key, model=self.model)


class ConfigStore:
    """Ordered list of :class:`ApiConfig` kept in one JSON file.

    At most one record is the default. Writes go straight to disk.
    """

    def __init__(self, file_path: str | Path) -> None:
        self.file_path = Path(file_path)
        self._lock = threading.RLock()
        self._configs: list[ApiConfig] = self._load()

    def _load(self) -> list[ApiConfig]:
        if not self.file_path.exists():
            return []
        try:
            with open(self.file_path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("config.store.load_error path={} error={}", self.file_path, e)
            return []
        if not isinstance(raw, list):
            return []
        configs: list[ApiConfig] = []
        for item in raw:
            try:
                configs.append(ApiConfig.model_validate(item))
            except ValidationError as e:
                logger.warning("config.store.skip_invalid error={}", e)
        return configs

    def _save(self) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = [config.model_dump(by_alias=True) for config in self._configs]
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

    def list(self) -> list[ApiConfig]:
        with self._lock:
            return list(self._configs)

    def get(self, name: str) -> ApiConfig:
        with self._lock:
            for config in self._configs:
                if config.name == name:
                    return config
        raise ConfigNotFoundError(f"no saved config named {name!r}")

    def default(self) -> ApiConfig | None:
        with self._lock:
            return next((config for config in self._configs if config.is_default), None)

    def upsert(self, config: ApiConfig) -> ApiConfig:
        """Insert a config or replace the one with the same name in place."""
        config = config.model_copy(update={"url": normalize_api_url(config.url), "name": config.name.strip()})
        with self._lock:
            if config.is_default:
                self._clear_default()
            for index, existing in enumerate(self._configs):
                if existing.name == config.name:
                    self._configs[index] = config
                    break
            else:
                self._configs.append(config)
            self._save()
        return config

    def remove(self, name: str) -> None:
        with self._lock:
            remaining = [config for config in self._configs if config.name != name]
            if len(remaining) == len(self._configs):
                raise ConfigNotFoundError(f"no saved config named {name!r}")
            self._configs = remaining
            self._save()

    def set_default(self, name: str) -> ApiConfig:
        with self._lock:
            target = self.get(name)
            self._clear_default()
            updated = target.model_copy(update={"is_default": True})
            self._configs = [updated if config.name == name else config for config in self._configs]
            self._save()
            return updated

    def _clear_default(self) -> None:
        self._configs = [
            config.model_copy(update={"is_default": False}) if config.is_default else config
            for config in self._configs
        ]
