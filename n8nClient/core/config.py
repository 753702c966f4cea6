"""Konfigurationsverwaltung fuer n8nClient."""
import copy
import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from n8nClient.core.errors import ConfigError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CONFIG = {
    "default_server": None,
    "servers": {},
    "timeout": None,
}


class ServerSettings(BaseModel):
    name: str
    url: str
    api_key: str = ""


def load_config(config_path=None) -> dict:
    """Laedt JSON-Konfiguration und merged mit Defaults."""
    if config_path is None:
        config_path = BASE_DIR / "config.json"
    config_path = Path(config_path)

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = json.load(f)
            config = _deep_merge(config, user_config)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("config.json konnte nicht geladen werden: %s", e)

    return config


def save_config(config: dict, config_path=None):
    """Speichert Konfiguration als JSON."""
    if config_path is None:
        config_path = BASE_DIR / "config.json"
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=4, ensure_ascii=False)


def add_server(config: dict, name: str, url: str, api_key: str = "", make_default: bool = False) -> dict:
    """Traegt einen Server ein. Der erste Server wird automatisch Default."""
    config.setdefault("servers", {})[name] = {"url": url, "api_key": api_key}
    if make_default or not config.get("default_server"):
        config["default_server"] = name
    return config


def _server_settings(name: str, entry) -> ServerSettings:
    try:
        return ServerSettings(name=name, **entry)
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Server '{name}' ungueltig konfiguriert: {e}") from e


def resolve_server(config: dict, name: Optional[str] = None) -> ServerSettings:
    """Server aufloesen: expliziter Name, dann Default, dann N8N_BASE_URL/N8N_API_KEY."""
    servers = config.get("servers") or {}

    if name is not None:
        if name not in servers:
            raise ConfigError(f"Server '{name}' nicht konfiguriert")
        return _server_settings(name, servers[name])

    default = config.get("default_server")
    if default and default in servers:
        return _server_settings(default, servers[default])

    env_url = os.environ.get("N8N_BASE_URL")
    if env_url:
        return ServerSettings(name="env", url=env_url, api_key=os.environ.get("N8N_API_KEY", ""))

    raise ConfigError("Kein Server konfiguriert. Nutze: servers --add NAME URL APIKEY")


def build_client(config: dict, name: Optional[str] = None):
    """Erzeugt einen N8nClient fuer den aufgeloesten Server."""
    from n8nClient.core.n8n_client import N8nClient

    srv = resolve_server(config, name)
    return N8nClient(base_url=srv.url, api_key=srv.api_key, timeout=parse_timeout(config.get("timeout")))


def parse_timeout(value) -> Optional[float]:
    """Timeout in Sekunden; None = kein Timeout."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"Ungueltiger timeout: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Ungueltiger timeout: {value!r}") from None


def _deep_merge(base: dict, override: dict) -> dict:
    """Rekursiver Merge: override-Werte ueberschreiben base-Werte."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
