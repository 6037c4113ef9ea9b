"""Configuration helpers for the wardrobe client."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

from models.wardrobe_item import DEFAULT_IMAGE_URL

DEFAULT_BACKEND_URL = "http://localhost:8787"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    """Configuration values for the wardrobe client.

    ``environment_id`` selects the backend environment every call is routed
    to. An empty id means the backend's default environment.
    """

    environment_id: str = ""
    backend_url: str = DEFAULT_BACKEND_URL
    request_timeout_seconds: float = 10.0
    credential_store_path: str = "data/credentials.json"
    auth_function: str = "login"
    item_collection: str = "items"
    outfit_collection: str = "outfits"
    strict_integrity_check: bool = True
    default_image_url: str = DEFAULT_IMAGE_URL
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default; environment variables override values read from the file.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("CLIENT_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            return os.getenv(key.upper(), yaml_config.get(key, default))

        timeout = get_value("request_timeout_seconds", "10")
        strict = get_value("strict_integrity_check", "true")

        return cls(
            environment_id=str(get_value("environment_id", "") or ""),
            backend_url=str(get_value("backend_url", DEFAULT_BACKEND_URL) or DEFAULT_BACKEND_URL),
            request_timeout_seconds=float(timeout or 10),
            credential_store_path=str(get_value("credential_store_path", "data/credentials.json")),
            auth_function=str(get_value("auth_function", "login") or "login"),
            item_collection=str(get_value("item_collection", "items") or "items"),
            outfit_collection=str(get_value("outfit_collection", "outfits") or "outfits"),
            strict_integrity_check=str(strict).strip().lower() in _TRUTHY,
            default_image_url=str(get_value("default_image_url", DEFAULT_IMAGE_URL)),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse flat ``key: value`` lines; nested YAML is not supported."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
