"""Settings consumed by the registry, the interceptor and the renderer."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "/api"


class Settings(BaseModel):
    """Documentation and validation settings.

    ``ignored`` holds controller names ("UsersController") and single
    methods ("UsersController#show") that are never documented.
    """

    app_name: str = "Another API"
    app_info: dict[str, str] = {}
    copyright: str | None = None
    default_version: str = "1.0"
    doc_base_url: str = "/apidoc"
    api_base_url: dict[str, str] = {}
    version_in_url: bool = True
    ignored: set[str] = set()
    validate_params: bool = True
    use_cache: bool = False
    force_dsl: bool = False
    api_controllers_matcher: str | None = None
    examples_file: Path | None = None

    def full_url(self, path: str = "") -> str:
        base = self.doc_base_url.rstrip("/")
        path = path.strip("/")
        return f"{base}/{path}" if path else base or "/"

    def api_base_url_for(self, version: str) -> str:
        return self.api_base_url.get(version, DEFAULT_API_BASE_URL)

    def app_info_for(self, version: str) -> str:
        return self.app_info.get(version, "Another API description")


def load_settings(file_path: Path) -> Settings:
    """Load settings from a YAML file. An empty file gives the defaults."""
    text = file_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{file_path}: expected a mapping of settings")
    logger.debug("Loaded settings from %s", file_path)
    return Settings(**data)
