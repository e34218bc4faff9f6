"""Load service settings from config/settings.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from resume_screener.log import get_logger

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
REPORTS_DIR: Path = PROJECT_ROOT / "reports"


@dataclass
class CompletionSettings:
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 60.0
    temperature: float = 0.3
    max_tokens: int = 2000
    system_prompt: str = (
        "You are a helpful assistant that processes resumes and job descriptions."
    )
    # Canned replies for the mock provider, consumed in order.
    mock_responses: list[str] = field(default_factory=list)


@dataclass
class Settings:
    completion: CompletionSettings = field(default_factory=CompletionSettings)
    cache_enabled: bool = True
    top_candidates_limit: int = 10
    reports_dir: Path = REPORTS_DIR


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        log.debug("No settings file at %s, using defaults", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def load_settings(path: Path | None = None) -> Settings:
    """Build Settings from YAML, then apply environment overrides."""
    path = path or Path(get_env("SCREENING_CONFIG") or SETTINGS_PATH)
    data = _read_yaml(path)

    comp_raw: dict[str, Any] = dict(data.get("completion") or {})
    completion = CompletionSettings(
        provider=str(comp_raw.get("provider", CompletionSettings.provider)),
        model=str(comp_raw.get("model", CompletionSettings.model)),
        api_key=str(comp_raw.get("api_key", "")),
        base_url=str(comp_raw.get("base_url", CompletionSettings.base_url)),
        timeout_seconds=float(comp_raw.get("timeout_seconds", CompletionSettings.timeout_seconds)),
        temperature=float(comp_raw.get("temperature", CompletionSettings.temperature)),
        max_tokens=int(comp_raw.get("max_tokens", CompletionSettings.max_tokens)),
        system_prompt=str(comp_raw.get("system_prompt", CompletionSettings.system_prompt)),
        mock_responses=list(comp_raw.get("mock_responses") or []),
    )

    # Environment wins over the YAML file
    completion.provider = get_env("COMPLETION_PROVIDER", completion.provider).lower()
    completion.api_key = get_env("OPENAI_API_KEY", completion.api_key)
    completion.base_url = get_env("OPENAI_BASE_URL", completion.base_url)
    completion.model = get_env("OPENAI_MODEL", completion.model)
    timeout = get_env("COMPLETION_TIMEOUT")
    if timeout:
        completion.timeout_seconds = float(timeout)

    cache_enabled = _as_bool(data.get("cache_enabled", True))
    if get_env("CACHE_ENABLED"):
        cache_enabled = _as_bool(get_env("CACHE_ENABLED"))

    reports_dir = Path(data["reports_dir"]) if data.get("reports_dir") else REPORTS_DIR

    settings = Settings(
        completion=completion,
        cache_enabled=cache_enabled,
        top_candidates_limit=int(data.get("top_candidates_limit", 10)),
        reports_dir=reports_dir,
    )
    log.debug(
        "Settings loaded: provider=%s model=%s cache=%s",
        completion.provider, completion.model, cache_enabled,
    )
    return settings


def ensure_dirs(settings: Settings) -> None:
    settings.reports_dir.mkdir(parents=True, exist_ok=True)
