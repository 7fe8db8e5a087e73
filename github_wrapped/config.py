from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


@dataclass(slots=True)
class GitHubConfig:
    api_root: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    api_version: str = "2022-11-28"
    timeout: int = 30
    token_env: str = "GITHUB_TOKEN"


@dataclass(slots=True)
class WrappedConfig:
    top_repos: int = 8
    top_languages: int = 6
    max_repositories: int = 20
    tolerate_language_errors: bool = False
    language_workers: int = 1
    default_public: bool = True


@dataclass(slots=True)
class StorageConfig:
    path: Path = Path("wrapped.db")


@dataclass(slots=True)
class OutputConfig:
    directory: Path = Path("reports")


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(slots=True)
class AppConfig:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    wrapped: WrappedConfig = field(default_factory=WrappedConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Optional[Path] = None) -> AppConfig:
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return AppConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}

    github_raw = raw.get("github", {})
    wrapped_raw = raw.get("wrapped", {})
    storage_raw = raw.get("storage", {})
    output_raw = raw.get("output", {})
    logging_raw = raw.get("logging", {})

    config = AppConfig(
        github=GitHubConfig(
            api_root=str(github_raw.get("api_root", "https://api.github.com")),
            graphql_url=str(github_raw.get("graphql_url", "https://api.github.com/graphql")),
            api_version=str(github_raw.get("api_version", "2022-11-28")),
            timeout=int(github_raw.get("timeout", 30)),
            token_env=str(github_raw.get("token_env", "GITHUB_TOKEN")),
        ),
        wrapped=WrappedConfig(
            top_repos=int(wrapped_raw.get("top_repos", 8)),
            top_languages=int(wrapped_raw.get("top_languages", 6)),
            max_repositories=int(wrapped_raw.get("max_repositories", 20)),
            tolerate_language_errors=bool(wrapped_raw.get("tolerate_language_errors", False)),
            language_workers=max(1, int(wrapped_raw.get("language_workers", 1))),
            default_public=bool(wrapped_raw.get("default_public", True)),
        ),
        storage=StorageConfig(
            path=Path(storage_raw.get("path", "wrapped.db")),
        ),
        output=OutputConfig(
            directory=Path(output_raw.get("directory", "reports")),
        ),
        logging=LoggingConfig(
            level=str(logging_raw.get("level", "INFO")).upper(),
        ),
    )

    return config
