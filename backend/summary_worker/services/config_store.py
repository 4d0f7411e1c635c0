"""Load worker configuration with environment overrides."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from summary_worker.core.settings import PATHS
from summary_worker.schemas.config import AppConfig

logger = logging.getLogger(__name__)


def _apply_env_overrides(config: AppConfig, env: Mapping[str, str]) -> AppConfig:
    api_key = env.get("OPENAI_API_KEY", "").strip()
    if api_key:
        config.speech.api_key = api_key
        config.llm.api_key = api_key

    base_url = env.get("OPENAI_BASE_URL", "").strip()
    if base_url:
        config.speech.base_url = base_url
        config.llm.base_url = base_url

    progress_url = env.get("EDGE_PROGRESS_URL", "").strip()
    if progress_url:
        config.progress.url = progress_url

    token = env.get("WORKER_TOKEN", "").strip()
    if token:
        config.progress.token = token

    return config


def load_config(path: Path = PATHS.config_path, env: Optional[Mapping[str, str]] = None) -> AppConfig:
    config = AppConfig()
    if path.exists():
        data = json.loads(path.read_text(encoding="utf-8"))
        config = AppConfig.model_validate(data)
        logger.info("Loaded config from %s", path)
    return _apply_env_overrides(config, os.environ if env is None else env)


def missing_settings(config: AppConfig) -> list[str]:
    missing: list[str] = []
    if not config.speech.api_key or not config.llm.api_key:
        missing.append("OPENAI_API_KEY")
    if not config.progress.url:
        missing.append("EDGE_PROGRESS_URL")
    if not config.progress.token:
        missing.append("WORKER_TOKEN")
    return missing
