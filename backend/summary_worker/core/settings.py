"""Runtime paths and static app settings."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    runtime_root: Path
    jobs_root: Path
    config_path: Path


def build_paths() -> AppPaths:
    runtime_env = os.environ.get("SUMMARY_WORKER_RUNTIME", "").strip()
    runtime_root = Path(runtime_env) if runtime_env else Path(tempfile.gettempdir()) / "summary-worker"
    jobs_root = runtime_root / "jobs"
    config_env = os.environ.get("SUMMARY_WORKER_CONFIG", "").strip()
    config_path = Path(config_env) if config_env else runtime_root / "config.json"

    return AppPaths(
        runtime_root=runtime_root,
        jobs_root=jobs_root,
        config_path=config_path,
    )


APP_VERSION = "0.1.0"
PATHS = build_paths()
