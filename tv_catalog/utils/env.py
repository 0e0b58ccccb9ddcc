from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def load_env(*, override: bool = False) -> Path | None:
    """
    Load the first `.env` file found into the process environment.

    `TV_CATALOG_ENV_FILE` wins over the repo root and the working directory.
    """
    repo_root = Path(__file__).resolve().parents[2]
    candidates = [repo_root / ".env", Path.cwd() / ".env"]
    explicit = (os.getenv("TV_CATALOG_ENV_FILE") or "").strip()
    if explicit:
        candidates.insert(0, Path(explicit))
    for path in candidates:
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None
