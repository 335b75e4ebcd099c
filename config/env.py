"""Environment variable loading helpers.

Local configuration can live in dotenv-style files next to manage.py.

Load order (first found wins; existing process env vars are never overridden):
- .env
- .env.dev (only when DEPLOYBOT_ENV=dev)

In production the bot runs from real environment variables (Kubernetes
secrets), so neither file needs to exist.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def _should_load_dev_env() -> bool:
    return os.environ.get("DEPLOYBOT_ENV", "").lower() in {"dev", "development", "local"}


def load_env(base_dir: Path | None = None) -> None:
    """Load .env files into process environment.

    Safe to call multiple times.

    Args:
        base_dir: Project root directory. Defaults to config/.., the same
            BASE_DIR config/settings.py uses.
    """

    if base_dir is None:
        base_dir = Path(__file__).resolve().parent.parent

    load_dotenv(base_dir / ".env", override=False)

    if _should_load_dev_env():
        load_dotenv(base_dir / ".env.dev", override=False)
