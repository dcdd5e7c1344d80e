"""Runtime settings loaded from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

log = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = 'gpt-5-mini'
DEFAULT_DB_PATH = Path('./results.db')
DEFAULT_CACHE_DIR = Path('./.validation-cache')
ENV_FILES = ('.env.local', '.env')


@dataclass(frozen=True)
class Settings:
    """Settings for the validation pipeline."""

    openai_api_key: Optional[str]
    openai_model: str
    db_path: Path
    cache_dir: Path


def load_settings(env_dir: Optional[Path] = None) -> Settings:
    """Load settings from ``.env.local`` / ``.env`` and the process environment.

    Values already present in the environment win over the files, and
    ``.env.local`` wins over ``.env``.

    Args:
        env_dir: Directory holding the env files. Defaults to the working directory.

    Returns:
        Populated Settings.
    """
    base = Path(env_dir) if env_dir else Path.cwd()
    for name in ENV_FILES:
        path = base / name
        if path.is_file():
            load_dotenv(path, override=False)
            log.debug("Loaded environment from %s", path)

    return Settings(
        openai_api_key=os.environ.get('OPENAI_API_KEY') or None,
        openai_model=os.environ.get('RECONCILE_OPENAI_MODEL', DEFAULT_OPENAI_MODEL),
        db_path=Path(os.environ.get('RECONCILE_DB_PATH', DEFAULT_DB_PATH)),
        cache_dir=Path(os.environ.get('RECONCILE_CACHE_DIR', DEFAULT_CACHE_DIR)),
    )
