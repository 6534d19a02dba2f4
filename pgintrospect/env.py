"""
Load environment variables from a .env file.
Existing os.environ values are never overwritten, so the shell can override .env.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env(*search_dirs: Path) -> Path | None:
    """Load the first .env found in search_dirs (default: the working directory).

    Returns the path that was loaded, or None.
    """
    for base in search_dirs or (Path.cwd(),):
        env_path = Path(base) / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            return env_path
    return None
