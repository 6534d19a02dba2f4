"""JSON output of the introspected schema."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .models import Result

logger = logging.getLogger(__name__)


def write_json(result: Result, output_path: str | Path) -> None:
    """Save the schema as indented JSON for inspection by other tools."""
    logger.info(f"Saving schema to: {output_path}")
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)
        f.write("\n")
