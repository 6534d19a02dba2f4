#!/usr/bin/env python3
"""
Introspect a PostgreSQL database into a typed schema model.

Usage:
    pgintrospect [--config pgintrospect.yaml] [--json schema.json] [--verbose]
"""

from __future__ import annotations

import argparse
import logging

from .config import DEFAULT_CONFIG_FILE, load_config
from .databases import get_catalog, get_engine
from .env import load_env
from .errors import IntrospectionError
from .introspect import introspect
from .output import write_json

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Introspect a database schema for code generation")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Read configuration from this file")
    parser.add_argument("--json", dest="json_output", default=None,
                        help="Write the schema as JSON to this path (overrides json_output)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    load_env()
    engine = None
    try:
        config = load_config(args.config)
        engine = get_engine(config.database_url())
        schema = introspect(get_catalog(engine), config)
        output_path = args.json_output or config.json_output
        if output_path:
            write_json(schema, output_path)
    except IntrospectionError as e:
        logger.error(f"{e}")
        return 1
    finally:
        if engine is not None:
            engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
