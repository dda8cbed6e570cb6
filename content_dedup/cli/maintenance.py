"""
Dedup cache maintenance.

Usage:
    python -m content_dedup.cli.maintenance cleanup --config config/config.yaml
    python -m content_dedup.cli.maintenance stats --config config/config.yaml

cleanup: delete dedup keys left without a TTL and prune stale index entries
stats:   print index sizes and connection status
"""

import asyncio
import json
import logging
import sys

from ..config_loader import Config, load_config
from ..deduplication import ContentDeduplicator

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def configure_logging(config: Config):
    """Apply LOG_LEVEL / LOG_FILE from config to the root logger."""
    root = logging.getLogger()
    root.setLevel(config.LOG_LEVEL.upper())
    if config.LOG_FILE:
        handler = logging.FileHandler(config.LOG_FILE)
        handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(name)s - %(message)s'))
        root.addHandler(handler)


async def run_command(command: str, config: Config) -> dict:
    deduplicator = ContentDeduplicator.from_config(config)
    try:
        if command == "cleanup":
            return await deduplicator.cleanup()
        return await deduplicator.get_stats()
    finally:
        await deduplicator.close()


def main():
    """Run one maintenance command against the configured cache."""
    import argparse

    parser = argparse.ArgumentParser(description="Dedup cache maintenance")
    parser.add_argument("command", choices=["cleanup", "stats"])
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (defaults if omitted)"
    )

    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config)

    logger.info("=" * 60)
    logger.info(f"Dedup cache maintenance: {args.command}")
    logger.info("=" * 60)

    result = asyncio.run(run_command(args.command, config))
    print(json.dumps(result, indent=2, default=str))

    if "error" in result or result.get("cache") == "unavailable":
        sys.exit(1)


if __name__ == "__main__":
    main()
