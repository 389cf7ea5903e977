#!/usr/bin/env python3
"""CLI for the CMS web server.

Usage:
    python -m cli <command>

Commands:
    serve            Start the HTTP server
    check-templates  Parse the template tree and report errors
"""

import argparse
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def cmd_serve() -> int:
    """Start the HTTP server."""
    from main import run

    return run()


def cmd_check_templates() -> int:
    """Parse every template once, as a non-development startup would."""
    from core.assets import AssetStore
    from core.config import get_settings
    from core.errors import TemplateLoadError
    from core.templates import TemplateRegistry
    from rendering.dispatch import FALLBACK_TEMPLATE
    from rendering.functions import TemplateFunctions

    assets = AssetStore(get_settings().assets_path)
    registry = TemplateRegistry(assets, TemplateFunctions(assets).namespace())
    try:
        template_set = registry.load()
    except TemplateLoadError as e:
        logger.error(f"Template check failed: {e}")
        return 1

    logger.info(f"Loaded {len(template_set)} templates")
    if FALLBACK_TEMPLATE not in template_set:
        logger.error(f"Fallback template {FALLBACK_TEMPLATE} is missing")
        return 1
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="CMS web server CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the HTTP server")
    subparsers.add_parser(
        "check-templates",
        help="Parse the template tree and report errors",
    )

    args = parser.parse_args()

    if args.command == "serve":
        return cmd_serve()
    elif args.command == "check-templates":
        return cmd_check_templates()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
