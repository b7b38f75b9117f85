"""
Command Line Entrypoint
=======================

Run one prerender server process::

    python -m prerender --config prerender.yml --process-num 2

Several processes started with different ``--process-num`` values listen on
adjacent ports and can sit behind one load balancer.
"""

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from prerender.config.logging import setup_logging
from prerender.config.settings import ConfigurationError, load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prerender", description="Render single-page application routes for crawlers"
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--port", type=int, help="Base port, the process number is added")
    parser.add_argument("--process-num", type=int, help="Process index for multi-process setups")
    parser.add_argument("--app-url", help="Application base URL")
    parser.add_argument("--log-level", help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(
            args.config,
            port=args.port,
            process_num=args.process_num,
            app_url=args.app_url,
            log_level=args.log_level,
        )
    except (ConfigurationError, ValidationError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(settings)

    from prerender.server import PrerenderServer

    PrerenderServer(settings).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
