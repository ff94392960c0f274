"""Entry point for the parkrun wrapped service.

Usage:
    python server.py serve [--host 0.0.0.0] [--port 3001] [--fetcher direct]
    python server.py fetch 8604987 [--wrapped]

`serve` runs the HTTP API; `fetch` runs one retrieval through the same
cache + fetch pipeline and prints the JSON.
"""
from __future__ import annotations

import json
import os
import sys

from parkrun_wrapped.api import create_app
from parkrun_wrapped.service import RetrievalError, build_service
from parkrun_wrapped.utils.config import config
from parkrun_wrapped.utils.logging_utils import get_logger, configure_root_logging


def _serve(args) -> int:
    logger = get_logger("server")
    service = build_service(fetcher_name=args.fetcher)
    app = create_app(service)
    logger.info(
        "Serving on %s:%d (fetcher=%s, target year=%s, data=%s)",
        args.host,
        args.port,
        service.fetcher.name,
        config.TARGET_YEAR,
        config.DATA_DIR,
    )
    try:
        app.run(host=args.host, port=args.port, threaded=True)
    finally:
        service.fetcher.close()
    return 0


def _fetch(args) -> int:
    service = build_service(fetcher_name=args.fetcher)
    try:
        if args.wrapped:
            result, analytics = service.get_runner_analytics(args.runner_id)
            payload = {
                "runnerInfo": result.runner_info.to_dict(),
                "analytics": analytics.to_dict() if analytics else None,
            }
        else:
            payload = service.get_runner_data(args.runner_id).to_dict()
    except RetrievalError as exc:
        print(f"\n{exc}", file=sys.stderr)
        return 1
    finally:
        service.fetcher.close()
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="parkrun wrapped results service")
    parser.add_argument("--config", dest="config_file", default=None, help="JSON overrides file in the config directory")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=int(os.environ.get("PORT", "3001")))
    serve.add_argument("--fetcher", choices=["direct", "headless", "external"], default=None, help="Fetch strategy")
    serve.set_defaults(handler=_serve)

    fetch = sub.add_parser("fetch", help="Retrieve one runner and print the JSON")
    fetch.add_argument("runner_id")
    fetch.add_argument("--fetcher", choices=["direct", "headless", "external"], default=None, help="Fetch strategy")
    fetch.add_argument("--wrapped", action="store_true", help="Print year-in-review analytics instead")
    fetch.set_defaults(handler=_fetch)

    args = parser.parse_args()
    if args.config_file:
        config.apply_overrides(config.load_custom_config(args.config_file))
    configure_root_logging()
    sys.exit(args.handler(args))


if __name__ == "__main__":  # pragma: no cover
    main()
