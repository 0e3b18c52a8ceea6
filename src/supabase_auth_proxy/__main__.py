"""CLI entry point: python -m supabase_auth_proxy."""

from __future__ import annotations

import argparse
import logging
import sys

from supabase_auth_proxy import serve
from supabase_auth_proxy.config import ProxyConfig
from supabase_auth_proxy.errors import ConfigError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the supabase-auth-proxy CLI.

    Every option falls back to its environment variable when omitted.
    """
    parser = argparse.ArgumentParser(
        prog="python -m supabase_auth_proxy",
        description="Authenticate requests with Supabase and proxy them to an internal API.",
    )

    # Upstreams
    parser.add_argument(
        "--supabase-url",
        default=None,
        help="Supabase project URL (env: SUPABASE_URL).",
    )
    parser.add_argument(
        "--service-role-key",
        default=None,
        help="Supabase service role key (env: SUPABASE_SERVICE_ROLE_KEY).",
    )
    parser.add_argument(
        "--internal-api-url",
        default=None,
        help="Base URL of the protected internal API (env: INTERNAL_API_URL).",
    )
    parser.add_argument(
        "--internal-api-key",
        default=None,
        help="Optional shared secret sent as X-Internal-Key (env: INTERNAL_API_KEY).",
    )

    # Listener
    parser.add_argument(
        "--host",
        default=None,
        help="Listen address (env: HOST, default: 0.0.0.0).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listen port (env: PORT, default: 3000, range: 1-65535).",
    )

    # Timeouts
    parser.add_argument(
        "--auth-timeout",
        type=float,
        default=None,
        help="Seconds allowed for the Supabase user lookup (env: AUTH_TIMEOUT, default: 10).",
    )
    parser.add_argument(
        "--upstream-timeout",
        type=float,
        default=None,
        help="Seconds allowed for the internal API call (env: UPSTREAM_TIMEOUT, default: 30).",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging level (default: INFO).",
    )

    return parser


def main() -> None:
    """CLI entry point for launching the proxy.

    Exit codes:
        0 - Normal shutdown
        1 - Missing or invalid configuration
        2 - Startup failure (argparse error, serve() exception)
    """
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = ProxyConfig.from_env(
            supabase_url=args.supabase_url,
            supabase_service_role_key=args.service_role_key,
            internal_api_url=args.internal_api_url,
            internal_api_key=args.internal_api_key,
            host=args.host,
            port=args.port,
            auth_timeout=args.auth_timeout,
            upstream_timeout=args.upstream_timeout,
        )
    except ConfigError as exc:
        print("Error: invalid configuration:", file=sys.stderr)
        for problem in exc.problems:
            print(f"   - {problem}", file=sys.stderr)
        sys.exit(1)

    summary = config.describe()
    logger.info("Configuration:")
    logger.info("   Supabase URL: %s", summary["supabase_url"])
    logger.info("   Internal API: %s", summary["internal_api_url"])
    logger.info("   Internal API Key: %s", summary["internal_api_key"])

    try:
        serve(config, log_level=args.log_level)
    except Exception:
        logger.exception("Server startup failed.")
        sys.exit(2)


if __name__ == "__main__":
    main()
