"""CLI entry point for the LinkedIn job alert processor."""

import argparse
import asyncio
import json
import sys
from collections.abc import Callable
from pathlib import Path

from src.core.config import Settings
from src.core.log import setup_logging
from src.core.secrets import EnvSecretStore
from src.pipeline.orchestrator import process_job_alerts
from src.pipeline.runtime import Runtime, build_google_runtime
from src.platforms.linkedin.parser import LinkedInEmailParser

_ENV_SECRETS_HELP = (
    "Read OAuth and API-key secrets from LINKEDIN_JOB_ALERT_* environment variables "
    "instead of Google Secret Manager"
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="LinkedIn job alerts - parse alert emails into a tracking spreadsheet",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- run subcommand (default) ---
    run_parser = subparsers.add_parser("run", help="Process unread alert emails once")
    run_parser.add_argument(
        "--config",
        help="Optional settings YAML applied beneath the environment variables",
    )
    run_parser.add_argument("--env-secrets", action="store_true", help=_ENV_SECRETS_HELP)
    run_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- serve subcommand ---
    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP trigger with uvicorn")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port (default: 8080)")
    serve_parser.add_argument("--env-secrets", action="store_true", help=_ENV_SECRETS_HELP)
    serve_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- parse-email subcommand ---
    parse_parser = subparsers.add_parser(
        "parse-email",
        help="Extract job records from a saved alert email (HTML) and print them as JSON",
    )
    parse_parser.add_argument("--file", required=True, help="Path to the HTML email body")
    parse_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args(argv)

    # Default to run when no subcommand given
    if args.command is None:
        args.command = "run"
        args.config = None
        args.env_secrets = False
        args.verbose = False

    return args


def runtime_factory(args: argparse.Namespace) -> Callable[[Settings], Runtime]:
    """Google runtime, with secrets from the environment when asked."""
    if args.env_secrets:
        secrets = EnvSecretStore()
        return lambda settings: build_google_runtime(settings, secrets)
    return build_google_runtime


def cmd_run(args: argparse.Namespace) -> int:
    """Handle run subcommand. Returns the process exit code."""
    summary = asyncio.run(
        process_job_alerts(
            lambda: Settings.from_env(config_path=args.config),
            runtime_factory(args),
        )
    )
    print(json.dumps(summary.to_payload(), indent=2))
    return 0 if summary.success else 1


def cmd_serve(args: argparse.Namespace) -> None:
    """Handle serve subcommand."""
    import uvicorn

    from src.api.app import create_app

    uvicorn.run(
        create_app(runtime_factory=runtime_factory(args)),
        host=args.host,
        port=args.port,
        log_config=None,
    )


def cmd_parse_email(args: argparse.Namespace) -> None:
    """Handle parse-email subcommand."""
    path = Path(args.file)
    if not path.exists():
        msg = f"Email file not found: {path}"
        raise FileNotFoundError(msg)

    records = LinkedInEmailParser().parse_email(path.read_text(encoding="utf-8"))
    print(json.dumps([r.model_dump() for r in records], indent=2))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "parse-email":
        try:
            cmd_parse_email(args)
        except (FileNotFoundError, UnicodeDecodeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        sys.exit(cmd_run(args))


if __name__ == "__main__":
    main()
