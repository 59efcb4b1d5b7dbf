"""
Main entry point for the ShredMate API client.

This module wires the client stack together by explicit constructor injection
and provides a command-line interface for signing in and querying the backend.
"""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional

from shredmate_shared.exceptions import ClientError, ConfigurationError, ShredMateError, handle_exception
from shredmate_shared.interfaces import ITokenStore
from shredmate_shared.json_coding import to_wire
from shredmate_shared.logging_config import (
    AuditLogger, LogFormat, LogLevel, log_structured_error, setup_logging
)
from shredmate_client.api_client import AuthenticatingHTTPClient
from shredmate_client.auth.token_provider import DefaultTokenProvider
from shredmate_client.auth.token_storage import InMemoryTokenStore, SecureTokenStore
from shredmate_client.config import ClientConfiguration
from shredmate_client.http_client import APIClient
from shredmate_client.services.auth_service import AuthService
from shredmate_client.services.places_service import PlacesService
from shredmate_client.services.rider_service import RiderService
from shredmate_client.services.sports_service import SportsService
from shredmate_client.transport import AiohttpTransport

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_AUTH_FAILED = 2
EXIT_CONFIG_ERROR = 3
EXIT_CANCELLED = 130


@dataclass
class ClientStack:
    """All collaborators of one client session."""
    config: ClientConfiguration
    token_store: ITokenStore
    transport: AiohttpTransport
    api_client: AuthenticatingHTTPClient
    auth_service: AuthService
    rider_service: RiderService
    places_service: PlacesService
    sports_service: SportsService

    async def close(self) -> None:
        await self.api_client.close()


def create_token_store(config: ClientConfiguration) -> ITokenStore:
    backend = config.get_token_backend()
    if backend == 'memory':
        return InMemoryTokenStore()
    return SecureTokenStore(
        service_name=config.get_token_service(),
        backend=backend,
        storage_dir=config.get_token_storage_dir()
    )


def build_client_stack(config: ClientConfiguration, token_store: Optional[ITokenStore] = None) -> ClientStack:
    """
    Compose the client stack from configuration.

    The refresh call goes through a plain APIClient sharing the same
    transport, so it is never routed through the authenticating client.
    """
    token_store = token_store or create_token_store(config)
    transport = AiohttpTransport(timeout=config.get_timeout(), user_agent=config.get_user_agent())
    base_url = config.get_base_url()
    audit_logger = AuditLogger()

    refresh_client = APIClient(base_url, transport)
    token_provider = DefaultTokenProvider(token_store, refresh_client)
    api_client = AuthenticatingHTTPClient(
        base_url,
        token_provider,
        transport,
        audit_logger=audit_logger
    )
    auth_service = AuthService(api_client, token_store, token_provider, audit_logger=audit_logger)
    api_client.set_session_invalidation_handler(auth_service.handle_session_invalidated)

    return ClientStack(
        config=config,
        token_store=token_store,
        transport=transport,
        api_client=api_client,
        auth_service=auth_service,
        rider_service=RiderService(api_client),
        places_service=PlacesService(api_client),
        sports_service=SportsService(api_client)
    )


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="ShredMate API client",
        epilog="""
Examples:
  %(prog)s login --email rider@example.com
  %(prog)s me --json
  %(prog)s places --sport kitesurfing
  %(prog)s logout
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    config_group = parser.add_argument_group('Configuration')
    config_group.add_argument("--config", type=str, metavar="FILE",
                              help="Configuration file path")
    config_group.add_argument("--base-url", type=str, metavar="URL",
                              help="Backend base URL (overrides config)")

    output_group = parser.add_argument_group('Output')
    output_group.add_argument("--json", action="store_true",
                              help="Output results in JSON format")
    output_group.add_argument("--verbose", "-v", action="store_true",
                              help="Enable verbose output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Sign in and store the session")
    login_parser.add_argument("--email", type=str, required=True)
    login_parser.add_argument("--password", type=str,
                              help="Password (prompted for when omitted)")

    subparsers.add_parser("logout", help="End the session and clear stored credentials")
    subparsers.add_parser("me", help="Show the signed-in user")
    subparsers.add_parser("rider", help="Show the signed-in rider's profile")

    places_parser = subparsers.add_parser("places", help="List places for a sport")
    places_parser.add_argument("--sport", type=str, required=True, metavar="SLUG")

    subparsers.add_parser("sports", help="List available sports")

    return parser.parse_args(argv)


def load_configuration(args) -> ClientConfiguration:
    overrides = {}
    if args.base_url:
        overrides['server.base_url'] = args.base_url
    return ClientConfiguration(config_file=args.config, overrides=overrides)


def configure_logging(args, config: ClientConfiguration) -> None:
    """Configure logging based on command line arguments and configuration."""
    if args.verbose:
        log_level = LogLevel.DEBUG
    elif args.json:
        # Keep stdout clean for JSON output
        log_level = LogLevel.ERROR
    else:
        log_level = LogLevel(config.get_log_level())

    setup_logging(
        log_level=log_level,
        log_format=LogFormat(config.get_log_format()),
        log_file=config.get_log_file(),
        max_file_size=config.get_config('logging.max_size', 10485760),
        backup_count=config.get_config('logging.backup_count', 3),
        audit_file=config.get_audit_log_file()
    )


def _output(args, value: Any, text: str) -> None:
    if args.json:
        print(json.dumps(to_wire(value), indent=2))
    else:
        print(text)


async def run_command(args, stack: ClientStack) -> int:
    """
    Execute one CLI command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args.command == "login":
        password = args.password or getpass.getpass("Password: ")
        response = await stack.auth_service.login(args.email, password)
        _output(args, response.user, f"Signed in as {response.user.email}")

    elif args.command == "logout":
        await stack.auth_service.logout()
        _output(args, {'logged_out': True}, "Signed out")

    elif args.command == "me":
        user = await stack.auth_service.fetch_current_user()
        _output(args, user, f"{user.name or user.email} ({user.id})")

    elif args.command == "rider":
        rider = await stack.rider_service.fetch_my_rider()
        kind = rider.type.display_name if rider.type else "-"
        _output(args, rider, f"{rider.display_name or rider.id} [{kind}]")

    elif args.command == "places":
        places = await stack.places_service.fetch_places(args.sport)
        _output(args, places, "\n".join(f"{place.id}  {place.name}" for place in places) or "No places found")

    elif args.command == "sports":
        sports = await stack.sports_service.fetch_all_sports()
        _output(args, sports, "\n".join(f"{sport.id}  {sport.name}" for sport in sports) or "No sports found")

    return EXIT_SUCCESS


async def async_main(args, config: ClientConfiguration) -> int:
    stack = build_client_stack(config)
    try:
        return await run_command(args, stack)
    except ClientError as e:
        log_structured_error(logger, e)
        print(f"Error: {e.user_message}", file=sys.stderr)
        return EXIT_AUTH_FAILED if e.is_auth_failure else EXIT_FAILED
    except ShredMateError as e:
        log_structured_error(logger, e)
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        await stack.close()


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        config = load_configuration(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(args, config)

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_CANCELLED
    except Exception as e:
        error = handle_exception(e, context={'command': args.command})
        log_structured_error(logger, error)
        print(f"Unexpected error: {error.message}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
