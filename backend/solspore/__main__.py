"""SolSpore CLI entry point."""

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from solspore import __version__
from solspore.config import get_settings
from solspore.container import Container
from solspore.exceptions import SolSporeError
from solspore.models import UserRole
from solspore.observability import initialize_logfire
from solspore.services.user_service import validate_email, validate_password, validate_username

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    from solspore.api import create_app

    settings = get_settings()
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    app = create_app(settings)
    initialize_logfire(settings, app)

    print(f"\n=== SolSpore API {__version__} ===\n")
    print(f"Environment: {settings.environment}")
    print(f"Listening on {settings.host}:{args.port or settings.port}\n")

    uvicorn.run(
        app,
        host=settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_settle(args: argparse.Namespace) -> int:
    """Run one settlement sweep and print the summary."""
    from solspore.scheduler import run_sweep

    settings = get_settings()
    initialize_logfire(settings)

    print("\n=== Settlement Sweep ===\n")
    summary = asyncio.run(run_sweep(settings))

    if summary.database_unreachable:
        print("❌ Database unreachable - nothing settled\n")
        return 1

    print("✓ Settlement sweep complete\n")
    print(f"Markets processed: {summary.markets_processed}")
    print(f"Markets settled: {summary.markets_succeeded}")
    print(f"Markets failed: {summary.markets_failed}")
    print(f"Bets settled: {summary.bets_settled}")
    print(f"Bets failed: {summary.bets_failed}")
    print(f"Payout trigger failures: {summary.payout_trigger_failures}\n")

    for result in summary.results:
        if result.success:
            print(f"  • {result.market_id}: {result.outcome.value if result.outcome else '-'} {result.reference}")
        else:
            print(f"  • {result.market_id}: FAILED ({result.error})")
    if summary.results:
        print()

    # Partial failure is reported, not an error exit
    return 0


def cmd_scheduler(args: argparse.Namespace) -> int:
    """Start the periodic settlement sweep."""
    from solspore.scheduler import start_scheduler

    try:
        settings = get_settings()
        initialize_logfire(settings)

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        print("\n=== SolSpore Settlement Scheduler ===\n")
        print(f"Version: {__version__}")
        print(f"Sweep interval: {settings.settlement.sweep_interval_minutes} min")
        print(f"Payout mode: {settings.settlement.payout_mode}\n")

        start_scheduler(settings)
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0


def _prompt(label: str, validate: Callable[[str], str], value: Optional[str], secret: bool = False) -> str:
    """Validate a provided value, or ask until a valid one is entered."""
    while True:
        if value is None:
            value = getpass.getpass(f"{label}: ") if secret else input(f"{label}: ")
        try:
            return validate(value)
        except SolSporeError as e:
            print(f"  ❌ {e.message}")
            if not sys.stdin.isatty():
                raise
            value = None


def cmd_create_admin(args: argparse.Namespace) -> int:
    """Create an admin account: username, then email, then password."""
    settings = get_settings()

    try:
        print("\n=== Create Admin User ===\n")
        username = _prompt("Username", validate_username, args.username)
        email = _prompt("Email", validate_email, args.email)
        password = _prompt("Password", validate_password, args.password, secret=True)
    except SolSporeError:
        return 1

    async def _create():
        async with Container(settings) as container:
            return await container.users.create_user(username, email, password, role=UserRole.ADMIN)

    try:
        user = asyncio.run(_create())
    except SolSporeError as e:
        print(f"\n❌ {e.message}\n")
        return 1

    print(f"\n✓ Admin user created: {user.username} ({user.email})\n")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== SolSpore Configuration ===\n")
        print(f"Environment: {settings.environment}")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Database:")
        print(f"  Database: {settings.mongodb_database}\n")

        print("Odds:")
        print(f"  Margin: {settings.odds.margin:.0%}")
        print(f"  Bounds: [{settings.odds.min_odds:.2f}, {settings.odds.max_odds:.2f}]")
        print(f"  Default: {settings.odds.default_odds:.2f}\n")

        print("Ledger:")
        print(f"  Stake Update Attempts: {settings.ledger.stake_update_attempts}")
        print(f"  Verify Payments: {settings.ledger.verify_payments}\n")

        print("Settlement:")
        print(f"  Max Attempts: {settings.settlement.max_attempts}")
        print(f"  Retry Delay: {settings.settlement.retry_delay_seconds}s")
        print(f"  Sweep Interval: {settings.settlement.sweep_interval_minutes} min")
        print(f"  Payout Mode: {settings.settlement.payout_mode}\n")

        print("Solana:")
        print(f"  RPC URL: {settings.solana.rpc_url}")
        print(f"  Commitment: {settings.solana.commitment}")
        print(f"  Escrow Address: {settings.solana.escrow_address or '✗ Not set'}\n")

        print("Secrets:")
        print(f"  Escrow Key: {'✓ Set' if settings.solana.escrow_secret_key else '✗ Not set'}")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1


def cmd_check_db(args: argparse.Namespace) -> int:
    """Ping MongoDB."""
    from motor.motor_asyncio import AsyncIOMotorClient

    from solspore.database import Database

    settings = get_settings()

    async def _ping() -> bool:
        client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=5000)
        database = Database(settings.mongodb_url, settings.mongodb_database, client=client)
        try:
            return await database.ping()
        finally:
            await database.close()

    info = Database(settings.mongodb_url, settings.mongodb_database).info()
    if asyncio.run(_ping()):
        print(f"\n✓ MongoDB reachable: {info['url']}/{info['database']}\n")
        return 0

    print(f"\n❌ MongoDB unreachable: {info['url']}/{info['database']}\n")
    return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="SolSpore: esports match wagering with Solana payment rails",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SolSpore {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    parser_serve.add_argument("--port", type=int, default=None, help="Override the configured port")
    parser_serve.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_serve.set_defaults(func=cmd_serve)

    parser_settle = subparsers.add_parser("settle", help="Run one settlement sweep")
    parser_settle.set_defaults(func=cmd_settle)

    parser_scheduler = subparsers.add_parser("scheduler", help="Run the periodic settlement sweep")
    parser_scheduler.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_scheduler.set_defaults(func=cmd_scheduler)

    parser_admin = subparsers.add_parser("create-admin", help="Create an admin user")
    parser_admin.add_argument("--username", default=None)
    parser_admin.add_argument("--email", default=None)
    parser_admin.add_argument("--password", default=None)
    parser_admin.set_defaults(func=cmd_create_admin)

    parser_config = subparsers.add_parser("config", help="Display merged configuration")
    parser_config.set_defaults(func=cmd_config)

    parser_check = subparsers.add_parser("check-db", help="Check MongoDB connectivity")
    parser_check.set_defaults(func=cmd_check_db)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
