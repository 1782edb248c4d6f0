"""Module entry point. Allows ``python -m moviebonus``."""

import argparse
import asyncio
import logging
import sys

from moviebonus.settings import Settings, load_settings


def run_sync_command(settings: Settings) -> int:
    """Run the pipeline once and print the JSON report.

    Returns:
        Exit code, 0 when the run succeeded.
    """
    from moviebonus.etl.pipeline import run_sync
    from moviebonus.etl.utils import setup_logger

    for name in ("etl", "moviebonus"):
        setup_logger(name, settings.logging.level, settings.logging.log_dir)
    logging.getLogger("moviebonus").info(f"Settings: {settings.masked()}")
    report = asyncio.run(run_sync(settings))
    print(report.model_dump_json(by_alias=True, indent=2))
    return 0 if report.success else 1


def run_api(settings: Settings) -> int:
    """Serve the trigger API with uvicorn."""
    import uvicorn

    print("🌐 Starting FastAPI...")
    uvicorn.run(
        "moviebonus.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )
    return 0


def run_init_db(settings: Settings) -> int:
    """Create missing tables."""
    from moviebonus.database import DatabaseConnection

    if not settings.database.is_configured:
        print("❌ No database configured (DATABASE_URL or POSTGRES_*)")
        return 1

    db = DatabaseConnection.from_settings(settings.database)
    try:
        if not db.check_connection():
            print("❌ Database unreachable")
            return 1
        db.create_tables()
    finally:
        db.dispose()
    return 0


def main() -> None:
    """Main CLI."""
    parser = argparse.ArgumentParser(
        description="Movie bonus sync - cinema bonus scraping and merge pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m moviebonus sync       # Run the pipeline once
  python -m moviebonus api        # Serve the trigger API
  python -m moviebonus init-db    # Create tables
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")
    subparsers.add_parser("sync", help="Run the pipeline once")
    subparsers.add_parser("api", help="Serve the trigger API")
    subparsers.add_parser("init-db", help="Create database tables")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "sync": run_sync_command,
        "api": run_api,
        "init-db": run_init_db,
    }

    try:
        settings = load_settings()
        sys.exit(commands[args.command](settings))
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        sys.exit(130)
    except Exception as e:
        print(f"\n❌ ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
