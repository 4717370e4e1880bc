#!/usr/bin/env python3
"""
Gestión de migraciones con Alembic.

    python migrate.py create "mensaje"   # nueva migración (autogenerate)
    python migrate.py upgrade [rev]      # aplicar hasta head o rev
    python migrate.py downgrade [rev]    # revertir a rev (por defecto -1)
    python migrate.py history
    python migrate.py current
"""
import argparse
import logging
from pathlib import Path

from alembic.config import Config
from alembic import command

from app.core.config import settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("migrate")

root_dir = Path(__file__).parent


def get_alembic_config() -> Config:
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    logger.info(f"Migration created: {message}")


def run_migrations(revision: str = "head"):
    command.upgrade(get_alembic_config(), revision)
    logger.info(f"Database upgraded to {revision}")


def rollback_migration(revision: str = "-1"):
    command.downgrade(get_alembic_config(), revision)
    logger.info(f"Database downgraded to {revision}")


def show_history():
    command.history(get_alembic_config())


def show_current():
    command.current(get_alembic_config())


def main(argv=None):
    parser = argparse.ArgumentParser(description="Database migrations")
    sub = parser.add_subparsers(dest="action", required=True)

    create = sub.add_parser("create", help="Create a new autogenerated migration")
    create.add_argument("message")
    upgrade = sub.add_parser("upgrade", help="Apply migrations")
    upgrade.add_argument("revision", nargs="?", default="head")
    downgrade = sub.add_parser("downgrade", help="Revert migrations")
    downgrade.add_argument("revision", nargs="?", default="-1")
    sub.add_parser("history", help="Show migration history")
    sub.add_parser("current", help="Show current revision")

    args = parser.parse_args(argv)
    if args.action == "create":
        create_migration(args.message)
    elif args.action == "upgrade":
        run_migrations(args.revision)
    elif args.action == "downgrade":
        rollback_migration(args.revision)
    elif args.action == "history":
        show_history()
    elif args.action == "current":
        show_current()


if __name__ == "__main__":
    main()
