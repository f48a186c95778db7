"""Bring the forum schema up to the latest Alembic revision.

Usage:
    python -m forum_stage.scripts.migrate
"""
from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from forum_stage.core.settings import settings

logger = logging.getLogger(__name__)

# src/forum_stage/scripts -> repository root
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def alembic_config() -> Config:
    """Alembic config pointed at the repository's migrations and the active database."""
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    return cfg


def run_upgrade_head() -> None:
    """Upgrade the configured database to head."""
    logger.info("Upgrading %s to head", settings.database_url_sync)
    command.upgrade(alembic_config(), "head")


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    run_upgrade_head()
