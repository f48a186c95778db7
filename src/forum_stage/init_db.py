"""Create the forum schema directly, for local SQLite development.

Deployed databases should use ``python -m forum_stage.scripts.migrate``.
"""

import logging

from forum_stage.core.settings import settings
from forum_stage.db.session import create_tables

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    create_tables()
    logger.info("Created forum tables on %s", settings.effective_database_url)
