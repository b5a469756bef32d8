"""
Cron entrypoint for purging dead login sessions:

  python -m app.retention

Exit status is non-zero when the purge fails, so cron mail / monitoring picks it up.
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.retention import purge_cutoff, run_retention

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    logger.info(
        "Session purge starting: retention_hours=%s, cutoff=%s",
        settings.RETENTION_HOURS,
        purge_cutoff(settings).isoformat(),
    )
    db = SessionLocal()
    try:
        deleted = run_retention(db, settings)
    except Exception:
        db.rollback()
        logger.exception("Session purge failed")
        return 1
    finally:
        db.close()
    logger.info("Session purge finished: sessions_deleted=%s", deleted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
