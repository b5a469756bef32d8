"""
Seed the app_settings rows the auth flow reads. Existing keys are left untouched. Run:
  python -m app.scripts.seed_settings
"""
import logging
import secrets
import sys

from app.core.database import SessionLocal
from app.models import AppSetting

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


def default_settings() -> list[dict[str, str]]:
    """Rows to seed. Secrets are generated per install, never hardcoded."""
    return [
        {
            "key": "JWT_SECRET",
            "value": secrets.token_urlsafe(48),
            "description": "JWT access token secret key",
        },
        {
            "key": "JWT_REFRESH_SECRET",
            "value": secrets.token_urlsafe(48),
            "description": "JWT refresh token secret key",
        },
        {
            "key": "MAX_LOGIN_SESSIONS",
            "value": "2",
            "description": "Maximum number of concurrent login sessions allowed per user",
        },
        {
            "key": "ACCESS_TOKEN_EXPIRY",
            "value": "1h",
            "description": "Access token lifetime (<integer><s|m|h|d>)",
        },
        {
            "key": "REFRESH_TOKEN_EXPIRY",
            "value": "7d",
            "description": "Refresh token lifetime (<integer><s|m|h|d>)",
        },
    ]


def seed(db) -> int:
    """Insert missing rows. Returns how many were created."""
    created = 0
    for row in default_settings():
        if db.query(AppSetting).filter(AppSetting.key == row["key"]).first() is not None:
            logger.info("Setting already exists: %s", row["key"])
            continue
        db.add(AppSetting(is_active=True, **row))
        created += 1
        logger.info("Created setting: %s", row["key"])
    db.commit()
    return created


def main() -> int:
    db = SessionLocal()
    try:
        created = seed(db)
        logger.info("Settings seeding completed: created=%s", created)
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Settings seeding failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
