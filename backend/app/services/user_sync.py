import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.telegram_user import TelegramUser as TelegramUserRow
from app.schemas.user import TelegramUser

logger = logging.getLogger(__name__)


def upsert_telegram_user(db: Session, user: TelegramUser) -> TelegramUserRow:
    """
    Insert or update the row keyed by the Telegram id and stamp updated_at.
    Raises SQLAlchemyError after rolling back if the store rejects it.
    """
    now = datetime.now(timezone.utc)

    try:
        row = db.get(TelegramUserRow, user.id)
        if row is None:
            row = TelegramUserRow(id=user.id)
            db.add(row)
            created = True
        else:
            created = False

        row.first_name = user.first_name
        row.last_name = user.last_name
        row.username = user.username
        row.photo_url = user.photo_url
        row.updated_at = now

        db.commit()
        db.refresh(row)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to upsert telegram user %s", user.id)
        raise

    logger.info("%s telegram user %s", "Registered" if created else "Updated", user.id)
    return row
