# app/database_init.py
import logging

from sqlalchemy_utils import database_exists, create_database

logger = logging.getLogger(__name__)


def ensure_database(database_url: str):
    if not database_exists(database_url):
        create_database(database_url)
        logger.info("Database created")
    else:
        logger.info("Database already exists")
