from fastapi import Request

from app.core.config import Settings
from app.database import Database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_db(request: Request):
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
