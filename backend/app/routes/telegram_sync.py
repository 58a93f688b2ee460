import json
import logging
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import (
    ConfigurationMissing,
    InitDataError,
    MalformedIdentity,
    MalformedPayload,
    NotAuthenticated,
)
from app.core.init_data import validate_init_data
from app.deps import get_db, get_settings
from app.schemas.user import TelegramUserRead
from app.services.user_sync import upsert_telegram_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telegram", tags=["Telegram"])

INIT_DATA_KEYS = ("initData", "init_data")

STATUS_BY_ERROR = {
    ConfigurationMissing: 500,
    MalformedPayload: 400,
    NotAuthenticated: 401,
    MalformedIdentity: 400,
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


def _pick(source) -> str | None:
    for key in INIT_DATA_KEYS:
        value = source.get(key)
        if value is not None:
            return value
    return None


async def extract_init_data(request: Request) -> str | None:
    """Find initData in the query string (GET) or a JSON/form body (POST)."""
    if request.method == "GET":
        return _pick(request.query_params)

    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        return _pick(body) if isinstance(body, dict) else None

    if "application/x-www-form-urlencoded" in content_type:
        try:
            raw = (await request.body()).decode("utf-8")
            form = dict(parse_qsl(raw, keep_blank_values=True, errors="strict"))
        except UnicodeDecodeError:
            raise MalformedPayload("form body is not valid UTF-8") from None
        return _pick(form)

    return None


async def sync_telegram_user(request: Request, settings: Settings, db: Session) -> JSONResponse:
    try:
        bot_token = settings.require_bot_token()
    except ConfigurationMissing as e:
        logger.error("Telegram sync called without a bot token configured")
        return _error(500, str(e))

    try:
        init_data = await extract_init_data(request)
    except MalformedPayload as e:
        logger.warning("Rejected request body: %s", type(e).__name__)
        return _error(400, str(e))
    if not init_data:
        return _error(400, "Missing initData in request (body or query).")

    try:
        user = validate_init_data(init_data, bot_token)
    except InitDataError as e:
        logger.warning("Rejected initData: %s", type(e).__name__)
        return _error(STATUS_BY_ERROR.get(type(e), 400), str(e))

    try:
        row = await run_in_threadpool(upsert_telegram_user, db, user)
    except SQLAlchemyError:
        return _error(500, "Failed to store Telegram user.")

    return JSONResponse({
        "ok": True,
        "user": TelegramUserRead.model_validate(row).model_dump(mode="json"),
    })


@router.get("/sync")
async def sync_get(request: Request, settings: Settings = Depends(get_settings), db: Session = Depends(get_db)):
    return await sync_telegram_user(request, settings, db)


@router.post("/sync")
async def sync_post(request: Request, settings: Settings = Depends(get_settings), db: Session = Depends(get_db)):
    return await sync_telegram_user(request, settings, db)
