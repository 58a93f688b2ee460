"""
Telegram Mini App initData verification.

Telegram signs the launch data it hands to a Web App:

    secret_key = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash       = hex(HMAC_SHA256(key=secret_key, msg=data_check_string))

where data_check_string is every received field except `hash`, sorted by
key and joined as "key=value" lines. We rebuild the same string from the
raw query string and compare in constant time.

https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

import hashlib
import hmac
import json
from functools import lru_cache
from urllib.parse import parse_qsl

from pydantic import ValidationError

from app.core.errors import ConfigurationMissing, MalformedIdentity, MalformedPayload, NotAuthenticated
from app.schemas.user import TelegramUser

WEB_APP_DATA_LABEL = b"WebAppData"
HASH_FIELD = "hash"
USER_FIELD = "user"

# Real payloads carry well under a dozen fields
MAX_FIELDS = 64


def parse_init_data(init_data: str) -> dict[str, str]:
    """
    Split a raw initData query string into decoded key/value pairs.

    Duplicate keys: the last value wins. A segment without "=" becomes a key
    with an empty value.
    """
    if not isinstance(init_data, str):
        raise MalformedPayload("initData must be a string")

    try:
        pairs = parse_qsl(
            init_data,
            keep_blank_values=True,
            errors="strict",
            max_num_fields=MAX_FIELDS,
        )
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        raise MalformedPayload(f"initData is not a valid query string: {type(e).__name__}") from None

    return dict(pairs)


def build_data_check_string(pairs: dict[str, str]) -> str:
    # Byte order, never locale collation: Telegram sorts the same way
    items = sorted(
        ((k, v) for k, v in pairs.items() if k != HASH_FIELD),
        key=lambda kv: kv[0].encode("utf-8"),
    )
    return "\n".join(f"{k}={v}" for k, v in items)


def derive_secret_key(bot_token: str | bytes) -> bytes:
    if not bot_token:
        raise ConfigurationMissing("bot token is not configured")
    if isinstance(bot_token, str):
        bot_token = bot_token.encode("utf-8")
    return _derive_secret_key(bot_token)


@lru_cache(maxsize=8)
def _derive_secret_key(bot_token: bytes) -> bytes:
    return hmac.new(WEB_APP_DATA_LABEL, bot_token, hashlib.sha256).digest()


def compute_hash(pairs: dict[str, str], bot_token: str | bytes) -> str:
    """Expected lowercase hex signature for the given fields."""
    secret_key = derive_secret_key(bot_token)
    data_check_string = build_data_check_string(pairs)
    return hmac.new(secret_key, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def hashes_match(expected: str, received: str) -> bool:
    expected_b = expected.encode("utf-8")
    received_b = received.encode("utf-8")
    if len(expected_b) != len(received_b):
        return False
    return hmac.compare_digest(expected_b, received_b)


def _check_signature(pairs: dict[str, str], bot_token: str | bytes) -> bool:
    received = pairs.get(HASH_FIELD, "")
    if not received:
        return False
    return hashes_match(compute_hash(pairs, bot_token), received)


def verify_init_data(init_data: str, bot_token: str | bytes) -> bool:
    pairs = parse_init_data(init_data)
    return _check_signature(pairs, bot_token)


def user_from_init_data(verified_pairs: dict[str, str]) -> TelegramUser:
    """
    Decode the `user` field of pairs whose signature has already been checked.
    Use validate_init_data() on anything that came straight from a client.
    """
    user_json = verified_pairs.get(USER_FIELD)
    if user_json is None:
        raise MalformedIdentity("Missing user field in initData")

    try:
        raw_user = json.loads(user_json)
    except ValueError:
        raise MalformedIdentity("user field is not valid JSON") from None

    if not isinstance(raw_user, dict):
        raise MalformedIdentity("user field is not a JSON object")

    try:
        return TelegramUser.model_validate(raw_user)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedIdentity(f"user field has invalid values: {fields}") from None


def validate_init_data(init_data: str, bot_token: str | bytes) -> TelegramUser:
    pairs = parse_init_data(init_data)

    if not pairs.get(HASH_FIELD):
        raise NotAuthenticated("initData has no hash")
    if not _check_signature(pairs, bot_token):
        raise NotAuthenticated("Invalid initData signature.")

    return user_from_init_data(pairs)
