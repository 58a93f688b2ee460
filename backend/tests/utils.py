import hashlib
import hmac
from urllib.parse import urlencode

BOT_TOKEN = "123456:test-bot-token"


def sign_fields(bot_token: str, fields: dict) -> str:
    """Sign fields the way Telegram does for a Mini App launch."""
    secret_key = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    return hmac.new(secret_key, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def make_init_data(bot_token: str, fields: dict, hash_value: str | None = None) -> str:
    if hash_value is None:
        hash_value = sign_fields(bot_token, fields)
    return urlencode(list(fields.items()) + [("hash", hash_value)])
