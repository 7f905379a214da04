# shop_service/app/auth_utils.py
import base64
import binascii
import hashlib
import hmac
import json
import os
import time

from fastapi import HTTPException

from shop_service.app.config import TOKEN_SECRET, TOKEN_TTL_HOURS

PBKDF2_ITERATIONS = 100_000
TOKEN_HASH_LENGTH = 32


def hash_password(password: str) -> str:
    """Хэширует пароль PBKDF2-SHA256 со случайной солью: "<salt>$<hash>"."""
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяет пароль, сравнивая с хэшем."""
    try:
        salt_hex, digest_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", plain_password.encode(), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(digest.hex(), digest_hex)


def _sign(payload: str, secret: str) -> str:
    return hashlib.sha256((payload + secret).encode()).hexdigest()[:TOKEN_HASH_LENGTH]


def create_access_token(user_id: int, secret: str = TOKEN_SECRET) -> str:
    """
    Toy token: base64(JSON payload) + "." + truncated sha256(payload + secret).
    This is not a real signature scheme.
    """
    payload = json.dumps({
        "userId": user_id,
        "exp": int(time.time() * 1000) + TOKEN_TTL_HOURS * 60 * 60 * 1000,
    })
    encoded = base64.b64encode(payload.encode()).decode()
    return f"{encoded}.{_sign(payload, secret)}"


def decode_access_token(token: str, secret: str = TOKEN_SECRET) -> int:
    try:
        encoded, token_hash = token.split(".", 1)
        payload = base64.b64decode(encoded.encode(), validate=True).decode()
        data = json.loads(payload)
    except (ValueError, binascii.Error, UnicodeDecodeError):
        raise HTTPException(status_code=401, detail="Invalid token")
    if not isinstance(data, dict):
        raise HTTPException(status_code=401, detail="Invalid token")

    if not hmac.compare_digest(_sign(payload, secret), token_hash):
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("exp", 0) < int(time.time() * 1000):
        raise HTTPException(status_code=401, detail="Token has expired")

    user_id = data.get("userId")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user_id
