import hmac
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings


class SignatureError(Exception):
    """Raised when a locally signed upload URL fails validation."""


def verify_event_code(supplied: str, secret: str) -> bool:
    """Compare a guest-supplied event code against the configured secret.

    Both sides are trimmed; the comparison is constant-time.
    """
    return hmac.compare_digest(
        supplied.strip().encode("utf-8"),
        secret.strip().encode("utf-8"),
    )


def create_upload_token(key: str, content_type: str, expires_in: int) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    to_encode: dict[str, Any] = {"key": key, "content_type": content_type, "exp": expire}
    return jwt.encode(
        to_encode,
        settings.local_signing_key,
        algorithm=settings.local_signing_algorithm,
    )


def verify_upload_token(token: str, key: str, content_type: str) -> None:
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.local_signing_key,
            algorithms=[settings.local_signing_algorithm],
        )
    except JWTError as exc:
        raise SignatureError("Invalid or expired upload token") from exc

    if claims.get("key") != key or claims.get("content_type") != content_type:
        raise SignatureError("Upload token does not match this object")
