from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from gympulse.core.config import get_settings
from gympulse.core.logging_config import get_logger

logger = get_logger("auth.jwt")

ALGORITHM = "HS256"


def get_cookie_secure_setting() -> bool:
    """Return secure cookie setting based on environment"""
    return get_settings().is_production


def get_cookie_samesite_setting() -> str:
    """Return samesite cookie setting based on environment"""
    return "strict" if get_settings().is_production else "lax"


def get_refresh_cookie_max_age_seconds() -> int:
    return get_settings().refresh_token_expire_days * 24 * 60 * 60


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    logger.debug("Access token expires at: %s", expire)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key_access_token, algorithm=ALGORITHM)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.refresh_token_expire_days)
    )
    logger.debug("Refresh token expires at: %s", expire)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.secret_key_refresh_token, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, get_settings().secret_key_access_token, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("Error verifying access token: %s", e)
        return None


def verify_refresh_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, get_settings().secret_key_refresh_token, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("Error verifying refresh token: %s", e)
        return None
