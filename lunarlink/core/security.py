import base64
import binascii
import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from lunarlink.core.config import settings
from lunarlink.schemas.auth import Role, SessionInfo

logger = logging.getLogger(__name__)

MONTHS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]

# Bearer scheme for session token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_root_password() -> Optional[str]:
    """
    Decode the admin password from its base64 form in the settings.

    Returns:
        Optional[str]: The admin password, or None if ADMIN_KEY is not valid base64
    """
    try:
        return base64.b64decode(settings.admin_key, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.error("ADMIN_KEY is not valid base64, admin login disabled")
        return None


def get_today_password(today: Optional[date] = None) -> str:
    """
    User password for a calendar day: ``ddmmmyyyy`` in lowercase, e.g. 16feb2026.

    Rotates at local midnight.
    """
    today = today or date.today()
    return f"{today.day:02d}{MONTHS[today.month - 1]}{today.year}"


def validate_login(password: str, today: Optional[date] = None) -> Optional[Role]:
    """
    Map a submitted password to a role.

    The admin password is compared exactly; the daily user password is
    compared case-insensitively after trimming.

    Returns:
        Optional[Role]: The granted role, or None if the password matches neither
    """
    if not password:
        return None

    root_password = get_root_password()
    if root_password and password == root_password:
        return Role.ADMIN

    if password.strip().lower() == get_today_password(today):
        return Role.USER

    return None


def create_session_token(role: Role, now: Optional[datetime] = None) -> str:
    """
    Create a signed session token for a role.

    The token carries the role, a random session id keying the per-session
    issuance state, and absolute issue/expiry times.

    Args:
        role (Role): Role granted at login
        now (datetime, optional): Issue time, defaults to the current UTC time

    Returns:
        str: JWT token string
    """
    issued_at = now or datetime.utcnow()
    expires_at = issued_at + timedelta(minutes=settings.session_timeout_minutes)
    to_encode = {
        "role": role.value,
        "sid": uuid.uuid4().hex,
        "iat": int((issued_at - datetime(1970, 1, 1)).total_seconds()),
        "exp": int((expires_at - datetime(1970, 1, 1)).total_seconds()),
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> SessionInfo:
    """
    Validate a session token and return the session it describes.

    Raises:
        JWTError: If the token is malformed, tampered with or expired
    """
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    return SessionInfo(
        role=Role(payload["role"]),
        session_id=payload["sid"],
        issued_at=datetime.utcfromtimestamp(payload["iat"]),
        expires_at=datetime.utcfromtimestamp(payload["exp"]),
    )


def get_current_session(token: str = Depends(oauth2_scheme)) -> SessionInfo:
    """
    Validate the bearer token of a request.

    Raises:
        HTTPException: If the token is missing, invalid or expired (status_code=401)
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Session expired or invalid, please log in again",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        return decode_session_token(token)
    except (JWTError, KeyError, ValueError):
        raise credentials_exception
