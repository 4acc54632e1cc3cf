from fastapi import APIRouter, Depends, HTTPException
import logging

from lunarlink.core.security import create_session_token, decode_session_token, get_current_session, validate_login
from lunarlink.schemas.auth import LoginRequest, SessionInfo, Token
from lunarlink.schemas.admin import MessageOut
from lunarlink.services.state_store import get_state_store

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=Token)
def login(body: LoginRequest):
    """
    Exchange a shared password for a session token.

    The admin password grants the ``admin`` role; today's date password
    (``ddmmmyyyy``, e.g. 16feb2026) grants the ``user`` role. The token
    expires after the configured session timeout.

    Args:
        body (LoginRequest): Submitted password

    Returns:
        Token: Authentication response containing:
            - access_token: session token for API access
            - token_type: Token type (always "bearer")
            - role: granted role
            - expires_at: absolute expiry time (UTC)

    Raises:
        HTTPException: If the password matches neither role (status_code=401)
    """
    if not body.password:
        raise HTTPException(status_code=400, detail="Please enter a password")

    role = validate_login(body.password)
    if role is None:
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid password. Please try again.")

    token = create_session_token(role)
    session = decode_session_token(token)
    logger.info(f"Successful {role.value} login, session {session.session_id}")
    return {
        "access_token": token,
        "token_type": "bearer",
        "role": role,
        "expires_at": session.expires_at,
    }


@router.get("/session", response_model=SessionInfo)
def get_session(session: SessionInfo = Depends(get_current_session)):
    return session


@router.post("/logout", response_model=MessageOut)
def logout(session: SessionInfo = Depends(get_current_session), store=Depends(get_state_store)):
    # Tokens are stateless; only the issuance state tied to the session is dropped
    store.delete(session.session_id)
    logger.info(f"Logged out session {session.session_id}")
    return {"message": "Logged out"}
