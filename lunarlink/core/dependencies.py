from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from lunarlink.core.config import settings
from lunarlink.core.security import get_current_session
from lunarlink.db.session import get_db
from lunarlink.schemas.auth import Role, SessionInfo
from lunarlink.services.code_repository import CodeRepository
from lunarlink.services.issuance import IssuanceMachine


def admin_required(session: SessionInfo = Depends(get_current_session)) -> SessionInfo:
    """
    Dependency function to ensure the current session has admin privileges.

    Args:
        session (SessionInfo): The validated session (from get_current_session dependency)

    Returns:
        SessionInfo: The admin session

    Raises:
        HTTPException: If the session is not an admin session (status_code=403)
    """
    if session.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required."
        )
    return session


def user_required(session: SessionInfo = Depends(get_current_session)) -> SessionInfo:
    """Code issuance is open to both user and admin sessions."""
    if session.role not in (Role.USER, Role.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User access required."
        )
    return session


def get_repository(db: Session = Depends(get_db)) -> CodeRepository:
    return CodeRepository(db)


def get_issuance_machine(repository: CodeRepository = Depends(get_repository)) -> IssuanceMachine:
    return IssuanceMachine(repository, max_retries=settings.max_retries)
