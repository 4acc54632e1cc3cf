"""
Code Issuance API Endpoints

Endpoints behind the user page. A session asks for a code of a speed tier,
then confirms it worked or rejects it. The in-progress state belongs to the
caller's session and is kept in the issuance state store.

Endpoints:
- GET /codes/availability - Unused codes per tier
- GET /codes/current - Current issuance state of this session
- POST /codes/request - Draw a random unused code for a tier
- POST /codes/accept - The shown code worked: archive it
- POST /codes/reject - The shown code is broken: remove it and draw another
- POST /codes/dismiss - Close the code without using it
"""

from fastapi import APIRouter, Depends, HTTPException
import logging

from lunarlink.core.config import settings
from lunarlink.core.dependencies import get_issuance_machine, get_repository, user_required
from lunarlink.db.table_client import RepositoryError
from lunarlink.schemas.auth import SessionInfo
from lunarlink.schemas.issuance import AvailabilityOut, CodeRequest, IssuanceOut
from lunarlink.services.code_repository import CodeRepository
from lunarlink.services.dashboard import DashboardService
from lunarlink.services.issuance import (
    CodeAlreadyClaimed,
    InvalidTransition,
    IssuanceMachine,
    IssuanceState,
    IssuanceStatus,
)
from lunarlink.services.state_store import get_state_store

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

UNAVAILABLE_DETAIL = "Code store unavailable, please try again."


def _issuance_out(state: IssuanceState, max_retries: int, message: str = None) -> IssuanceOut:
    reset_after = None
    if state.status == IssuanceStatus.ACCEPTED:
        reset_after = settings.accepted_display_seconds
    elif state.is_terminal:
        reset_after = settings.notice_display_seconds

    return IssuanceOut(
        status=state.status.value,
        code=state.code if state.status in (IssuanceStatus.CODE_SHOWN, IssuanceStatus.ACCEPTED) else None,
        speed=state.speed_tier,
        speed_label=state.speed_tier.label if state.speed_tier else None,
        retry_count=state.retry_count,
        retries_left=max(max_retries - state.retry_count, 0) if state.status == IssuanceStatus.CODE_SHOWN else 0,
        message=message,
        reset_after_seconds=reset_after,
    )


def _outcome_message(state: IssuanceState, after_reject: bool) -> str:
    if state.status == IssuanceStatus.ACCEPTED:
        return "Success!"
    if state.status == IssuanceStatus.RETRY_LIMIT_REACHED:
        return "Maximum retries reached. Please contact administrator."
    if state.status == IssuanceStatus.EXHAUSTED:
        if after_reject:
            return "No more codes available. Please contact administrator."
        return f"No {state.speed_tier.label} codes available. Please contact the administrator."
    if state.status == IssuanceStatus.CODE_SHOWN:
        return "Does this code work?"
    return None


@router.get("/availability", response_model=AvailabilityOut)
def get_availability(
    session: SessionInfo = Depends(user_required),
    repository: CodeRepository = Depends(get_repository),
):
    """
    Get the number of unused codes per speed tier.

    Each tier is flagged ``low`` when at or below the warning threshold and
    ``available`` when at least one code is left.
    """
    try:
        return {"tiers": DashboardService(repository).availability()}
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)


@router.get("/current", response_model=IssuanceOut)
def get_current(
    session: SessionInfo = Depends(user_required),
    store=Depends(get_state_store),
):
    state = store.load(session.session_id)
    return _issuance_out(state, settings.max_retries, _outcome_message(state, after_reject=False))


@router.post("/request", response_model=IssuanceOut)
def request_code(
    body: CodeRequest,
    session: SessionInfo = Depends(user_required),
    machine: IssuanceMachine = Depends(get_issuance_machine),
    store=Depends(get_state_store),
):
    """
    Draw a random unused code of the requested tier.

    Starting a new request resets the retry count. When the tier has no codes
    left the outcome is ``exhausted``; this is not an error.

    Args:
        body (CodeRequest): Speed tier to draw from
        session (SessionInfo): Authenticated user or admin session
        machine (IssuanceMachine): Issuance state machine
        store: Per-session issuance state store

    Returns:
        IssuanceOut: The new issuance state

    Raises:
        HTTPException: If the code store is unreachable (status_code=503)
    """
    logger.info(f"Code request for {body.speed.value} from session {session.session_id}")
    state = store.load(session.session_id)
    try:
        new_state = machine.request(state, body.speed)
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)

    store.save(session.session_id, new_state.settled())
    return _issuance_out(new_state, machine.max_retries, _outcome_message(new_state, after_reject=False))


@router.post("/accept", response_model=IssuanceOut)
def accept_code(
    session: SessionInfo = Depends(user_required),
    machine: IssuanceMachine = Depends(get_issuance_machine),
    store=Depends(get_state_store),
):
    """
    Confirm the shown code worked.

    The code moves to the usage history. If archiving fails the state is kept
    so the user can simply try again.

    Raises:
        HTTPException: If no code is shown or the code was taken meanwhile
                      (status_code=409), or the code store is unreachable (status_code=503)
    """
    state = store.load(session.session_id)
    try:
        new_state = machine.accept(state)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CodeAlreadyClaimed:
        raise HTTPException(
            status_code=409,
            detail="This code is no longer available. Reject it to get another one.",
        )
    except RepositoryError:
        raise HTTPException(status_code=503, detail="Error saving code. Please try again.")

    store.save(session.session_id, new_state.settled())
    return _issuance_out(new_state, machine.max_retries, _outcome_message(new_state, after_reject=False))


@router.post("/reject", response_model=IssuanceOut)
def reject_code(
    session: SessionInfo = Depends(user_required),
    machine: IssuanceMachine = Depends(get_issuance_machine),
    store=Depends(get_state_store),
):
    """
    Report the shown code as not working.

    The code is removed from the pool and a replacement is drawn, unless the
    retry limit is reached or the tier ran out of codes.
    """
    state = store.load(session.session_id)
    try:
        new_state = machine.reject(state)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)

    store.save(session.session_id, new_state.settled())
    return _issuance_out(new_state, machine.max_retries, _outcome_message(new_state, after_reject=True))


@router.post("/dismiss", response_model=IssuanceOut)
def dismiss_code(
    session: SessionInfo = Depends(user_required),
    machine: IssuanceMachine = Depends(get_issuance_machine),
    store=Depends(get_state_store),
):
    new_state = machine.dismiss(store.load(session.session_id))
    store.save(session.session_id, new_state)
    return _issuance_out(new_state, machine.max_retries)
