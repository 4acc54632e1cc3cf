"""
Code Issuance

State machine behind the user page: a user asks for a code of a speed tier,
then either confirms it worked (accept) or reports it broken (reject). Broken
codes are removed from the pool and replaced, up to ``max_retries`` times per
request, so a single user cannot drain a tier.

The state is a plain value owned by the caller's session. ``IssuanceMachine``
only computes the next state and performs the repository side effects.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from lunarlink.db.table_client import RepositoryError
from lunarlink.schemas.code import SpeedTier
from lunarlink.services.code_repository import CodeRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class IssuanceStatus(str, Enum):
    IDLE = "idle"
    CODE_SHOWN = "code_shown"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    RETRY_LIMIT_REACHED = "retry_limit_reached"


TERMINAL_STATUSES = {
    IssuanceStatus.ACCEPTED,
    IssuanceStatus.EXHAUSTED,
    IssuanceStatus.RETRY_LIMIT_REACHED,
}


class InvalidTransition(Exception):
    """Raised when an action is not allowed from the current state."""


class CodeAlreadyClaimed(Exception):
    """Raised when the shown code was consumed by someone else before accept."""


@dataclass(frozen=True)
class IssuanceState:
    status: IssuanceStatus = IssuanceStatus.IDLE
    code: Optional[str] = None
    speed_tier: Optional[SpeedTier] = None
    retry_count: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def settled(self) -> "IssuanceState":
        """State to keep after this one has been reported: terminal states reset to idle."""
        if self.is_terminal:
            return IssuanceState()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "code": self.code,
            "speed_tier": self.speed_tier.value if self.speed_tier else None,
            "retry_count": self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "IssuanceState":
        if not data:
            return cls()
        tier = data.get("speed_tier")
        return cls(
            status=IssuanceStatus(data.get("status", IssuanceStatus.IDLE.value)),
            code=data.get("code"),
            speed_tier=SpeedTier(tier) if tier else None,
            retry_count=int(data.get("retry_count") or 0),
        )


class IssuanceMachine:
    """
    Transitions of the issuance flow.

    idle / code_shown --request--> code_shown | exhausted
    code_shown --accept--> accepted
    code_shown --reject--> code_shown | retry_limit_reached | exhausted
    any --dismiss--> idle
    """

    def __init__(self, repository: CodeRepository, max_retries: int = DEFAULT_MAX_RETRIES):
        self.repository = repository
        self.max_retries = max_retries

    def request(self, state: IssuanceState, tier: SpeedTier) -> IssuanceState:
        """
        Start (or restart) a request for a code of ``tier``.

        Restarting resets the retry count. An empty pool ends in ``exhausted``
        without consuming a retry.
        """
        if state.status == IssuanceStatus.CODE_SHOWN:
            logger.info(f"Restarting issuance for {tier.value}, previous code stays in the pool")
        return self._draw(tier, retry_count=0)

    def accept(self, state: IssuanceState) -> IssuanceState:
        """
        Confirm the shown code worked and archive it.

        Raises:
            InvalidTransition: If no code is being shown
            CodeAlreadyClaimed: If the code is no longer in the pool
            RepositoryError: If archiving failed; the caller keeps ``state``
        """
        self._require_code_shown(state, "accept")
        archived = self.repository.archive_code(state.code, state.speed_tier)
        if not archived:
            raise CodeAlreadyClaimed(state.code)
        logger.info(f"Code accepted for {state.speed_tier.value} after {state.retry_count} rejections")
        return replace(state, status=IssuanceStatus.ACCEPTED)

    def reject(self, state: IssuanceState) -> IssuanceState:
        """
        Report the shown code as broken, remove it and draw a replacement.
        """
        self._require_code_shown(state, "reject")
        tier = state.speed_tier
        self.repository.delete_code(state.code, tier)
        try:
            self.repository.increment_counter("reject_count", 1)
        except RepositoryError:
            logger.warning(f"Reject counter not updated for {tier.value}")

        retry_count = state.retry_count + 1
        if retry_count >= self.max_retries:
            logger.info(f"Retry limit of {self.max_retries} reached for {tier.value}")
            return IssuanceState(
                status=IssuanceStatus.RETRY_LIMIT_REACHED,
                speed_tier=tier,
                retry_count=retry_count,
            )
        return self._draw(tier, retry_count=retry_count)

    def dismiss(self, state: IssuanceState) -> IssuanceState:
        return IssuanceState()

    def _draw(self, tier: SpeedTier, retry_count: int) -> IssuanceState:
        code = self.repository.random_unused(tier)
        if code is None:
            return IssuanceState(status=IssuanceStatus.EXHAUSTED, speed_tier=tier, retry_count=retry_count)
        return IssuanceState(
            status=IssuanceStatus.CODE_SHOWN,
            code=code.value,
            speed_tier=tier,
            retry_count=retry_count,
        )

    def _require_code_shown(self, state: IssuanceState, action: str) -> None:
        if state.status != IssuanceStatus.CODE_SHOWN or not state.code or state.speed_tier is None:
            raise InvalidTransition(f"Cannot {action} when state is {state.status.value}")
