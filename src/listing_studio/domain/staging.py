"""Models for virtual staging tasks."""

from dataclasses import dataclass, replace
from enum import StrEnum

from listing_studio.domain.listings import Photo


class StagingState(StrEnum):
    """Lifecycle states of a staging task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TERMINAL_STATES = {StagingState.SUCCEEDED, StagingState.FAILED}
_ALLOWED_TRANSITIONS = {
    StagingState.PENDING: {StagingState.IN_PROGRESS},
    StagingState.IN_PROGRESS: _TERMINAL_STATES,
}


@dataclass(frozen=True)
class EnhancedPhoto:
    """Image returned by the enhancement service."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class StagingTask:
    """State of one photo enhancement request."""

    key: int
    source: Photo
    state: StagingState = StagingState.PENDING
    enhanced: EnhancedPhoto | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL_STATES

    def transition(
        self,
        state: StagingState,
        *,
        enhanced: EnhancedPhoto | None = None,
        error: str | None = None,
    ) -> "StagingTask":
        """Return a copy moved to the next state."""
        if state not in _ALLOWED_TRANSITIONS.get(self.state, set()):
            raise ValueError(f"Invalid staging transition {self.state} -> {state}")
        return replace(self, state=state, enhanced=enhanced, error=error)
