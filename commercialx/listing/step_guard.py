"""
Keeps the visible wizard step stable across a background decode.

Writing decoded values into the form can set off watcher side effects that
move the wizard; the guard snapshots the step before the writes and tells
the wizard which step to force back once those side effects have settled.
"""
from enum import Enum
from typing import Optional


class GuardState(Enum):
    IDLE = "idle"
    PENDING_RESTORE = "pending_restore"


class StepPreservationGuard:
    """Two-state guard: IDLE -> (capture) -> PENDING_RESTORE -> (settle) -> IDLE."""

    def __init__(self):
        self.state = GuardState.IDLE
        self._snapshot: Optional[int] = None

    @property
    def snapshot(self) -> Optional[int]:
        return self._snapshot

    def capture(self, step: int) -> None:
        self._snapshot = step
        self.state = GuardState.PENDING_RESTORE

    def settle(self, live_step: int) -> Optional[int]:
        """
        Finish a pending restore.

        Returns:
            The captured step if the live step drifted away from it (the
            caller must set it back), otherwise None.
        """
        if self.state is not GuardState.PENDING_RESTORE:
            return None
        snapshot = self._snapshot
        self.state = GuardState.IDLE
        self._snapshot = None
        if snapshot is not None and live_step != snapshot:
            return snapshot
        return None
