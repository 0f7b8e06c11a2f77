"""Cooperative pause/resume/stop for training loops running in another thread."""
import threading
from enum import Enum


class TrainingState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class TrainingController:
    """Control signal consulted by the training loop between epochs.

    Requests never interrupt an epoch in flight: ``pause`` takes effect at
    the next epoch boundary and ``stop`` ends the loop there.
    """

    def __init__(self):
        self._state = TrainingState.RUNNING
        self._lock = threading.Lock()
        self._unblocked = threading.Event()
        self._unblocked.set()

    @property
    def state(self) -> TrainingState:
        with self._lock:
            return self._state

    def _transition(self, allowed: set[TrainingState], new_state: TrainingState) -> bool:
        with self._lock:
            if self._state not in allowed:
                return False
            self._state = new_state
            if new_state == TrainingState.PAUSED:
                self._unblocked.clear()
            else:
                self._unblocked.set()
            return True

    def pause(self) -> bool:
        return self._transition({TrainingState.RUNNING}, TrainingState.PAUSED)

    def resume(self) -> bool:
        return self._transition({TrainingState.PAUSED}, TrainingState.RUNNING)

    def stop(self) -> bool:
        # Also wakes a paused loop so it can exit
        return self._transition({TrainingState.RUNNING, TrainingState.PAUSED}, TrainingState.STOPPED)

    def check(self, timeout: float | None = None) -> TrainingState:
        """Block while paused (up to ``timeout`` seconds), then return the state."""
        self._unblocked.wait(timeout)
        return self.state
