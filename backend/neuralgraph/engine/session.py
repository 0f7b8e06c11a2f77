"""Training sessions: one per background run, holding its controller and progress."""
import math
import threading
from typing import Any

from .training_control import TrainingController


class TrainingSession:
    def __init__(self, execution_id: str, session_id: str, total_epochs: int):
        self.execution_id = execution_id
        self.session_id = session_id
        self.total_epochs = total_epochs
        self.controller = TrainingController()
        self._losses: list[float | None] = []
        self._lock = threading.Lock()

    def record_progress(self, message: dict[str, Any]) -> None:
        """Progress callback hook; keeps the per-epoch losses seen so far.

        A non-finite loss is kept as None so ``status()`` stays JSON-safe.
        """
        if message.get("type") == "training_progress":
            with self._lock:
                loss = message["loss"]
                self._losses.append(loss if loss is not None and math.isfinite(loss) else None)

    def status(self) -> dict[str, Any]:
        with self._lock:
            losses = list(self._losses)
        return {
            "execution_id": self.execution_id,
            "state": self.controller.state.value,
            "epochs_completed": len(losses),
            "total_epochs": self.total_epochs,
            "epoch_losses": losses,
        }


_sessions: dict[str, TrainingSession] = {}


def create_session(execution_id: str, session_id: str, total_epochs: int) -> TrainingSession:
    session = TrainingSession(execution_id, session_id, total_epochs)
    _sessions[execution_id] = session
    return session


def get_session(execution_id: str) -> TrainingSession | None:
    return _sessions.get(execution_id)


def remove_session(execution_id: str) -> None:
    _sessions.pop(execution_id, None)


def active_session_count() -> int:
    return len(_sessions)
