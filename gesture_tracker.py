from dataclasses import dataclass
from typing import Optional


@dataclass
class SessionState:
    current_gesture: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    previous: Optional[str]
    current: Optional[str]
    timestamp: float = 0.0


class GestureStateTracker:
    """Turns per-frame classifications into gesture transitions.

    With the default ``confirm_frames=1`` a single frame is enough to flip the
    held gesture. Larger values require the new name on that many consecutive
    frames before the transition is reported.
    """

    def __init__(self, confirm_frames: int = 1, state: Optional[SessionState] = None):
        if confirm_frames < 1:
            raise ValueError("confirm_frames must be >= 1")
        self.confirm_frames = confirm_frames
        self.state = state if state is not None else SessionState()
        self._candidate: Optional[str] = None
        self._candidate_frames = 0

    @property
    def current_gesture(self) -> Optional[str]:
        return self.state.current_gesture

    def reset(self) -> None:
        self.state.current_gesture = None
        self._candidate = None
        self._candidate_frames = 0

    def update(self, gesture: Optional[str], timestamp: float = 0.0) -> Optional[Transition]:
        if gesture == self.state.current_gesture:
            self._candidate = None
            self._candidate_frames = 0
            return None

        if gesture == self._candidate:
            self._candidate_frames += 1
        else:
            self._candidate = gesture
            self._candidate_frames = 1
        if self._candidate_frames < self.confirm_frames:
            return None

        transition = Transition(previous=self.state.current_gesture, current=gesture, timestamp=timestamp)
        self.state.current_gesture = gesture
        self._candidate = None
        self._candidate_frames = 0
        return transition
