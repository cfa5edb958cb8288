import logging
import threading
from typing import Optional

from classifier import GestureClassifier
from gesture_tracker import GestureStateTracker, Transition
from pose_types import DetectionThresholds, PoseSnapshot

logger = logging.getLogger(__name__)


class GestureSession:
    """Per-frame entry point: snapshot -> classifier -> tracker -> dispatcher.

    The dispatcher is anything with ``handle(transition)``, typically a
    PlaybackTrigger (synchronous) or a PlaybackWorker (background).
    """

    def __init__(
        self,
        classifier: Optional[GestureClassifier] = None,
        tracker: Optional[GestureStateTracker] = None,
        dispatcher=None,
    ):
        self.classifier = classifier or GestureClassifier()
        self.tracker = tracker or GestureStateTracker()
        self.dispatcher = dispatcher
        self._lock = threading.Lock()

    @property
    def current_gesture(self) -> Optional[str]:
        return self.tracker.current_gesture

    def process_frame(self, snapshot: Optional[PoseSnapshot], thresholds: DetectionThresholds) -> Optional[Transition]:
        gesture = self.classifier.classify(snapshot, thresholds) if snapshot is not None else None
        timestamp = snapshot.timestamp if snapshot is not None else 0.0
        with self._lock:
            transition = self.tracker.update(gesture, timestamp)
            if transition is None:
                return None
            logger.info("[Session] gesture %s -> %s", transition.previous or "none", transition.current or "none")
            if self.dispatcher is not None:
                self.dispatcher.handle(transition)
        return transition

    def reset(self) -> None:
        with self._lock:
            self.tracker.reset()
