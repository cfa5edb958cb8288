import logging
import threading
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from gesture_registry import GestureMappingError, TrackEntry, get_gesture_catalog, validate_track_mapping
from gesture_tracker import Transition
from gestures import GestureDefinition

logger = logging.getLogger(__name__)

__all__ = [
    "AuthorizationExpired",
    "GestureMappingError",
    "PlaybackError",
    "PlaybackResult",
    "PlaybackService",
    "PlaybackTrigger",
    "PlaybackWorker",
]


class PlaybackError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AuthorizationExpired(PlaybackError):
    def __init__(self, message: str = "authorization expired"):
        super().__init__(message, status=401)


class PlaybackService:
    """Remote player that tracks are started on."""

    def play(self, uri: str, device_id: Optional[str] = None) -> None:
        raise NotImplementedError

    def seek(self, position_ms: int, device_id: Optional[str] = None) -> None:
        raise NotImplementedError

    def list_devices(self) -> List:
        raise NotImplementedError


class PlaybackResult(Enum):
    PLAYED = "played"
    SKIPPED = "skipped"
    AUTH_EXPIRED = "auth_expired"
    FAILED = "failed"


class PlaybackTrigger:
    def __init__(
        self,
        service: PlaybackService,
        mapping: Dict[str, TrackEntry],
        authorizer=None,
        device_provider: Optional[Callable[[], Optional[str]]] = None,
        catalog: Optional[Iterable[GestureDefinition]] = None,
    ):
        validate_track_mapping(get_gesture_catalog() if catalog is None else catalog, mapping)
        self._service = service
        self._mapping = dict(mapping)
        self._authorizer = authorizer
        self._device_provider = device_provider

    def resolve(self, gesture: str) -> TrackEntry:
        entry = self._mapping.get(gesture)
        if entry is None:
            logger.error("[Playback] no track mapped for gesture %r", gesture)
            raise GestureMappingError(f"no track mapped for gesture {gesture!r}")
        return entry

    def handle(self, transition: Transition) -> PlaybackResult:
        gesture = transition.current
        if gesture is None:
            # Leaving a gesture keeps whatever is playing.
            return PlaybackResult.SKIPPED

        entry = self.resolve(gesture)
        device_id = self._device_provider() if self._device_provider is not None else None
        try:
            self._service.play(entry.uri, device_id)
            if entry.start_offset_ms > 0:
                self._service.seek(entry.start_offset_ms, device_id)
        except AuthorizationExpired:
            logger.warning("[Playback] authorization expired while starting %r; requesting renewal", gesture)
            if self._authorizer is not None:
                self._authorizer.request_renewal()
            return PlaybackResult.AUTH_EXPIRED
        except PlaybackError as e:
            logger.warning("[Playback] failed to start %r (status=%s): %s", gesture, e.status, e)
            return PlaybackResult.FAILED

        logger.info("[Playback] %s -> %s @ %d ms", gesture, entry.uri, entry.start_offset_ms)
        return PlaybackResult.PLAYED


class PlaybackWorker:
    """Runs trigger actions on a background thread, one at a time.

    Holds at most one pending transition; a newer one replaces it, so a burst of
    transitions during a slow request only plays the latest gesture.
    """

    def __init__(self, trigger: PlaybackTrigger, name: str = "playback-worker"):
        self._trigger = trigger
        self._cond = threading.Condition()
        self._pending: Optional[Transition] = None
        self._busy = False
        self._closed = False
        self.last_result: Optional[PlaybackResult] = None
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)
        self._thread.start()

    def handle(self, transition: Transition) -> None:
        if transition.current is not None:
            self._trigger.resolve(transition.current)
        with self._cond:
            if self._closed:
                return
            # A transition into "none" still supersedes a stale pending gesture.
            self._pending = transition if transition.current is not None else None
            self._cond.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout=timeout)

    def close(self, timeout: Optional[float] = 2.0) -> None:
        with self._cond:
            self._closed = True
            self._pending = None
            self._cond.notify_all()
        # An in-flight request is left to settle on its own; its result is ignored.
        self._thread.join(timeout=timeout)

    def _run_loop(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending is not None or self._closed)
                if self._closed:
                    return
                transition = self._pending
                self._pending = None
                self._busy = True
            try:
                result = self._trigger.handle(transition)
                with self._cond:
                    if not self._closed:
                        self.last_result = result
            except Exception:
                logger.exception("[Playback] unexpected error while handling %r", transition)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()
