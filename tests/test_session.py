import pytest

from classifier import GestureClassifier
from gesture_registry import GestureMappingError, get_track_mapping
from gesture_tracker import GestureStateTracker
from gestures import YMCA
from playback import AuthorizationExpired, PlaybackError, PlaybackTrigger
from pose_types import DetectionThresholds
from session import GestureSession
from fakes import FakeAuthorizer, FakePlaybackService
from poses import DISCO_ARMS, RESTING_ARMS, YMCA_ARMS, make_pose

THRESHOLDS = DetectionThresholds(min_pose_confidence=0.5, min_part_confidence=0.6)


def _session(service, authorizer=None, confirm_frames=1):
    trigger = PlaybackTrigger(service, get_track_mapping(), authorizer=authorizer, device_provider=lambda: "speaker")
    return GestureSession(tracker=GestureStateTracker(confirm_frames=confirm_frames), dispatcher=trigger)


def test_ymca_pose_plays_ymca_track():
    service = FakePlaybackService()
    session = _session(service)
    pose = make_pose(YMCA_ARMS, score=0.9, confidence=0.7)

    transition = session.process_frame(pose, THRESHOLDS)

    assert transition.previous is None and transition.current == "YMCA"
    assert session.current_gesture == "YMCA"
    assert service.calls == [
        ("play", "spotify:track:7Cp69rNBwU0gaFT8zxExlE", "speaker"),
        ("seek", 58000, "speaker"),
    ]


def test_held_gesture_plays_once():
    service = FakePlaybackService()
    session = _session(service)
    for i in range(10):
        session.process_frame(make_pose(YMCA_ARMS, timestamp=i / 30.0), THRESHOLDS)
    assert [c[0] for c in service.calls] == ["play", "seek"]


def test_frame_sequence_fires_per_transition():
    service = FakePlaybackService()
    session = _session(service)
    frames = [RESTING_ARMS, YMCA_ARMS, YMCA_ARMS, DISCO_ARMS, DISCO_ARMS, DISCO_ARMS]
    transitions = [session.process_frame(make_pose(arms), THRESHOLDS) for arms in frames]

    fired = [t.current for t in transitions if t is not None]
    assert fired == ["YMCA", "Disco"]
    assert [c[1] for c in service.calls if c[0] == "play"] == [
        "spotify:track:7Cp69rNBwU0gaFT8zxExlE",
        "spotify:track:7qK3JFriCqLorQivsJYG2X",
    ]


def test_missing_pose_counts_as_no_gesture():
    service = FakePlaybackService()
    session = _session(service)
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    transition = session.process_frame(None, THRESHOLDS)
    assert transition.current is None
    assert session.current_gesture is None
    assert len(service.calls) == 2


def test_state_advances_even_when_playback_fails():
    service = FakePlaybackService(play_error=PlaybackError("boom", status=500))
    session = _session(service)
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    assert session.current_gesture == "YMCA"
    assert session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS) is None


def test_expired_authorization_is_not_retried_on_next_frames():
    service = FakePlaybackService(play_error=AuthorizationExpired())
    auth = FakeAuthorizer()
    session = _session(service, auth)
    for _ in range(5):
        session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    assert auth.renewals == 1
    assert len(service.calls) == 1


def test_mapping_error_surfaces_after_state_update():
    service = FakePlaybackService()
    mapping = {"YMCA": get_track_mapping()["YMCA"]}
    trigger = PlaybackTrigger(service, mapping, catalog=[YMCA])
    # The classifier knows more gestures than the trigger was configured for.
    session = GestureSession(classifier=GestureClassifier(), dispatcher=trigger)
    with pytest.raises(GestureMappingError):
        session.process_frame(make_pose(DISCO_ARMS), THRESHOLDS)
    assert session.current_gesture == "Disco"
    assert service.calls == []


def test_threshold_change_applies_on_next_frame():
    session = GestureSession()
    pose = make_pose(YMCA_ARMS, confidence=0.65)
    assert session.process_frame(pose, THRESHOLDS).current == "YMCA"
    strict = DetectionThresholds(min_pose_confidence=0.5, min_part_confidence=0.8)
    assert session.process_frame(pose, strict).current is None


def test_confirmation_window_delays_playback():
    service = FakePlaybackService()
    session = _session(service, confirm_frames=3)
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    assert service.calls == []
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    assert len(service.calls) == 2


def test_reset_allows_same_gesture_again():
    service = FakePlaybackService()
    session = _session(service)
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    session.reset()
    session.process_frame(make_pose(YMCA_ARMS), THRESHOLDS)
    assert [c[0] for c in service.calls] == ["play", "seek", "play", "seek"]
