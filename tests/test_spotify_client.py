import io
import json
import urllib.error
import urllib.parse

import pytest

from gesture_registry import get_track_mapping
from gesture_tracker import Transition
from playback import AuthorizationExpired, PlaybackError, PlaybackResult, PlaybackTrigger
from spotify_client import DeviceSelector, PlaybackDevice, SpotifyAuthorizer, SpotifyPlaybackService
from fakes import FakeAuthorizer, FakePlaybackService


class _Response:
    def __init__(self, body: bytes = b""):
        self._body = body

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def requests_log(monkeypatch):
    log = []
    replies = []

    def fake_urlopen(req, timeout=None):
        log.append(req)
        reply = replies.pop(0) if replies else _Response()
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    return log, replies


def _http_error(code: int, message: str):
    body = json.dumps({"error": {"status": code, "message": message}}).encode("utf-8")
    return urllib.error.HTTPError("https://api.spotify.com", code, message, {}, io.BytesIO(body))


def _service(token="tok"):
    return SpotifyPlaybackService(lambda: token, api_base="https://api.spotify.com/v1", timeout_seconds=1.0)


def test_play_sends_track_uri(requests_log):
    log, _ = requests_log
    _service().play("spotify:track:abc", "dev1")

    req = log[0]
    assert req.get_method() == "PUT"
    assert req.full_url == "https://api.spotify.com/v1/me/player/play?device_id=dev1"
    assert json.loads(req.data.decode("utf-8")) == {"uris": ["spotify:track:abc"]}
    assert req.get_header("Authorization") == "Bearer tok"


def test_seek_sends_position(requests_log):
    log, _ = requests_log
    _service().seek(58000, "dev1")

    parsed = urllib.parse.urlsplit(log[0].full_url)
    assert parsed.path == "/v1/me/player/seek"
    assert urllib.parse.parse_qs(parsed.query) == {"position_ms": ["58000"], "device_id": ["dev1"]}


def test_no_device_id_is_left_out(requests_log):
    log, _ = requests_log
    _service().play("spotify:track:abc")
    assert log[0].full_url == "https://api.spotify.com/v1/me/player/play"


def test_401_is_authorization_expired(requests_log):
    _, replies = requests_log
    replies.append(_http_error(401, "The access token expired"))
    with pytest.raises(AuthorizationExpired) as info:
        _service().play("spotify:track:abc")
    assert info.value.status == 401
    assert "expired" in str(info.value)


def test_other_http_errors_keep_status(requests_log):
    _, replies = requests_log
    replies.append(_http_error(404, "Player command failed: No active device found"))
    with pytest.raises(PlaybackError) as info:
        _service().play("spotify:track:abc")
    assert not isinstance(info.value, AuthorizationExpired)
    assert info.value.status == 404


def test_network_error_is_playback_error(requests_log):
    _, replies = requests_log
    replies.append(urllib.error.URLError("connection refused"))
    with pytest.raises(PlaybackError):
        _service().seek(1000)


def test_missing_token_fails_without_request(requests_log):
    log, _ = requests_log
    with pytest.raises(AuthorizationExpired):
        _service(token=None).play("spotify:track:abc")
    assert log == []


def test_list_devices(requests_log):
    _, replies = requests_log
    payload = {
        "devices": [
            {"id": "a", "name": "Laptop", "is_active": False},
            {"id": None, "name": "Restricted"},
            {"id": "b", "name": "Speaker", "is_active": True},
        ]
    }
    replies.append(_Response(json.dumps(payload).encode("utf-8")))
    devices = _service().list_devices()
    assert devices == [PlaybackDevice("a", "Laptop", False), PlaybackDevice("b", "Speaker", True)]


def test_authorize_url():
    auth = SpotifyAuthorizer("client123", "http://localhost:8888/callback", open_browser=False)
    parsed = urllib.parse.urlsplit(auth.authorize_url())
    query = urllib.parse.parse_qs(parsed.query)
    assert parsed.netloc == "accounts.spotify.com"
    assert query["response_type"] == ["token"]
    assert query["client_id"] == ["client123"]
    assert query["scope"] == ["user-modify-playback-state user-read-playback-state"]
    assert "%20" in parsed.query


def test_request_renewal_clears_token_and_notifies():
    auth = SpotifyAuthorizer("client123", "http://localhost/cb", access_token="old", open_browser=False)
    seen = []
    auth.add_renewal_listener(seen.append)
    auth.request_renewal()
    assert auth.access_token is None
    assert auth.renewal_count == 1
    assert seen == [auth.authorize_url()]


def test_ensure_authorized_requests_renewal_without_token():
    auth = SpotifyAuthorizer("client123", "http://localhost/cb", open_browser=False)
    assert auth.ensure_authorized() is False
    assert auth.renewal_count == 1
    auth.set_token("fresh")
    assert auth.ensure_authorized() is True
    assert auth.renewal_count == 1


def test_token_from_redirect():
    url = "http://localhost:8888/callback#access_token=abc123&token_type=Bearer&expires_in=3600"
    assert SpotifyAuthorizer.token_from_redirect(url) == "abc123"
    assert SpotifyAuthorizer.token_from_redirect("http://localhost:8888/callback") is None


def test_device_selector_prefers_active_device():
    service = FakePlaybackService(devices=[PlaybackDevice("a", "Laptop"), PlaybackDevice("b", "Speaker", True)])
    selector = DeviceSelector(service)
    selector.refresh()
    assert selector.selected() == "b"
    selector.select("a")
    selector.refresh()
    assert selector.selected() == "a"


def test_device_selector_renews_on_expired_token():
    class Expired(FakePlaybackService):
        def list_devices(self):
            raise AuthorizationExpired()

    auth = FakeAuthorizer()
    selector = DeviceSelector(Expired(), auth)
    assert selector.refresh() == []
    assert auth.renewals == 1


@pytest.fixture
def browser_opens(monkeypatch):
    opened = []
    monkeypatch.setattr("webbrowser.open", lambda url, *args, **kwargs: opened.append(url))
    return opened


def test_signed_out_transitions_open_login_page_once(requests_log, browser_opens):
    log, _ = requests_log
    auth = SpotifyAuthorizer("client123", "http://localhost/cb", open_browser=True)
    service = SpotifyPlaybackService(lambda: auth.access_token)
    trigger = PlaybackTrigger(service, get_track_mapping(), authorizer=auth)

    results = [
        trigger.handle(Transition(None, "YMCA")),
        trigger.handle(Transition("YMCA", "Disco")),
        trigger.handle(Transition("Disco", "Thriller")),
    ]

    assert results == [PlaybackResult.AUTH_EXPIRED] * 3
    assert auth.renewal_count == 3
    assert browser_opens == [auth.authorize_url()]
    assert log == []


def test_listeners_hear_every_renewal_while_pending(browser_opens):
    auth = SpotifyAuthorizer("client123", "http://localhost/cb", open_browser=True)
    seen = []
    auth.add_renewal_listener(seen.append)
    auth.request_renewal()
    auth.request_renewal()
    assert auth.login_pending is True
    assert len(seen) == 2
    assert len(browser_opens) == 1


def test_new_token_ends_pending_login(browser_opens):
    auth = SpotifyAuthorizer("client123", "http://localhost/cb", open_browser=True)
    auth.request_renewal()
    auth.set_token("fresh")
    assert auth.login_pending is False

    # The fresh token expiring later needs a new login page.
    auth.request_renewal()
    assert len(browser_opens) == 2


def test_forced_renewal_reopens_login_page(browser_opens):
    auth = SpotifyAuthorizer("client123", "http://localhost/cb", open_browser=True)
    auth.request_renewal()
    auth.request_renewal(force=True)
    assert len(browser_opens) == 2


def test_no_client_id_never_opens_browser(browser_opens):
    auth = SpotifyAuthorizer("", "http://localhost/cb", open_browser=True)
    auth.request_renewal()
    assert browser_opens == []
    assert auth.login_pending is True
