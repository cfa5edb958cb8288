import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request
import webbrowser
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from playback import AuthorizationExpired, PlaybackError, PlaybackService

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
DEFAULT_SCOPES = ("user-modify-playback-state", "user-read-playback-state")


@dataclass(frozen=True)
class PlaybackDevice:
    id: str
    name: str
    is_active: bool = False


class SpotifyAuthorizer:
    """Holds the Web API access token and drives the implicit-grant login."""

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        scopes=DEFAULT_SCOPES,
        access_token: str = "",
        open_browser: bool = True,
    ):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.scopes = tuple(scopes)
        self.open_browser = open_browser
        self._token = access_token or None
        self._login_pending = False
        self._lock = threading.Lock()
        self._listeners: List[Callable[[str], None]] = []
        self.renewal_count = 0

    @property
    def access_token(self) -> Optional[str]:
        with self._lock:
            return self._token

    def set_token(self, token: str) -> None:
        with self._lock:
            self._token = token.strip() or None
            self._login_pending = False
        logger.info("[Auth] access token updated")

    def add_renewal_listener(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def authorize_url(self) -> str:
        query = urllib.parse.urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "scope": " ".join(self.scopes),
                "response_type": "token",
            },
            quote_via=urllib.parse.quote,
        )
        return f"{AUTHORIZE_URL}?{query}"

    @property
    def login_pending(self) -> bool:
        with self._lock:
            return self._login_pending

    def request_renewal(self, force: bool = False) -> None:
        with self._lock:
            # Every action failing while signed out lands here; one login page is enough.
            already_pending = self._login_pending and self._token is None
            self._token = None
            self._login_pending = True
            self.renewal_count += 1
        url = self.authorize_url()
        if already_pending and not force:
            logger.debug("[Auth] authorization still pending")
        else:
            logger.warning("[Auth] Spotify authorization required: %s", url)
        for listener in list(self._listeners):
            listener(url)
        if self.open_browser and self.client_id and (force or not already_pending):
            webbrowser.open(url)

    def ensure_authorized(self) -> bool:
        if self.access_token:
            return True
        self.request_renewal()
        return False

    @staticmethod
    def token_from_redirect(url: str) -> Optional[str]:
        # The implicit grant returns the token in the URL fragment: ...#access_token=...&token_type=Bearer
        fragment = urllib.parse.urlsplit(url).fragment
        values = urllib.parse.parse_qs(fragment)
        tokens = values.get("access_token")
        return tokens[0] if tokens else None


class SpotifyPlaybackService(PlaybackService):
    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        api_base: str = "https://api.spotify.com/v1",
        timeout_seconds: float = 5.0,
    ):
        self._token_provider = token_provider
        self._base = api_base.rstrip("/")
        self._timeout = float(timeout_seconds)

    def play(self, uri: str, device_id: Optional[str] = None) -> None:
        self._request("PUT", "/me/player/play", {"device_id": device_id}, body={"uris": [uri]})

    def seek(self, position_ms: int, device_id: Optional[str] = None) -> None:
        self._request("PUT", "/me/player/seek", {"position_ms": int(position_ms), "device_id": device_id})

    def list_devices(self) -> List[PlaybackDevice]:
        payload = self._request("GET", "/me/player/devices") or {}
        devices = []
        for item in payload.get("devices", []):
            if not item.get("id"):
                continue
            devices.append(
                PlaybackDevice(
                    id=str(item["id"]),
                    name=str(item.get("name") or item["id"]),
                    is_active=bool(item.get("is_active")),
                )
            )
        return devices

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        token = self._token_provider()
        if not token:
            raise AuthorizationExpired("no access token")

        query = {k: v for k, v in (params or {}).items() if v is not None}
        url = self._base + path
        if query:
            url += "?" + urllib.parse.urlencode(query)
        data = json.dumps(body).encode("utf-8") if body is not None else None
        # Spotify expects a body on PUT even when there is nothing to send.
        if data is None and method in ("PUT", "POST"):
            data = b""
        req = urllib.request.Request(url, data=data, method=method)
        req.add_header("Authorization", f"Bearer {token}")
        if body is not None:
            req.add_header("Content-Type", "application/json")

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            if e.code == 401:
                raise AuthorizationExpired(_error_message(e)) from e
            raise PlaybackError(_error_message(e), status=e.code) from e
        except (urllib.error.URLError, OSError) as e:
            raise PlaybackError(f"{method} {path} failed: {e}") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError:
            return None


def _error_message(e: urllib.error.HTTPError) -> str:
    try:
        payload = json.loads(e.read().decode("utf-8"))
        return str(payload["error"]["message"])
    except (ValueError, KeyError, TypeError, OSError):
        return f"HTTP {e.code}"


class DeviceSelector:
    """Caches the account's playback devices and the one actions are sent to."""

    def __init__(self, service: PlaybackService, authorizer: Optional[SpotifyAuthorizer] = None):
        self._service = service
        self._authorizer = authorizer
        self._lock = threading.Lock()
        self.devices: List[PlaybackDevice] = []
        self._selected: Optional[str] = None

    def refresh(self) -> List[PlaybackDevice]:
        try:
            devices = self._service.list_devices()
        except AuthorizationExpired:
            logger.warning("[Devices] authorization expired while listing devices")
            if self._authorizer is not None:
                self._authorizer.request_renewal()
            return self.devices
        except PlaybackError as e:
            logger.warning("[Devices] error listing devices: %s", e)
            return self.devices

        with self._lock:
            self.devices = devices
            ids = [d.id for d in devices]
            if self._selected not in ids:
                active = [d.id for d in devices if d.is_active]
                self._selected = active[0] if active else (ids[0] if ids else None)
        return devices

    def select(self, device_id: Optional[str]) -> None:
        with self._lock:
            self._selected = device_id

    def selected(self) -> Optional[str]:
        with self._lock:
            return self._selected
