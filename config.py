import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pose_types import DetectionThresholds

CONFIG_ENV_VAR = "POSE_MUSIC_CONFIG"
TOKEN_ENV_VAR = "SPOTIFY_ACCESS_TOKEN"


@dataclass(frozen=True)
class DetectionConfig:
    min_pose_confidence: float = 0.1
    min_part_confidence: float = 0.5
    # Webcam frames are shown mirrored; keypoint x is flipped to match.
    flip_horizontal: bool = True
    # MediaPipe Pose model: 0 lite, 1 full, 2 heavy.
    model_complexity: int = 1

    def thresholds(self) -> DetectionThresholds:
        return DetectionThresholds(self.min_pose_confidence, self.min_part_confidence)


@dataclass(frozen=True)
class CameraConfig:
    index: int = 0
    width: int = 600
    height: int = 500
    target_fps: int = 30


@dataclass(frozen=True)
class OutputConfig:
    show_video: bool = True
    show_skeleton: bool = True
    show_points: bool = True
    show_bounding_box: bool = False


@dataclass(frozen=True)
class SpotifyConfig:
    client_id: str = ""
    redirect_uri: str = "http://localhost:8888/callback"
    api_base: str = "https://api.spotify.com/v1"
    timeout_seconds: float = 5.0
    access_token: str = ""
    open_browser: bool = True


@dataclass(frozen=True)
class TrackerConfig:
    # 1 keeps the single-frame behavior; larger values require that many consecutive frames.
    confirm_frames: int = 1


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path(__file__).resolve().parent / "config.json"


def _deep_get(d: Dict[str, Any], keys: list, default: Any = None) -> Any:
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
    return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_float(v: Any, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return float(default)


def _as_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(default)


def _as_str(v: Any, default: str = "") -> str:
    return str(v) if v is not None else str(default)


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    p = Path(path).expanduser() if path else get_default_config_path()
    raw: Dict[str, Any] = {}
    if p.exists():
        try:
            loaded = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logging.getLogger(__name__).warning("[Config] could not read %s (%s); using defaults", p, e)
            loaded = {}
        if isinstance(loaded, dict):
            raw = loaded

    d = DetectionConfig()
    detection = DetectionConfig(
        min_pose_confidence=_as_float(_deep_get(raw, ["detection", "min_pose_confidence"]), d.min_pose_confidence),
        min_part_confidence=_as_float(_deep_get(raw, ["detection", "min_part_confidence"]), d.min_part_confidence),
        flip_horizontal=_as_bool(_deep_get(raw, ["detection", "flip_horizontal"], d.flip_horizontal), d.flip_horizontal),
        model_complexity=min(2, max(0, _as_int(_deep_get(raw, ["detection", "model_complexity"]), d.model_complexity))),
    )

    c = CameraConfig()
    fps = _as_int(_deep_get(raw, ["camera", "target_fps"]), c.target_fps)
    camera = CameraConfig(
        index=_as_int(_deep_get(raw, ["camera", "index"]), c.index),
        width=max(1, _as_int(_deep_get(raw, ["camera", "width"]), c.width)),
        height=max(1, _as_int(_deep_get(raw, ["camera", "height"]), c.height)),
        target_fps=fps if fps >= 0 else c.target_fps,
    )

    o = OutputConfig()
    output = OutputConfig(
        show_video=_as_bool(_deep_get(raw, ["output", "show_video"], o.show_video), o.show_video),
        show_skeleton=_as_bool(_deep_get(raw, ["output", "show_skeleton"], o.show_skeleton), o.show_skeleton),
        show_points=_as_bool(_deep_get(raw, ["output", "show_points"], o.show_points), o.show_points),
        show_bounding_box=_as_bool(_deep_get(raw, ["output", "show_bounding_box"], o.show_bounding_box), o.show_bounding_box),
    )

    s = SpotifyConfig()
    timeout = _as_float(_deep_get(raw, ["spotify", "timeout_seconds"]), s.timeout_seconds)
    spotify = SpotifyConfig(
        client_id=_as_str(_deep_get(raw, ["spotify", "client_id"]), s.client_id).strip(),
        redirect_uri=_as_str(_deep_get(raw, ["spotify", "redirect_uri"]), s.redirect_uri).strip(),
        api_base=_as_str(_deep_get(raw, ["spotify", "api_base"]), s.api_base).rstrip("/"),
        timeout_seconds=timeout if timeout > 0 else s.timeout_seconds,
        access_token=os.environ.get(TOKEN_ENV_VAR) or _as_str(_deep_get(raw, ["spotify", "access_token"]), ""),
        open_browser=_as_bool(_deep_get(raw, ["spotify", "open_browser"], s.open_browser), s.open_browser),
    )

    confirm_frames = _as_int(_deep_get(raw, ["tracker", "confirm_frames"]), 1)
    tracker = TrackerConfig(confirm_frames=max(1, confirm_frames))

    level = _as_str(_deep_get(raw, ["logging", "level"]), "INFO").strip().upper() or "INFO"

    return AppConfig(
        detection=detection,
        camera=camera,
        output=output,
        spotify=spotify,
        tracker=tracker,
        logging=LoggingConfig(level=level),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )
