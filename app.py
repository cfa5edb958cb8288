import argparse
import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from camera import CameraStream
from classifier import GestureClassifier
from config import AppConfig, configure_logging, load_config
from gesture_registry import get_track_mapping
from gesture_tracker import GestureStateTracker
from playback import PlaybackService, PlaybackTrigger, PlaybackWorker
from pose_detection import PoseDetector
from session import GestureSession
from spotify_client import DeviceSelector, SpotifyAuthorizer, SpotifyPlaybackService
from visualization import draw_status_panel, render_frame

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    session: GestureSession
    authorizer: SpotifyAuthorizer
    devices: DeviceSelector
    worker: PlaybackWorker

    def close(self) -> None:
        self.worker.close()


def create_runtime(config: AppConfig, service: Optional[PlaybackService] = None) -> Runtime:
    sp = config.spotify
    authorizer = SpotifyAuthorizer(
        client_id=sp.client_id,
        redirect_uri=sp.redirect_uri,
        access_token=sp.access_token,
        open_browser=sp.open_browser,
    )
    if service is None:
        service = SpotifyPlaybackService(
            token_provider=lambda: authorizer.access_token,
            api_base=sp.api_base,
            timeout_seconds=sp.timeout_seconds,
        )
    devices = DeviceSelector(service, authorizer)
    classifier = GestureClassifier()
    trigger = PlaybackTrigger(
        service,
        get_track_mapping(),
        authorizer=authorizer,
        device_provider=devices.selected,
        catalog=classifier.catalog,
    )
    worker = PlaybackWorker(trigger)
    session = GestureSession(
        classifier=classifier,
        tracker=GestureStateTracker(confirm_frames=config.tracker.confirm_frames),
        dispatcher=worker,
    )
    return Runtime(session=session, authorizer=authorizer, devices=devices, worker=worker)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play a song when you strike its dance move.")
    parser.add_argument("--config", default=None, help="Path to config.json")
    parser.add_argument("--camera", type=int, default=None, help="Camera index override")
    parser.add_argument("--device", default=None, help="Spotify device id to play on")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = load_config(args.config)
    configure_logging(config.logging.level)

    window_name = "Pose Music"
    cam_cfg = config.camera
    camera = CameraStream(
        camera_index=args.camera if args.camera is not None else cam_cfg.index,
        width=cam_cfg.width,
        height=cam_cfg.height,
        target_fps=cam_cfg.target_fps,
    )
    if not camera.open():
        logger.error("Could not open webcam.")
        return 1

    runtime = create_runtime(config)
    if runtime.authorizer.ensure_authorized():
        runtime.devices.refresh()
    if args.device:
        runtime.devices.select(args.device)

    detection = config.detection
    thresholds = detection.thresholds()
    detector = PoseDetector(model_complexity=detection.model_complexity, flip_horizontal=detection.flip_horizontal)
    out = config.output

    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
    try:
        while True:
            if cv2.getWindowProperty(window_name, cv2.WND_PROP_VISIBLE) < 1:
                break
            cam_frame = camera.read()
            if not cam_frame.ok:
                blank = np.zeros((cam_cfg.height, cam_cfg.width, 3), dtype=np.uint8)
                draw_status_panel(blank, ["Camera error"], origin=(10, 30))
                cv2.imshow(window_name, blank)
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    break
                continue

            pose = detector.process(cam_frame.frame, cam_frame.timestamp)
            runtime.session.process_frame(pose, thresholds)

            canvas = render_frame(
                cam_frame.frame,
                pose,
                thresholds.min_pose_confidence,
                thresholds.min_part_confidence,
                show_video=out.show_video,
                show_skeleton=out.show_skeleton,
                show_points=out.show_points,
                show_bounding_box=out.show_bounding_box,
                mirror=detection.flip_horizontal,
            )
            lines = [
                f"Gesture: {runtime.session.current_gesture or '-'}",
                f"FPS: {camera.fps:.1f}",
                f"Device: {runtime.devices.selected() or 'active'}",
                "Keys: Q quit",
            ]
            if not runtime.authorizer.access_token:
                lines.append("Spotify login required")
            draw_status_panel(canvas, lines, origin=(10, 30))
            cv2.imshow(window_name, canvas)

            if cv2.waitKey(1) & 0xFF == ord("q"):
                break
    finally:
        runtime.close()
        detector.close()
        camera.release()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
