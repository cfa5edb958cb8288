from typing import List, Optional, Tuple

import cv2
import mediapipe as mp
import numpy as np

from pose_types import BODY_PARTS, PoseSnapshot

POINT_COLOR = (0, 255, 255)
SKELETON_COLOR = (0, 255, 0)
BOX_COLOR = (255, 128, 0)


def _skeleton_pairs() -> List[Tuple[str, str]]:
    pairs = []
    for a, b in mp.solutions.pose.POSE_CONNECTIONS:
        # Connections are landmark indices; map them back to part names.
        name_a = mp.solutions.pose.PoseLandmark(a).name.lower()
        name_b = mp.solutions.pose.PoseLandmark(b).name.lower()
        if name_a in BODY_PARTS and name_b in BODY_PARTS:
            pairs.append((name_a, name_b))
    return pairs


SKELETON_PAIRS = _skeleton_pairs()


def _pt(x: float, y: float) -> Tuple[int, int]:
    return int(round(x)), int(round(y))


def draw_keypoints(frame, pose: PoseSnapshot, min_part_confidence: float, radius: int = 4) -> None:
    for kp in pose.keypoints.values():
        if kp.confidence <= min_part_confidence:
            continue
        cv2.circle(frame, _pt(kp.x, kp.y), radius, POINT_COLOR, -1)


def draw_skeleton(frame, pose: PoseSnapshot, min_part_confidence: float, thickness: int = 2) -> None:
    for name_a, name_b in SKELETON_PAIRS:
        a = pose.confident(name_a, min_part_confidence)
        b = pose.confident(name_b, min_part_confidence)
        if a is None or b is None:
            continue
        cv2.line(frame, _pt(a.x, a.y), _pt(b.x, b.y), SKELETON_COLOR, thickness)


def draw_bounding_box(frame, pose: PoseSnapshot) -> None:
    if not pose.keypoints:
        return
    xs = np.array([kp.x for kp in pose.keypoints.values()])
    ys = np.array([kp.y for kp in pose.keypoints.values()])
    cv2.rectangle(frame, _pt(xs.min(), ys.min()), _pt(xs.max(), ys.max()), BOX_COLOR, 1)


def draw_status_panel(frame, lines, origin=(10, 30)) -> None:
    x, y = origin
    for line in lines:
        cv2.putText(frame, line, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
        y += 28


def render_frame(
    frame,
    pose: Optional[PoseSnapshot],
    min_pose_confidence: float,
    min_part_confidence: float,
    show_video: bool = True,
    show_skeleton: bool = True,
    show_points: bool = True,
    show_bounding_box: bool = False,
    mirror: bool = True,
):
    canvas = cv2.flip(frame, 1) if mirror else frame.copy()
    if not show_video:
        canvas = np.zeros_like(canvas)
    if pose is None or pose.overall_score < min_pose_confidence:
        return canvas
    if show_points:
        draw_keypoints(canvas, pose, min_part_confidence)
    if show_skeleton:
        draw_skeleton(canvas, pose, min_part_confidence)
    if show_bounding_box:
        draw_bounding_box(canvas, pose)
    return canvas
