from typing import List, Optional

import cv2
import mediapipe as mp

from pose_types import BODY_PARTS, Keypoint, PoseSnapshot


class PoseDetector:
    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_complexity: int = 1,
        flip_horizontal: bool = True,
    ):
        self.flip_horizontal = flip_horizontal
        self._mp_pose = mp.solutions.pose
        self._pose = self._mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            smooth_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        # Only the parts shared with the gesture catalog; MediaPipe's hand and foot extras are dropped.
        self._landmarks = {
            lm.name.lower(): lm for lm in self._mp_pose.PoseLandmark if lm.name.lower() in BODY_PARTS
        }

    def process(self, frame_bgr, timestamp: float) -> Optional[PoseSnapshot]:
        height, width = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self._pose.process(frame_rgb)
        if results.pose_landmarks is None:
            return None

        keypoints: List[Keypoint] = []
        for name, idx in self._landmarks.items():
            lm = results.pose_landmarks.landmark[idx]
            x = lm.x * width
            if self.flip_horizontal:
                x = width - x
            keypoints.append(Keypoint(name, x, lm.y * height, float(lm.visibility)))

        # Pose-level score is the mean keypoint confidence, as PoseNet reports it.
        score = sum(kp.confidence for kp in keypoints) / len(keypoints) if keypoints else 0.0
        return PoseSnapshot.from_keypoints(score, keypoints, timestamp=timestamp, image_size=(width, height))

    def close(self) -> None:
        self._pose.close()
