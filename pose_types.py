from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

BODY_PARTS = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

HEAD_PARTS = ("nose", "left_eye", "right_eye", "left_ear", "right_ear")


@dataclass(frozen=True)
class Keypoint:
    part: str
    x: float
    y: float
    confidence: float

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y


@dataclass(frozen=True)
class PoseSnapshot:
    overall_score: float
    keypoints: Dict[str, Keypoint]
    timestamp: float = 0.0
    image_size: Tuple[int, int] = (0, 0)

    @classmethod
    def from_keypoints(
        cls,
        overall_score: float,
        keypoints: Iterable[Keypoint],
        timestamp: float = 0.0,
        image_size: Tuple[int, int] = (0, 0),
    ) -> "PoseSnapshot":
        parts: Dict[str, Keypoint] = {}
        for kp in keypoints:
            if kp.part in parts:
                raise ValueError(f"duplicate keypoint for part {kp.part!r}")
            parts[kp.part] = kp
        return cls(overall_score, parts, timestamp, image_size)

    def confident(self, part: str, min_part_confidence: float) -> Optional[Keypoint]:
        kp = self.keypoints.get(part)
        if kp is None or kp.confidence <= min_part_confidence:
            return None
        return kp


@dataclass(frozen=True)
class DetectionThresholds:
    min_pose_confidence: float = 0.1
    min_part_confidence: float = 0.5

    def __post_init__(self):
        # Panel sliders are bounded to [0, 1]; values read from config are clamped the same way.
        object.__setattr__(self, "min_pose_confidence", _clamp01(self.min_pose_confidence))
        object.__setattr__(self, "min_part_confidence", _clamp01(self.min_part_confidence))


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
