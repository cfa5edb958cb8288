from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from pose_types import Keypoint

ARM_PARTS = (
    "left_wrist",
    "left_elbow",
    "left_shoulder",
    "right_wrist",
    "right_elbow",
    "right_shoulder",
)

GesturePredicate = Callable[[Dict[str, Keypoint], Tuple[float, float]], bool]


@dataclass(frozen=True)
class GestureDefinition:
    name: str
    required_parts: Tuple[str, ...]
    predicate: GesturePredicate

    def matches(self, parts: Dict[str, Keypoint], head: Tuple[float, float]) -> bool:
        return bool(self.predicate(parts, head))
