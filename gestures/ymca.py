from typing import Dict, Tuple

from geometry import arm_raised, wrists_split
from gestures.base import ARM_PARTS, GestureDefinition
from pose_types import Keypoint


def hands_above_head(parts: Dict[str, Keypoint], head: Tuple[float, float]) -> bool:
    head_x, _ = head
    both_up = arm_raised(parts["left_wrist"], parts["left_elbow"], parts["left_shoulder"]) and arm_raised(
        parts["right_wrist"], parts["right_elbow"], parts["right_shoulder"]
    )
    return both_up and wrists_split(parts["left_wrist"], parts["right_wrist"], head_x)


YMCA = GestureDefinition(name="YMCA", required_parts=ARM_PARTS, predicate=hands_above_head)
