from typing import Dict, Tuple

from geometry import arm_lowered, arm_raised, wrists_split
from gestures.base import ARM_PARTS, GestureDefinition
from pose_types import Keypoint


def one_arm_up_one_down(parts: Dict[str, Keypoint]) -> bool:
    left = (parts["left_wrist"], parts["left_elbow"], parts["left_shoulder"])
    right = (parts["right_wrist"], parts["right_elbow"], parts["right_shoulder"])
    return (arm_raised(*left) and arm_lowered(*right)) or (arm_lowered(*left) and arm_raised(*right))


def disco_point(parts: Dict[str, Keypoint], head: Tuple[float, float]) -> bool:
    head_x, _ = head
    return one_arm_up_one_down(parts) and wrists_split(parts["left_wrist"], parts["right_wrist"], head_x)


DISCO = GestureDefinition(name="Disco", required_parts=ARM_PARTS, predicate=disco_point)
