from typing import Dict, Tuple

from geometry import wrists_same_side
from gestures.base import ARM_PARTS, GestureDefinition
from gestures.disco import one_arm_up_one_down
from pose_types import Keypoint


def shark_jaws(parts: Dict[str, Keypoint], head: Tuple[float, float]) -> bool:
    # Both hands clap on the same side of the body, one from above and one from below.
    head_x, _ = head
    return one_arm_up_one_down(parts) and wrists_same_side(parts["left_wrist"], parts["right_wrist"], head_x)


BABY_SHARK = GestureDefinition(name="Baby Shark", required_parts=ARM_PARTS, predicate=shark_jaws)
