from typing import Dict, Tuple

from geometry import forearm_raised, wrists_same_side
from gestures.base import GestureDefinition
from pose_types import Keypoint


def zombie_claws(parts: Dict[str, Keypoint], head: Tuple[float, float]) -> bool:
    # Shoulders are not required: only the forearms need to be visible.
    head_x, _ = head
    both_up = forearm_raised(parts["left_wrist"], parts["left_elbow"]) and forearm_raised(
        parts["right_wrist"], parts["right_elbow"]
    )
    return both_up and wrists_same_side(parts["left_wrist"], parts["right_wrist"], head_x)


THRILLER = GestureDefinition(
    name="Thriller",
    required_parts=("left_wrist", "left_elbow", "right_wrist", "right_elbow"),
    predicate=zombie_claws,
)
