from typing import Optional, Tuple

from pose_types import HEAD_PARTS, Keypoint, PoseSnapshot


def head_reference(snapshot: PoseSnapshot, min_part_confidence: float) -> Optional[Tuple[float, float]]:
    # Average over whichever head landmarks are confidently visible; any single one may be occluded.
    visible = [kp for kp in (snapshot.confident(p, min_part_confidence) for p in HEAD_PARTS) if kp is not None]
    if not visible:
        return None
    x = sum(kp.x for kp in visible) / len(visible)
    y = sum(kp.y for kp in visible) / len(visible)
    return x, y


def is_above(a: Keypoint, b: Keypoint) -> bool:
    # Image coordinates: smaller y is higher in the frame.
    return a.y < b.y


def arm_raised(wrist: Keypoint, elbow: Keypoint, shoulder: Keypoint) -> bool:
    return is_above(wrist, elbow) and is_above(elbow, shoulder)


def arm_lowered(wrist: Keypoint, elbow: Keypoint, shoulder: Keypoint) -> bool:
    return is_above(shoulder, elbow) and is_above(elbow, wrist)


def forearm_raised(wrist: Keypoint, elbow: Keypoint) -> bool:
    return is_above(wrist, elbow)


def wrists_split(left_wrist: Keypoint, right_wrist: Keypoint, head_x: float) -> bool:
    return (left_wrist.x < head_x < right_wrist.x) or (right_wrist.x < head_x < left_wrist.x)


def wrists_same_side(left_wrist: Keypoint, right_wrist: Keypoint, head_x: float) -> bool:
    both_left = left_wrist.x < head_x and right_wrist.x < head_x
    both_right = left_wrist.x > head_x and right_wrist.x > head_x
    return both_left or both_right
