from typing import Dict, Iterable, List, Optional

from geometry import head_reference
from gesture_registry import get_gesture_catalog
from gestures import GestureDefinition
from pose_types import DetectionThresholds, Keypoint, PoseSnapshot


def classify(
    snapshot: PoseSnapshot,
    thresholds: DetectionThresholds,
    catalog: Optional[Iterable[GestureDefinition]] = None,
) -> Optional[str]:
    """Return the name of the first catalog gesture the pose matches, or None.

    Parts are only compared once they clear ``min_part_confidence``; positions of
    low-confidence keypoints are extrapolations and give meaningless orderings.
    """
    if snapshot.overall_score < thresholds.min_pose_confidence:
        return None

    definitions = get_gesture_catalog() if catalog is None else catalog
    head = None
    head_computed = False
    for definition in definitions:
        parts = _confident_parts(snapshot, definition.required_parts, thresholds.min_part_confidence)
        if parts is None:
            continue
        if not head_computed:
            head = head_reference(snapshot, thresholds.min_part_confidence)
            head_computed = True
        if head is None:
            continue
        if definition.matches(parts, head):
            return definition.name
    return None


def _confident_parts(snapshot: PoseSnapshot, required: Iterable[str], min_part_confidence: float) -> Optional[Dict[str, Keypoint]]:
    parts: Dict[str, Keypoint] = {}
    for name in required:
        kp = snapshot.confident(name, min_part_confidence)
        if kp is None:
            return None
        parts[name] = kp
    return parts


class GestureClassifier:
    def __init__(self, catalog: Optional[Iterable[GestureDefinition]] = None):
        self.catalog: List[GestureDefinition] = list(get_gesture_catalog() if catalog is None else catalog)

    def classify(self, snapshot: PoseSnapshot, thresholds: DetectionThresholds) -> Optional[str]:
        return classify(snapshot, thresholds, self.catalog)
