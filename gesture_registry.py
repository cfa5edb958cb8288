from dataclasses import dataclass
from typing import Dict, Iterable, List

from gestures import BABY_SHARK, DISCO, THRILLER, YMCA, GestureDefinition


class GestureMappingError(ValueError):
    """A classifiable gesture has no usable track mapping."""


@dataclass(frozen=True)
class TrackEntry:
    gesture: str
    uri: str
    start_offset_ms: int = 0


def get_gesture_catalog() -> List[GestureDefinition]:
    # Evaluation order is part of the behavior: the first matching definition wins.
    return [YMCA, BABY_SHARK, DISCO, THRILLER]


def get_track_mapping() -> Dict[str, TrackEntry]:
    entries = [
        TrackEntry("YMCA", "spotify:track:7Cp69rNBwU0gaFT8zxExlE", 58 * 1000),
        TrackEntry("Baby Shark", "spotify:track:5ygDXis42ncn6kYG14lEVG", 4 * 1000),
        TrackEntry("Disco", "spotify:track:7qK3JFriCqLorQivsJYG2X", 0),
        TrackEntry("Thriller", "spotify:track:7azo4rpSUh8nXgtonC6Pkq", 90500),
    ]
    return {entry.gesture: entry for entry in entries}


def validate_track_mapping(catalog: Iterable[GestureDefinition], mapping: Dict[str, TrackEntry]) -> None:
    missing = [definition.name for definition in catalog if definition.name not in mapping]
    if missing:
        raise GestureMappingError(f"no track mapped for gesture(s): {', '.join(missing)}")
    negative = [name for name, entry in mapping.items() if entry.start_offset_ms < 0]
    if negative:
        raise GestureMappingError(f"negative start offset for gesture(s): {', '.join(negative)}")
