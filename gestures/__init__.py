from gestures.baby_shark import BABY_SHARK
from gestures.base import GestureDefinition
from gestures.disco import DISCO
from gestures.thriller import THRILLER
from gestures.ymca import YMCA

__all__ = [
    "GestureDefinition",
    "YMCA",
    "BABY_SHARK",
    "DISCO",
    "THRILLER",
]
