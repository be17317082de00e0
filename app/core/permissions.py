"""
Page permission masks

A mask is the OR of four independent CRUD bits, so every value in [0, 15]
is a valid mask and no bit implies another.
"""
import enum
from enum import IntFlag
from typing import List, Optional


class Perm(IntFlag):
    NONE = 0
    C = 0b0001  # create
    R = 0b0010  # read
    U = 0b0100  # update
    D = 0b1000  # delete
    ALL = C | R | U | D


class Level(str, enum.Enum):
    """Administration vocabulary for a (role|user, page) grant"""
    VIEW = "view"
    ADMIN = "admin"
    NONE = "none"


LEVEL_MASKS = {
    Level.VIEW: int(Perm.R),
    Level.ADMIN: int(Perm.ALL),
}

_NAMES = (
    (Perm.C, "create"),
    (Perm.R, "read"),
    (Perm.U, "update"),
    (Perm.D, "delete"),
)


def has(mask: int, required: int) -> bool:
    """True iff every bit of ``required`` is set in ``mask``"""
    return (int(mask) & int(required)) == int(required)


def level_to_mask(level: Level) -> Optional[int]:
    """Mask stored for a level; None means the row is removed"""
    return LEVEL_MASKS.get(Level(level))


def describe(mask: int) -> List[str]:
    """Capability names set in a mask, e.g. 6 -> ['read', 'update']"""
    return [name for bit, name in _NAMES if has(mask, bit)]
