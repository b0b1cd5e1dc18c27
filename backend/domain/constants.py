from enum import Enum
from config import settings

# Board rules
MAX_SETS_PER_GIG = settings.MAX_SETS_PER_GIG
DRAG_ACTIVATION_DISTANCE = settings.DRAG_ACTIVATION_DISTANCE

# Reserved collection ids
LIBRARY_COLLECTION_ID = "library"
SETS_COLLECTION_ID = "sets"

# Elements that never start a drag (pointer-down on inline controls)
NON_DRAGGABLE_TAGS = frozenset({"button", "a", "input", "select", "textarea"})
NO_DND_ATTRIBUTE = "data-no-dnd"

DEFAULT_SET_NAME = "Set {number}"
COPY_SUFFIX = " (Copy)"


class SongStatus(str, Enum):
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class PracticeStatus(str, Enum):
    READY = "Ready"
    PRACTICE = "Practice"


class SetStatus(str, Enum):
    DRAFT = "Draft"
    PROPOSED = "Proposed"
    FINAL = "Final"


class GigStatus(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"


class DragItemType(str, Enum):
    LIBRARY_SONG = "LIBRARY_SONG"
    SET_SONG = "SET_SONG"
    SET_COLUMN = "SET_COLUMN"


class DropTargetType(str, Enum):
    LIBRARY_SONG = "LIBRARY_SONG"
    SET_SONG = "SET_SONG"
    SET_COLUMN = "SET_COLUMN"
    SET = "SET"
    LIBRARY = "LIBRARY"
