from enum import Enum

class StoreSignal(str, Enum):
    """
    コアが例外の代わりに返すシグナル
    """
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_DROP_TARGET = "INVALID_DROP_TARGET"

class NotFoundError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

class DuplicateSongError(Exception):
    def __init__(self, title: str, artist: str):
        self.message = f"A song with this Title and Artist already exists: {title} / {artist}"
        super().__init__(self.message)

class LimitExceededError(Exception):
    def __init__(self, limit: int):
        self.message = f"Maximum {limit} sets allowed."
        super().__init__(self.message)
