from typing import Optional, Tuple, Dict, Any
from pydantic import BaseModel, ConfigDict
import uuid

from domain.constants import SongStatus, PracticeStatus, SetStatus

def new_instance_id() -> str:
    return str(uuid.uuid4())

class LibrarySong(BaseModel):
    """
    ライブラリ内の楽曲スナップショット (Song id がキー)
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    artist: str
    duration_seconds: int = 0
    rating: int = 0
    played_live: bool = False
    practice_status: PracticeStatus = PracticeStatus.PRACTICE
    status: SongStatus = SongStatus.ACTIVE
    links: Tuple[str, ...] = ()
    video_url: Optional[str] = None
    general_notes: str = ""

    @property
    def key(self) -> str:
        return self.id

    @classmethod
    def from_record(cls, song: Any) -> "LibrarySong":
        return cls(
            id=song.id,
            title=song.title,
            artist=song.artist,
            duration_seconds=song.duration_seconds or 0,
            rating=song.rating or 0,
            played_live=bool(song.played_live),
            practice_status=song.practice_status or PracticeStatus.PRACTICE,
            status=song.status or SongStatus.ACTIVE,
            links=tuple(song.links),
            video_url=song.video_url,
            general_notes=song.general_notes or "",
        )

    def song_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in LibrarySong.model_fields}

class SetSong(LibrarySong):
    """
    セット内に配置された楽曲インスタンス。
    Song のフィールドは配置時点でコピーされ、instance_id がドラッグ操作の識別子になる。
    """
    instance_id: str
    notes: str = ""

    @property
    def key(self) -> str:
        return self.instance_id

    @classmethod
    def snapshot(cls, song: LibrarySong, instance_id: Optional[str] = None, notes: str = "") -> "SetSong":
        return cls(
            **song.song_fields(),
            instance_id=instance_id or new_instance_id(),
            notes=notes,
        )

class SetList(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    gig_id: Optional[str] = None
    name: str
    status: SetStatus = SetStatus.DRAFT
    order_index: int = 0
    songs: Tuple[SetSong, ...] = ()

    @property
    def key(self) -> str:
        return self.id

    @property
    def duration_seconds(self) -> int:
        return sum(s.duration_seconds for s in self.songs)

class Board(BaseModel):
    """
    1ギグ分のライブラリとセット群の不変スナップショット
    """
    model_config = ConfigDict(frozen=True)

    gig_id: Optional[str] = None
    library: Tuple[LibrarySong, ...] = ()
    sets: Tuple[SetList, ...] = ()

    def set_index(self, set_id: str) -> int:
        return next((i for i, s in enumerate(self.sets) if s.id == set_id), -1)

    def get_set(self, set_id: str) -> Optional[SetList]:
        idx = self.set_index(set_id)
        return self.sets[idx] if idx != -1 else None

    def set_containing(self, instance_id: str) -> Optional[SetList]:
        return next(
            (s for s in self.sets if any(song.instance_id == instance_id for song in s.songs)),
            None,
        )

    def library_song(self, song_id: str) -> Optional[LibrarySong]:
        return next((s for s in self.library if s.id == song_id), None)

    def instance_ids(self) -> Tuple[str, ...]:
        return tuple(song.instance_id for s in self.sets for song in s.songs)

    def has_instance_of(self, song_id: str) -> bool:
        return any(song.id == song_id for s in self.sets for song in s.songs)
