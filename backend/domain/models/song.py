from typing import Optional, List
from datetime import datetime
from sqlmodel import Field, SQLModel
import json
import uuid

from domain.constants import SongStatus, PracticeStatus

def new_id() -> str:
    return str(uuid.uuid4())

class Song(SQLModel, table=True):
    __tablename__ = "songs"
    """
    バンドのライブラリに登録された楽曲
    """
    id: str = Field(default_factory=new_id, primary_key=True)
    band_id: str = Field(foreign_key="bands.id")

    title: str
    artist: str
    duration_seconds: int = Field(default=0)
    rating: int = Field(default=0)
    played_live: bool = Field(default=False)
    practice_status: str = Field(default=PracticeStatus.PRACTICE.value)
    status: str = Field(default=SongStatus.ACTIVE.value)

    # 外部リンク (JSON配列をテキストとして保持)
    links_json: str = Field(default="[]")
    video_url: Optional[str] = None
    general_notes: str = Field(default="")

    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def links(self) -> List[str]:
        try:
            return json.loads(self.links_json or "[]")
        except ValueError:
            return []
