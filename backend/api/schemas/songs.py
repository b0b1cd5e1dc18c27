from pydantic import BaseModel, Field
from typing import List, Optional

from domain.constants import PracticeStatus, SongStatus

class SongCreate(BaseModel):
    title: str
    artist: str
    duration_seconds: int = Field(default=0, ge=0)
    rating: int = Field(default=0, ge=0, le=5)
    played_live: bool = False
    practice_status: PracticeStatus = PracticeStatus.PRACTICE
    links: List[str] = []
    video_url: Optional[str] = None
    general_notes: str = ""

class SongUpdate(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    rating: Optional[int] = Field(default=None, ge=0, le=5)
    played_live: Optional[bool] = None
    practice_status: Optional[PracticeStatus] = None
    status: Optional[SongStatus] = None
    links: Optional[List[str]] = None
    video_url: Optional[str] = None
    general_notes: Optional[str] = None

class SongBulkItem(SongUpdate):
    # id が既存の楽曲と一致すればマージ、それ以外は新規作成
    id: Optional[str] = None

class SongDeleteResult(BaseModel):
    ok: bool = True
    archived: bool
