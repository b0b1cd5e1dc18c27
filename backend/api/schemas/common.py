from pydantic import BaseModel
from typing import List, Optional

from domain.constants import GigStatus, SetStatus

class BandCreate(BaseModel):
    name: str

class GigCreate(BaseModel):
    name: str
    date: Optional[str] = None
    location: Optional[str] = None
    status: GigStatus = GigStatus.UPCOMING
    notes: Optional[str] = None

class GigUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    status: Optional[GigStatus] = None
    notes: Optional[str] = None

class SetCreate(BaseModel):
    name: Optional[str] = None

class SetUpdate(BaseModel):
    name: Optional[str] = None
    status: Optional[SetStatus] = None

class ReorderRequest(BaseModel):
    from_index: int
    to_index: int

class AddSongsRequest(BaseModel):
    song_ids: List[str]
    # 省略・負数は末尾に追加
    index: Optional[int] = None

class NoteUpdate(BaseModel):
    notes: str = ""

class MoveRequest(BaseModel):
    source_id: str
    target_id: str
    item_id: str
    target_index: Optional[int] = None
