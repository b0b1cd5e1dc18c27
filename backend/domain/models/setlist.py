from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from domain.constants import SetStatus

class Setlist(SQLModel, table=True):
    __tablename__ = "setlists"
    id: str = Field(primary_key=True)
    band_id: str = Field(foreign_key="bands.id")
    gig_id: str = Field(foreign_key="gigs.id")
    name: str
    status: str = Field(default=SetStatus.DRAFT.value)
    order_index: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

class SetlistSong(SQLModel, table=True):
    __tablename__ = "setlist_songs"
    # id は SetSong の instance_id と一致する
    id: str = Field(primary_key=True)
    setlist_id: str = Field(foreign_key="setlists.id")
    song_id: str = Field(foreign_key="songs.id")
    order_index: int
    notes: Optional[str] = Field(default="")
