from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from domain.constants import GigStatus
from domain.models.song import new_id

class Band(SQLModel, table=True):
    __tablename__ = "bands"
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=datetime.now)

class Gig(SQLModel, table=True):
    __tablename__ = "gigs"
    id: str = Field(default_factory=new_id, primary_key=True)
    band_id: str = Field(foreign_key="bands.id")
    name: str
    date: Optional[str] = None
    location: Optional[str] = None
    status: str = Field(default=GigStatus.UPCOMING.value)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
