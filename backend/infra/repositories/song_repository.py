from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import func

from domain.constants import SongStatus
from domain.models.song import Song

class SongRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, song_id: str) -> Optional[Song]:
        return self.session.get(Song, song_id)

    def find_by_band(self, band_id: str, include_archived: bool = False) -> List[Song]:
        query = select(Song).where(Song.band_id == band_id)
        if not include_archived:
            query = query.where(Song.status != SongStatus.ARCHIVED.value)
        return self.session.exec(query.order_by(Song.created_at, Song.title)).all()

    def find_duplicate(self, band_id: str, title: str, artist: str, exclude_id: Optional[str] = None) -> Optional[Song]:
        """タイトルとアーティストの大文字小文字を無視した一致"""
        query = (
            select(Song)
            .where(Song.band_id == band_id)
            .where(func.lower(func.trim(Song.title)) == title.strip().lower())
            .where(func.lower(func.trim(Song.artist)) == artist.strip().lower())
        )
        if exclude_id:
            query = query.where(Song.id != exclude_id)
        return self.session.exec(query).first()

    def save(self, song: Song) -> Song:
        self.session.add(song)
        self.session.commit()
        self.session.refresh(song)
        return song

    def save_all(self, songs: List[Song]) -> List[Song]:
        for song in songs:
            self.session.add(song)
        self.session.commit()
        for song in songs:
            self.session.refresh(song)
        return songs

    def delete(self, song: Song):
        self.session.delete(song)
        self.session.commit()
