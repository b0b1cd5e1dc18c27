from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import List

from infra.database.connection import get_session
from api.errors import http_errors
from api.schemas.songs import SongBulkItem, SongCreate, SongDeleteResult, SongUpdate
from app.services.song_app_service import SongAppService

router = APIRouter()

@router.get("/api/bands/{band_id}/songs")
def get_songs(
    band_id: str,
    include_archived: bool = Query(False, description="Include archived songs"),
    session: Session = Depends(get_session),
):
    service = SongAppService(session)
    with http_errors():
        return service.get_songs(band_id, include_archived)

@router.post("/api/bands/{band_id}/songs")
def create_song(band_id: str, song: SongCreate, session: Session = Depends(get_session)):
    """
    楽曲をライブラリへ追加する。タイトルとアーティストが既存曲と一致する場合は 409。
    """
    service = SongAppService(session)
    with http_errors():
        return service.create_song(band_id, song)

@router.post("/api/bands/{band_id}/songs/bulk")
def bulk_upsert_songs(band_id: str, songs: List[SongBulkItem], session: Session = Depends(get_session)):
    service = SongAppService(session)
    with http_errors():
        return service.bulk_upsert(band_id, songs)

@router.put("/api/bands/{band_id}/songs")
def replace_library(band_id: str, songs: List[SongBulkItem], session: Session = Depends(get_session)):
    """ライブラリ全体を置き換える (既存の楽曲は削除、使用中のものはアーカイブ)"""
    service = SongAppService(session)
    with http_errors():
        return service.replace_library(band_id, songs)

@router.delete("/api/bands/{band_id}/songs")
def clear_library(band_id: str, session: Session = Depends(get_session)):
    service = SongAppService(session)
    with http_errors():
        return service.clear_library(band_id)

@router.put("/api/songs/{song_id}")
def update_song(song_id: str, song: SongUpdate, session: Session = Depends(get_session)):
    service = SongAppService(session)
    with http_errors():
        return service.update_song(song_id, song)

@router.delete("/api/songs/{song_id}", response_model=SongDeleteResult)
def delete_song(song_id: str, session: Session = Depends(get_session)):
    """セットで使用中の楽曲はアーカイブ、それ以外は削除"""
    service = SongAppService(session)
    with http_errors():
        return service.delete_song(song_id)
