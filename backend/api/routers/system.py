from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from sqlalchemy import func
import duckdb

from infra.database.connection import get_session
from infra.database.schema import get_current_schema_version
from models import Band, Gig, Song, Setlist, SetlistSong
from domain.constants import SongStatus
from app.services.board_registry import registry

router = APIRouter()

@router.get("/api/")
def health_check(session: Session = Depends(get_session)):
    return {
        "status": "ok",
        "duckdb_version": duckdb.__version__,
        "schema_version": get_current_schema_version(session.connection()),
        "loaded_boards": len(registry.loaded()),
    }

@router.get("/api/dashboard")
def get_dashboard_stats(session: Session = Depends(get_session)):
    """
    ダッシュボード表示用の件数を一括取得する。
    """
    total_songs = session.exec(select(func.count()).select_from(Song)).one()
    archived_songs = session.exec(
        select(func.count()).select_from(Song).where(Song.status == SongStatus.ARCHIVED.value)
    ).one()

    return {
        "total_bands": session.exec(select(func.count()).select_from(Band)).one(),
        "total_songs": total_songs,
        "active_songs": total_songs - archived_songs,
        "archived_songs": archived_songs,
        "total_gigs": session.exec(select(func.count()).select_from(Gig)).one(),
        "total_sets": session.exec(select(func.count()).select_from(Setlist)).one(),
        "placed_instances": session.exec(select(func.count()).select_from(SetlistSong)).one(),
    }
