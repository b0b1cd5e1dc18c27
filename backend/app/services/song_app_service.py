import json
from typing import Any, Dict, List

from sqlmodel import Session

from domain.constants import LIBRARY_COLLECTION_ID, PracticeStatus, SongStatus
from domain.errors import DuplicateSongError, NotFoundError
from domain.models.board import LibrarySong
from domain.models.song import Song, new_id
from domain.services import collection_store as store
from infra.repositories.gig_repository import BandRepository
from infra.repositories.setlist_repository import SetlistRepository
from infra.repositories.song_repository import SongRepository
from api.schemas.songs import SongBulkItem, SongCreate, SongUpdate
from app.services.board_registry import registry
from utils.logger import get_logger

logger = get_logger(__name__)

def song_to_dict(song: Song) -> Dict[str, Any]:
    data = song.model_dump(exclude={"links_json"})
    data["links"] = song.links
    return data

class SongAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = SongRepository(session)
        self.band_repository = BandRepository(session)
        self.setlist_repository = SetlistRepository(session)

    def get_songs(self, band_id: str, include_archived: bool = False) -> List[Dict[str, Any]]:
        self._require_band(band_id)
        return [song_to_dict(s) for s in self.repository.find_by_band(band_id, include_archived)]

    def create_song(self, band_id: str, data: SongCreate) -> Dict[str, Any]:
        self._require_band(band_id)
        if self.repository.find_duplicate(band_id, data.title, data.artist):
            raise DuplicateSongError(data.title, data.artist)

        values = data.model_dump(mode="json", exclude={"links"})
        song = Song(band_id=band_id, links_json=json.dumps(data.links), **values)
        song = self.repository.save(song)
        self._refresh_library(song)
        return song_to_dict(song)

    def bulk_upsert(self, band_id: str, rows: List[SongBulkItem], reactivate: bool = False) -> List[Dict[str, Any]]:
        """
        CSV 等からの一括登録。id が一致する楽曲はマージし、それ以外は新しい id で追加する。
        重複チェックは行わない。
        """
        self._require_band(band_id)
        songs = []
        for row in rows:
            existing = self.repository.get_by_id(row.id) if row.id else None
            if existing is not None and existing.band_id == band_id:
                if reactivate:
                    existing.status = SongStatus.ACTIVE.value
                self._apply(existing, row.model_dump(exclude={"id"}, exclude_unset=True))
                songs.append(existing)
                continue

            song = Song(
                id=new_id(),
                band_id=band_id,
                title=row.title or "",
                artist=row.artist or "",
                rating=0,
                practice_status=PracticeStatus.PRACTICE.value,
                status=SongStatus.ACTIVE.value,
            )
            self._apply(song, row.model_dump(exclude={"id"}, exclude_unset=True))
            songs.append(song)

        saved = self.repository.save_all(songs)
        for song in saved:
            self._refresh_library(song)
        logger.info(f"Bulk upserted {len(saved)} songs for band {band_id}")
        return [song_to_dict(s) for s in saved]

    def update_song(self, song_id: str, data: SongUpdate) -> Dict[str, Any]:
        song = self._require_song(song_id)
        updates = data.model_dump(exclude_unset=True)
        title = updates.get("title") or song.title
        artist = updates.get("artist") or song.artist
        if ("title" in updates or "artist" in updates) and self.repository.find_duplicate(
            song.band_id, title, artist, exclude_id=song.id
        ):
            raise DuplicateSongError(title, artist)

        self._apply(song, updates)
        song = self.repository.save(song)
        self._refresh_library(song)
        return song_to_dict(song)

    def delete_song(self, song_id: str) -> Dict[str, Any]:
        """
        セットで使用中ならアーカイブ、未使用なら削除する
        """
        song = self._require_song(song_id)
        return {"ok": True, "archived": self._archive_or_delete(song)}

    def clear_library(self, band_id: str) -> Dict[str, Any]:
        """
        バンドのライブラリを空にする。セットで使用中の楽曲はアーカイブとして残す。
        """
        self._require_band(band_id)
        archived = deleted = 0
        for song in self.repository.find_by_band(band_id, include_archived=True):
            if self._archive_or_delete(song):
                archived += 1
            else:
                deleted += 1
        logger.info(f"Cleared library for band {band_id}: {deleted} deleted, {archived} archived")
        return {"ok": True, "archived": archived, "deleted": deleted}

    def replace_library(self, band_id: str, rows: List[SongBulkItem]) -> List[Dict[str, Any]]:
        """
        ライブラリを rows で置き換える。アーカイブとして残った楽曲と id が一致する行は再び有効化する。
        """
        self.clear_library(band_id)
        return self.bulk_upsert(band_id, rows, reactivate=True)

    # --- Helpers ---

    def _apply(self, song: Song, values: Dict[str, Any]):
        for key, value in values.items():
            if key == "links":
                song.links_json = json.dumps(value or [])
            elif hasattr(value, "value"):
                setattr(song, key, value.value)
            elif value is not None or key == "video_url":
                setattr(song, key, value)

    def _archive_or_delete(self, song: Song) -> bool:
        """
        DB 上のセットに加え、未保存の変更を持つ読み込み済みボードも使用中として扱う。
        アーカイブした場合は True。
        """
        with registry.lock:
            in_use = (
                self.setlist_repository.count_song_usage(song.id) > 0
                or registry.song_in_use(song.band_id, song.id)
            )
            if in_use:
                if song.status != SongStatus.ARCHIVED.value:
                    song.status = SongStatus.ARCHIVED.value
                    song = self.repository.save(song)
                    self._refresh_library(song)
                return True

            self.repository.delete(song)
            self._drop_from_library(song.band_id, song.id)
            return False

    def _refresh_library(self, song: Song):
        """
        読み込み済みボードのライブラリのみ更新する (セット内スナップショットは変更しない)
        """
        if song.status == SongStatus.ARCHIVED.value:
            self._drop_from_library(song.band_id, song.id)
            return
        library_song = LibrarySong.from_record(song)
        registry.update_band_boards(song.band_id, lambda board: store.upsert_library_song(board, library_song).board)

    def _drop_from_library(self, band_id: str, song_id: str):
        registry.update_band_boards(
            band_id, lambda board: store.remove_from_collection(board, LIBRARY_COLLECTION_ID, song_id).board
        )

    def _require_band(self, band_id: str):
        if self.band_repository.get_by_id(band_id) is None:
            raise NotFoundError(f"Band not found: {band_id}")

    def _require_song(self, song_id: str) -> Song:
        song = self.repository.get_by_id(song_id)
        if song is None:
            raise NotFoundError(f"Song not found: {song_id}")
        return song
