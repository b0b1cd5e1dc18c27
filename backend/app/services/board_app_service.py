from typing import Any, Callable, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlmodel import Session

from config import settings
from domain.errors import LimitExceededError, NotFoundError, StoreSignal
from domain.models.board import Board, LibrarySong
from domain.services import collection_store as store
from domain.services.collection_store import StoreResult
from domain.services.derived_views import compute_usage, summarize_sets
from domain.services.drag_session import DragEnd, DragOver, DragStart
from infra.repositories.song_repository import SongRepository
from app.services.board_registry import BoardEntry, registry
from utils.logger import get_logger

logger = get_logger(__name__)

def board_view(entry: BoardEntry, board: Optional[Board] = None, signal: Optional[StoreSignal] = None) -> Dict[str, Any]:
    """
    Board とその派生ビュー (使用セット・重複・サマリー) をレスポンス用の dict にまとめる
    """
    board = board or entry.board
    usage = compute_usage(board)
    controller = entry.controller
    return {
        "gig_id": board.gig_id,
        "library": [s.model_dump() for s in board.library],
        "sets": [s.model_dump() for s in board.sets],
        "used_in": {song_id: [loc.model_dump() for loc in locs] for song_id, locs in usage.used_in.items()},
        "duplicate_song_ids": sorted(usage.duplicate_song_ids),
        "summaries": [s.model_dump() for s in summarize_sets(board)],
        "drag": {
            "state": controller.state.value,
            "active_item_id": controller.active.item_id if controller.active else None,
            "active_item_type": controller.active.item_type.value if controller.active else None,
        },
        "sync": {cid: s.model_dump(mode="json") for cid, s in entry.tracker.snapshot().items()},
        "signal": signal.value if signal else None,
    }

class BoardAppService:
    def __init__(self, session: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.session = session
        self.background_tasks = background_tasks
        self.registry = registry

    def get_board(self, gig_id: str) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            return board_view(entry)

    # --- Set operations ---

    def create_set(self, gig_id: str, name: Optional[str] = None) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.create_set(
            board, gig_id=gig_id, name=name, max_sets=settings.MAX_SETS_PER_GIG
        ))

    def clear_sets(self, gig_id: str) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.clear_sets(board, gig_id=gig_id))

    def update_set(self, gig_id: str, set_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.rename_or_retag(board, set_id, update), set_id=set_id)

    def delete_set(self, gig_id: str, set_id: str) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.delete_set(board, set_id), set_id=set_id)

    def duplicate_set(self, gig_id: str, set_id: str) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.duplicate_set(
            board, set_id, max_sets=settings.MAX_SETS_PER_GIG
        ), set_id=set_id)

    def reorder_sets(self, gig_id: str, from_index: int, to_index: int) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.move_within_collection(
            board, store.SETS_COLLECTION_ID, from_index, to_index
        ))

    # --- Set song operations ---

    def add_songs(self, gig_id: str, set_id: str, song_ids: List[str], index: Optional[int] = None) -> Dict[str, Any]:
        def mutate(board: Board) -> StoreResult:
            songs = [self._library_song(board, song_id) for song_id in song_ids]
            if index is None or index < 0:
                return store.insert_new_instances(board, set_id, songs)
            result = StoreResult(board)
            for offset, song in enumerate(songs):
                result = store.insert_new_instance(result.board, set_id, song, index + offset)
            return result
        return self._mutate(gig_id, mutate, set_id=set_id)

    def reorder_set_songs(self, gig_id: str, set_id: str, from_index: int, to_index: int) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.move_within_collection(
            board, set_id, from_index, to_index
        ), set_id=set_id)

    def update_note(self, gig_id: str, set_id: str, instance_id: str, notes: str) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.update_instance_note(
            board, set_id, instance_id, notes
        ), set_id=set_id)

    def remove_song(self, gig_id: str, set_id: str, instance_id: str) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.remove_from_collection(
            board, set_id, instance_id
        ), set_id=set_id)

    def move(self, gig_id: str, source_id: str, target_id: str, item_id: str, target_index: Optional[int] = None) -> Dict[str, Any]:
        return self._mutate(gig_id, lambda board: store.move_between_collections(
            board, source_id, target_id, item_id, target_index
        ))

    def sync_song(self, gig_id: str, song_id: str) -> Dict[str, Any]:
        """ライブラリの最新の楽曲情報を、このギグのセット内スナップショットへ反映する"""
        song = SongRepository(self.session).get_by_id(song_id)
        if song is None:
            raise NotFoundError(f"Song not found: {song_id}")
        return self._mutate(gig_id, lambda board: store.sync_song_into_sets(board, LibrarySong.from_record(song)))

    # --- Drag session ---

    def drag_start(self, gig_id: str, event: DragStart) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            started = entry.controller.start(entry.board, event)
            view = board_view(entry, entry.controller.preview)
            view["started"] = started
            return view

    def drag_over(self, gig_id: str, event: DragOver) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            preview = entry.controller.over(event)
            return board_view(entry, preview)

    def drag_end(self, gig_id: str, event: DragEnd) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            outcome = entry.controller.end(event)
            if outcome.board is not None:
                self._commit(entry, outcome.board)
            return board_view(entry, signal=outcome.signal)

    def drag_cancel(self, gig_id: str) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            outcome = entry.controller.cancel()
            return board_view(entry, signal=outcome.signal)

    # --- Sync ---

    def retry_sync(self, gig_id: str) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            dirty = entry.tracker.dirty()
            if dirty:
                logger.info(f"Retrying persistence for gig {gig_id}: {dirty}")
                self._schedule(entry.persistence.retry, dirty)
            view = board_view(entry)
            view["retried"] = dirty
            return view

    # --- Helpers ---

    def _mutate(
        self,
        gig_id: str,
        mutate: Callable[[Board], StoreResult],
        set_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        with self.registry.lock:
            entry = self.registry.get(self.session, gig_id)
            if set_id is not None and entry.board.get_set(set_id) is None:
                raise NotFoundError(f"Set not found: {set_id}")

            # 直接の編集は進行中のドラッグを取り消す
            entry.interrupt_drag()

            result = mutate(entry.board)
            if result.signal == StoreSignal.LIMIT_EXCEEDED:
                raise LimitExceededError(settings.MAX_SETS_PER_GIG)

            self._commit(entry, result.board)
            return board_view(entry, signal=result.signal)

    def _commit(self, entry: BoardEntry, board: Board):
        diff = entry.commit(board)
        if not diff.is_empty:
            self._schedule(entry.persistence.apply_diff, diff)

    def _schedule(self, func: Callable, *args):
        if self.background_tasks is not None:
            self.background_tasks.add_task(func, *args)
        else:
            func(*args)

    def _library_song(self, board: Board, song_id: str) -> LibrarySong:
        song = board.library_song(song_id)
        if song is None:
            raise NotFoundError(f"Song not found in library: {song_id}")
        return song
