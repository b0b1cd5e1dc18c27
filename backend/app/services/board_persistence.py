"""
ボード変更の永続化 (楽観的・fire-and-forget)。

メモリ上の Board はリクエスト内で先に更新され、ここでの書き込みはレスポンス後に
FastAPI の BackgroundTasks として実行される。失敗はロールバックせず、ログと
SyncTracker にコレクション単位で記録する。
"""
import threading
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field
from sqlmodel import Session

from domain.constants import SETS_COLLECTION_ID
from domain.models.board import Board, SetList
from domain.services.collection_store import BoardDiff
from infra.database import connection as db_connection
from infra.repositories.setlist_repository import SetlistRepository
from utils.logger import get_logger, gig_logger

logger = get_logger(__name__)

class SyncStatus(str, Enum):
    SYNCED = "synced"
    PENDING = "pending"
    FAILED = "failed"

class CollectionSync(BaseModel):
    status: SyncStatus = SyncStatus.SYNCED
    last_error: Optional[str] = None
    updated_at: datetime = Field(default_factory=datetime.now)

class SyncTracker:
    """コレクション (セット id または "sets") ごとの同期状態"""

    def __init__(self):
        self._lock = threading.Lock()
        self._state: Dict[str, CollectionSync] = {}

    def mark_pending(self, collection_id: str):
        self._set(collection_id, SyncStatus.PENDING)

    def mark_synced(self, collection_id: str):
        self._set(collection_id, SyncStatus.SYNCED)

    def mark_failed(self, collection_id: str, error: str):
        self._set(collection_id, SyncStatus.FAILED, error)

    def forget(self, collection_id: str):
        with self._lock:
            self._state.pop(collection_id, None)

    def get(self, collection_id: str) -> CollectionSync:
        with self._lock:
            return self._state.get(collection_id, CollectionSync())

    def dirty(self) -> List[str]:
        with self._lock:
            return [cid for cid, s in self._state.items() if s.status != SyncStatus.SYNCED]

    def snapshot(self) -> Dict[str, CollectionSync]:
        with self._lock:
            return dict(self._state)

    def _set(self, collection_id: str, status: SyncStatus, error: Optional[str] = None):
        with self._lock:
            self._state[collection_id] = CollectionSync(status=status, last_error=error, updated_at=datetime.now())

class BoardPersistenceAdapter:
    """
    書き込みは常に current_board() が返す現在の Board から行う。
    バックグラウンドタスクの実行順が入れ替わっても、古いスナップショットで上書きしない。
    """
    def __init__(
        self,
        band_id: str,
        gig_id: str,
        tracker: SyncTracker,
        current_board: Callable[[], Board],
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.band_id = band_id
        self.gig_id = gig_id
        self.tracker = tracker
        self.current_board = current_board
        self.log = gig_logger(logger, gig_id)
        # テストでエンジンが差し替えられるため、呼び出し時に解決する
        self.session_factory = session_factory or (lambda: db_connection.new_session())

    # --- Port operations ---

    def persist_order(self, set_id: str):
        setlist = self.current_board().get_set(set_id)
        if setlist is None:
            self.delete_set(set_id)
            return
        rows = _membership_rows(setlist)
        self._run(set_id, "persist_order", lambda repo: repo.persist_order(set_id, rows))

    def delete_membership(self, set_id: str, instance_id: str):
        # 別のセットへ移動済み (または戻された) インスタンスは、所属先セットの保存で付け替える
        owner = self.current_board().set_containing(instance_id)
        if owner is not None:
            self.save_set(owner.id)
            return
        self._run(set_id, "delete_membership", lambda repo: repo.delete_membership(instance_id))

    def persist_set_sequence(self):
        ids = [s.id for s in self.current_board().sets]
        self._run(SETS_COLLECTION_ID, "persist_set_sequence", lambda repo: repo.persist_set_sequence(ids))

    def save_set(self, set_id: str):
        setlist = self.current_board().get_set(set_id)
        if setlist is None:
            # 既に削除されたセットを復活させない
            self.delete_set(set_id)
            return

        def write(repo: SetlistRepository):
            repo.save_set(
                setlist.id,
                self.band_id,
                setlist.gig_id or self.gig_id,
                setlist.name,
                setlist.status.value,
                setlist.order_index,
            )
            repo.persist_order(setlist.id, _membership_rows(setlist))
        self._run(set_id, "save_set", write)

    def delete_set(self, set_id: str):
        if self.current_board().get_set(set_id) is not None:
            self.save_set(set_id)
            return
        if self._run(set_id, "delete_set", lambda repo: repo.delete_set(set_id)):
            self.tracker.forget(set_id)

    # --- Diff application ---

    def mark_pending(self, diff: BoardDiff):
        for s in diff.changed_sets:
            self.tracker.mark_pending(s.id)
        for set_id in diff.removed_set_ids:
            self.tracker.mark_pending(set_id)
        for set_id, _ in diff.removed_instances:
            self.tracker.mark_pending(set_id)
        if diff.sequence_changed:
            self.tracker.mark_pending(SETS_COLLECTION_ID)

    def apply_diff(self, diff: BoardDiff):
        """
        差分が触れたコレクションを、削除 -> 行の削除 -> セット保存 -> セット順の順で書き込む。
        セット間で移動したインスタンスは移動先セットの保存で付け替えられる。
        """
        for set_id in diff.removed_set_ids:
            self.delete_set(set_id)
        for set_id, instance_id in diff.removed_instances:
            self.delete_membership(set_id, instance_id)
        for setlist in diff.changed_sets:
            self.save_set(setlist.id)
        if diff.sequence_changed:
            self.persist_set_sequence()

    def retry(self, collection_ids: Sequence[str]):
        """失敗・未同期のコレクションを現在のメモリ上の Board から書き直す"""
        for collection_id in collection_ids:
            if collection_id == SETS_COLLECTION_ID:
                self.persist_set_sequence()
            else:
                self.save_set(collection_id)

    def _run(self, collection_id: str, operation: str, write: Callable[[SetlistRepository], object]) -> bool:
        with db_connection.db_lock:
            try:
                with self.session_factory() as session:
                    write(SetlistRepository(session))
            except Exception as e:
                self.log.error(f"Persistence failed ({operation}) for {collection_id}: {e}")
                self.tracker.mark_failed(collection_id, str(e))
                return False
        self.tracker.mark_synced(collection_id)
        return True

def _membership_rows(setlist: SetList) -> List[Tuple[str, str, str]]:
    return [(s.instance_id, s.id, s.notes) for s in setlist.songs]
