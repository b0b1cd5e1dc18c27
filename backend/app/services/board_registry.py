"""
ギグごとに読み込んだ Board・ドラッグコントローラ・同期状態を保持するプロセス全体のレジストリ。
ボードの変更とドラッグの状態遷移はすべて単一の RLock の下で直列化される。
"""
import threading
from typing import Callable, Dict, Optional

from sqlmodel import Session

from config import settings
from domain.errors import NotFoundError
from domain.models.board import Board, LibrarySong, SetList, SetSong
from domain.services.collection_store import BoardDiff, diff_boards
from domain.services.drag_session import DragActivator, DragSessionController
from infra.repositories.gig_repository import GigRepository
from infra.repositories.setlist_repository import SetlistRepository
from infra.repositories.song_repository import SongRepository
from app.services.board_persistence import BoardPersistenceAdapter, SyncTracker
from utils.logger import get_logger, gig_logger

logger = get_logger(__name__)

class BoardEntry:
    def __init__(self, band_id: str, gig_id: str, board: Board):
        self.band_id = band_id
        self.gig_id = gig_id
        self.board = board
        self.controller = DragSessionController(DragActivator(settings.DRAG_ACTIVATION_DISTANCE))
        self.tracker = SyncTracker()
        # 書き込み時点のボードを参照させる (古いスナップショットで上書きしないため)
        self.persistence = BoardPersistenceAdapter(band_id, gig_id, self.tracker, current_board=lambda: self.board)

    def commit(self, board: Board) -> BoardDiff:
        """
        新しい Board を確定し、永続化が必要な差分を返す。
        """
        diff = diff_boards(self.board, board)
        self.board = board
        if not diff.is_empty:
            self.persistence.mark_pending(diff)
        return diff

    def interrupt_drag(self):
        """
        ドラッグ開始時の Board を元に drop されると、その間の変更が巻き戻るため取り消す
        """
        if self.controller.is_dragging:
            self.controller.cancel()

class BoardRegistry:
    def __init__(self):
        self.lock = threading.RLock()
        self._entries: Dict[str, BoardEntry] = {}

    def get(self, session: Session, gig_id: str) -> BoardEntry:
        with self.lock:
            entry = self._entries.get(gig_id)
            if entry is None:
                entry = self._load(session, gig_id)
                self._entries[gig_id] = entry
            return entry

    def peek(self, gig_id: str) -> Optional[BoardEntry]:
        """読み込み済みの場合のみ返す (DB からは読まない)"""
        with self.lock:
            return self._entries.get(gig_id)

    def loaded(self):
        with self.lock:
            return list(self._entries.values())

    def update_band_boards(self, band_id: str, mutate: Callable[[Board], Board]):
        """
        バンドの読み込み済みボードすべてに変更を適用する (ライブラリ編集用)。
        進行中のドラッグは取り消す。
        """
        with self.lock:
            for entry in self._entries.values():
                if entry.band_id == band_id:
                    entry.interrupt_drag()
                    entry.commit(mutate(entry.board))

    def song_in_use(self, band_id: str, song_id: str) -> bool:
        """未保存の変更も含め、読み込み済みボードのいずれかのセットに置かれているか"""
        with self.lock:
            return any(
                entry.board.has_instance_of(song_id)
                for entry in self._entries.values()
                if entry.band_id == band_id
            )

    def evict(self, gig_id: str):
        with self.lock:
            self._entries.pop(gig_id, None)

    def clear(self):
        with self.lock:
            self._entries.clear()

    def _load(self, session: Session, gig_id: str) -> BoardEntry:
        gig = GigRepository(session).get_by_id(gig_id)
        if gig is None:
            raise NotFoundError(f"Gig not found: {gig_id}")

        library = tuple(
            LibrarySong.from_record(song)
            for song in SongRepository(session).find_by_band(gig.band_id)
        )

        setlist_repository = SetlistRepository(session)
        sets = []
        for setlist in setlist_repository.find_by_gig(gig_id):
            songs = tuple(
                SetSong.snapshot(LibrarySong.from_record(song), instance_id=row.id, notes=row.notes or "")
                for row, song in setlist_repository.get_set_songs(setlist.id)
            )
            sets.append(SetList(
                id=setlist.id,
                gig_id=setlist.gig_id,
                name=setlist.name,
                status=setlist.status,
                order_index=len(sets),
                songs=songs,
            ))

        gig_logger(logger, gig_id).info(f"Loaded board: {len(library)} songs, {len(sets)} sets")
        return BoardEntry(gig.band_id, gig_id, Board(gig_id=gig_id, library=library, sets=tuple(sets)))

registry = BoardRegistry()
