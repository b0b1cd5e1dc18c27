from typing import Optional, List, Dict, NamedTuple
from enum import Enum
from pydantic import BaseModel

from domain.constants import (
    DRAG_ACTIVATION_DISTANCE,
    NON_DRAGGABLE_TAGS,
    NO_DND_ATTRIBUTE,
    SETS_COLLECTION_ID,
    DragItemType,
    DropTargetType,
)
from domain.errors import StoreSignal
from domain.models.board import Board, SetList
from domain.services import collection_store as store

class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESOLVING = "resolving"

# --- Input events ---

class PointerTarget(BaseModel):
    tag: str
    attributes: Dict[str, str] = {}

class DragStart(BaseModel):
    item_id: str
    item_type: DragItemType
    source_collection_id: Optional[str] = None
    # ポインタが押された要素から祖先方向への経路 (先頭が押下された要素)
    path: List[PointerTarget] = []
    # 押下位置からの移動量 (px)。None はクライアント側で閾値判定済み
    distance: Optional[float] = None

class DragOver(BaseModel):
    item_id: str
    over_id: Optional[str] = None
    over_type: Optional[DropTargetType] = None

class DragEnd(BaseModel):
    item_id: str
    over_id: Optional[str] = None
    over_type: Optional[DropTargetType] = None

class DragOutcome(NamedTuple):
    # None は確定すべき変更がないことを示す
    board: Optional[Board]
    signal: Optional[StoreSignal] = None

class DragActivator:
    """
    インライン操作 (削除・再生・編集ボタン等) からのドラッグ開始を防ぎ、
    クリックとドラッグを移動距離で区別する。
    """
    def __init__(self, distance: float = DRAG_ACTIVATION_DISTANCE):
        self.distance = distance

    def is_interactive(self, target: PointerTarget) -> bool:
        return target.tag.lower() in NON_DRAGGABLE_TAGS or NO_DND_ATTRIBUTE in target.attributes

    def should_activate(self, event: DragStart) -> bool:
        if any(self.is_interactive(t) for t in event.path):
            return False
        return event.distance is None or event.distance > self.distance

class DragSessionController:
    """
    Idle -> Dragging -> Resolving -> Idle の状態機械。
    ホバー中の移動は preview にのみ適用し、確定 (drop) まで元の Board には触れない。
    """
    def __init__(self, activator: Optional[DragActivator] = None):
        self.activator = activator or DragActivator()
        self.state = DragState.IDLE
        self.active: Optional[DragStart] = None
        self.origin: Optional[Board] = None
        self.preview: Optional[Board] = None

    @property
    def is_dragging(self) -> bool:
        return self.state == DragState.DRAGGING

    def start(self, board: Board, event: DragStart) -> bool:
        if self.is_dragging:
            self.cancel()

        if not self.activator.should_activate(event):
            return False
        if not self._item_exists(board, event):
            return False

        self.active = event
        self.origin = board
        self.preview = board
        self.state = DragState.DRAGGING
        return True

    def over(self, event: DragOver) -> Optional[Board]:
        if not self._is_active_item(event.item_id) or event.over_id is None:
            return self.preview

        if self.active.item_type == DragItemType.SET_SONG:
            self.preview, _ = self._move_across_sets(self.preview, event.over_id, event.over_type)
        return self.preview

    def end(self, event: DragEnd) -> DragOutcome:
        if not self._is_active_item(event.item_id):
            return DragOutcome(None, StoreSignal.NOT_FOUND)

        self.state = DragState.RESOLVING
        try:
            if event.over_id is None:
                return DragOutcome(self.origin, StoreSignal.INVALID_DROP_TARGET)
            return self._resolve_drop(event)
        finally:
            self._reset()

    def cancel(self) -> DragOutcome:
        """進行中のドラッグを破棄し、開始前の Board を返す"""
        if not self.is_dragging:
            return DragOutcome(None)
        origin = self.origin
        self._reset()
        return DragOutcome(origin, StoreSignal.INVALID_DROP_TARGET)

    # --- Drop resolution ---

    def _resolve_drop(self, event: DragEnd) -> DragOutcome:
        item_type = self.active.item_type
        board = self.preview

        if item_type == DragItemType.SET_COLUMN:
            if event.over_type != DropTargetType.SET_COLUMN or event.over_id == event.item_id:
                return DragOutcome(board)
            old_index = board.set_index(event.item_id)
            new_index = board.set_index(event.over_id)
            if new_index == -1 or old_index == -1:
                return DragOutcome(board, StoreSignal.NOT_FOUND)
            return DragOutcome(*store.move_within_collection(board, SETS_COLLECTION_ID, old_index, new_index))

        if item_type == DragItemType.SET_SONG:
            board, moved = self._move_across_sets(board, event.over_id, event.over_type)
            if moved or event.over_type != DropTargetType.SET_SONG or event.over_id == event.item_id:
                return DragOutcome(board)

            current = board.set_containing(event.item_id)
            if current is None:
                return DragOutcome(board, StoreSignal.NOT_FOUND)
            new_index = store.index_of(current.songs, event.over_id)
            if new_index == -1:
                return DragOutcome(board)
            old_index = store.index_of(current.songs, event.item_id)
            return DragOutcome(*store.move_within_collection(board, current.id, old_index, new_index))

        # LIBRARY_SONG: 新しいインスタンスを生成して挿入。ライブラリからは取り除かない
        song = board.library_song(event.item_id)
        if song is None:
            return DragOutcome(board, StoreSignal.NOT_FOUND)
        target = self._target_set(board, event.over_id, event.over_type)
        if target is None:
            return DragOutcome(board)
        index = self._target_index(target, event.over_id, event.over_type)
        return DragOutcome(*store.insert_new_instance(board, target.id, song, index))

    def _move_across_sets(self, board: Board, over_id: str, over_type: Optional[DropTargetType]):
        current = board.set_containing(self.active.item_id)
        target = self._target_set(board, over_id, over_type)
        if current is None or target is None or current.id == target.id:
            return board, False

        index = self._target_index(target, over_id, over_type)
        result = store.move_between_collections(board, current.id, target.id, self.active.item_id, index)
        return result.board, result.ok

    def _target_set(self, board: Board, over_id: str, over_type: Optional[DropTargetType]) -> Optional[SetList]:
        if over_type == DropTargetType.SET_SONG:
            return board.set_containing(over_id)
        if over_type in (DropTargetType.SET, DropTargetType.SET_COLUMN):
            return board.get_set(over_id)
        return None

    def _target_index(self, target: SetList, over_id: str, over_type: Optional[DropTargetType]) -> Optional[int]:
        if over_type == DropTargetType.SET_SONG:
            idx = store.index_of(target.songs, over_id)
            return idx if idx != -1 else None
        return None

    # --- Helpers ---

    def _item_exists(self, board: Board, event: DragStart) -> bool:
        if event.item_type == DragItemType.SET_SONG:
            return board.set_containing(event.item_id) is not None
        if event.item_type == DragItemType.SET_COLUMN:
            return board.get_set(event.item_id) is not None
        return board.library_song(event.item_id) is not None

    def _is_active_item(self, item_id: str) -> bool:
        return self.is_dragging and self.active is not None and self.active.item_id == item_id

    def _reset(self):
        self.state = DragState.IDLE
        self.active = None
        self.origin = None
        self.preview = None
