"""
ライブラリと複数セットの順序付きコレクションに対する純粋な操作群。
すべての操作は新しい Board を返し、変更されなかったコレクションは同一オブジェクトのまま残す。
"""
from typing import Optional, Tuple, Sequence, Mapping, Any, NamedTuple, List, Iterable

from domain.constants import (
    LIBRARY_COLLECTION_ID,
    SETS_COLLECTION_ID,
    MAX_SETS_PER_GIG,
    DEFAULT_SET_NAME,
    COPY_SUFFIX,
    SetStatus,
)
from domain.errors import StoreSignal
from domain.models.board import Board, LibrarySong, SetSong, SetList, new_instance_id

class StoreResult(NamedTuple):
    board: Board
    signal: Optional[StoreSignal] = None

    @property
    def ok(self) -> bool:
        return self.signal is None

class BoardDiff(NamedTuple):
    changed_sets: Tuple[SetList, ...]
    removed_set_ids: Tuple[str, ...]
    # (set_id, instance_id)
    removed_instances: Tuple[Tuple[str, str], ...]
    sequence_changed: bool

    @property
    def is_empty(self) -> bool:
        return not (self.changed_sets or self.removed_set_ids or self.removed_instances or self.sequence_changed)

# --- Sequence helpers ---

def array_move(items: Sequence[Any], from_index: int, to_index: int) -> Tuple[Any, ...]:
    moved = list(items)
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return tuple(moved)

def index_of(items: Sequence[Any], key: str) -> int:
    return next((i for i, item in enumerate(items) if item.key == key), -1)

def _clamp(index: int, length: int) -> int:
    return max(0, min(index, length - 1))

def _insert(items: Sequence[Any], item: Any, index: Optional[int] = None) -> Tuple[Any, ...]:
    # index 省略・負数・範囲外は末尾に追加
    inserted = list(items)
    if index is None or index < 0 or index >= len(inserted):
        inserted.append(item)
    else:
        inserted.insert(index, item)
    return tuple(inserted)

def _without(items: Sequence[Any], index: int) -> Tuple[Any, ...]:
    return tuple(items[:index]) + tuple(items[index + 1:])

def _reindex(sets: Iterable[SetList]) -> Tuple[SetList, ...]:
    return tuple(
        s if s.order_index == i else s.model_copy(update={"order_index": i})
        for i, s in enumerate(sets)
    )

def _get_collection(board: Board, collection_id: str) -> Optional[Tuple[Any, ...]]:
    if collection_id == LIBRARY_COLLECTION_ID:
        return board.library
    if collection_id == SETS_COLLECTION_ID:
        return board.sets
    target = board.get_set(collection_id)
    return target.songs if target else None

def _replace_collection(board: Board, collection_id: str, items: Tuple[Any, ...]) -> Board:
    if collection_id == LIBRARY_COLLECTION_ID:
        return board.model_copy(update={"library": items})
    if collection_id == SETS_COLLECTION_ID:
        return board.model_copy(update={"sets": _reindex(items)})
    return _replace_set_songs(board, collection_id, items)

def _replace_set(board: Board, set_index: int, new_set: SetList) -> Board:
    sets = list(board.sets)
    sets[set_index] = new_set
    return board.model_copy(update={"sets": tuple(sets)})

def _replace_set_songs(board: Board, set_id: str, songs: Tuple[SetSong, ...]) -> Board:
    idx = board.set_index(set_id)
    return _replace_set(board, idx, board.sets[idx].model_copy(update={"songs": songs}))

# --- Item operations ---

def move_within_collection(board: Board, collection_id: str, from_index: int, to_index: int) -> StoreResult:
    """
    同一コレクション内の安定した配列移動。インデックスは範囲内に丸める。
    """
    items = _get_collection(board, collection_id)
    if not items:
        return StoreResult(board, StoreSignal.NOT_FOUND)

    from_index = _clamp(from_index, len(items))
    to_index = _clamp(to_index, len(items))
    if from_index == to_index:
        return StoreResult(board)

    return StoreResult(_replace_collection(board, collection_id, array_move(items, from_index, to_index)))

def move_between_collections(
    board: Board,
    source_id: str,
    target_id: str,
    item_id: str,
    target_index: Optional[int] = None,
) -> StoreResult:
    """
    source から item_id を取り除き target の target_index に挿入する。
    ライブラリ -> セットの場合は新しい SetSong を生成し、ライブラリは変更しない。
    セット -> ライブラリの場合はセットから取り除くだけ。
    """
    if source_id == target_id:
        items = _get_collection(board, source_id)
        if items is None:
            return StoreResult(board, StoreSignal.NOT_FOUND)
        from_index = index_of(items, item_id)
        if from_index == -1:
            return StoreResult(board, StoreSignal.NOT_FOUND)
        to_index = len(items) - 1 if target_index is None or target_index < 0 else target_index
        return move_within_collection(board, source_id, from_index, to_index)

    if SETS_COLLECTION_ID in (source_id, target_id):
        return StoreResult(board, StoreSignal.NOT_FOUND)

    if source_id == LIBRARY_COLLECTION_ID:
        song = board.library_song(item_id)
        if song is None:
            return StoreResult(board, StoreSignal.NOT_FOUND)
        return insert_new_instance(board, target_id, song, target_index)

    if target_id == LIBRARY_COLLECTION_ID:
        return remove_from_collection(board, source_id, item_id)

    source_idx = board.set_index(source_id)
    target_idx = board.set_index(target_id)
    if source_idx == -1 or target_idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)

    source = board.sets[source_idx]
    target = board.sets[target_idx]
    song_idx = index_of(source.songs, item_id)
    if song_idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)

    sets = list(board.sets)
    sets[source_idx] = source.model_copy(update={"songs": _without(source.songs, song_idx)})
    sets[target_idx] = target.model_copy(update={"songs": _insert(target.songs, source.songs[song_idx], target_index)})
    return StoreResult(board.model_copy(update={"sets": tuple(sets)}))

def remove_from_collection(board: Board, collection_id: str, item_id: str) -> StoreResult:
    if collection_id == SETS_COLLECTION_ID:
        return delete_set(board, item_id)

    items = _get_collection(board, collection_id)
    if items is None:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    idx = index_of(items, item_id)
    if idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    return StoreResult(_replace_collection(board, collection_id, _without(items, idx)))

def insert_new_instance(
    board: Board,
    target_set_id: str,
    song: LibrarySong,
    at_index: Optional[int] = None,
) -> StoreResult:
    target = board.get_set(target_set_id)
    if target is None:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    instance = SetSong.snapshot(song)
    return StoreResult(_replace_set_songs(board, target_set_id, _insert(target.songs, instance, at_index)))

def insert_new_instances(board: Board, target_set_id: str, songs: Sequence[LibrarySong]) -> StoreResult:
    target = board.get_set(target_set_id)
    if target is None:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    if not songs:
        return StoreResult(board)
    added = tuple(SetSong.snapshot(song) for song in songs)
    return StoreResult(_replace_set_songs(board, target_set_id, target.songs + added))

def update_instance_note(board: Board, set_id: str, instance_id: str, note: str) -> StoreResult:
    target = board.get_set(set_id)
    if target is None:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    idx = index_of(target.songs, instance_id)
    if idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    songs = list(target.songs)
    songs[idx] = songs[idx].model_copy(update={"notes": note or ""})
    return StoreResult(_replace_set_songs(board, set_id, tuple(songs)))

# --- Set operations ---

def rename_or_retag(board: Board, set_id: str, update: Mapping[str, Any]) -> StoreResult:
    idx = board.set_index(set_id)
    if idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)

    changes = {}
    if update.get("name") is not None:
        changes["name"] = update["name"]
    if update.get("status") is not None:
        changes["status"] = SetStatus(update["status"])
    if not changes:
        return StoreResult(board)

    return StoreResult(_replace_set(board, idx, board.sets[idx].model_copy(update=changes)))

def create_set(
    board: Board,
    gig_id: Optional[str] = None,
    name: Optional[str] = None,
    set_id: Optional[str] = None,
    max_sets: int = MAX_SETS_PER_GIG,
) -> StoreResult:
    if len(board.sets) >= max_sets:
        return StoreResult(board, StoreSignal.LIMIT_EXCEEDED)

    new_set = SetList(
        id=set_id or new_instance_id(),
        gig_id=gig_id or board.gig_id,
        name=name or DEFAULT_SET_NAME.format(number=len(board.sets) + 1),
        status=SetStatus.DRAFT,
        order_index=len(board.sets),
    )
    return StoreResult(board.model_copy(update={"sets": board.sets + (new_set,)}))

def delete_set(board: Board, set_id: str) -> StoreResult:
    idx = board.set_index(set_id)
    if idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    return StoreResult(board.model_copy(update={"sets": _reindex(_without(board.sets, idx))}))

def duplicate_set(board: Board, set_id: str, max_sets: int = MAX_SETS_PER_GIG) -> StoreResult:
    idx = board.set_index(set_id)
    if idx == -1:
        return StoreResult(board, StoreSignal.NOT_FOUND)
    if len(board.sets) >= max_sets:
        return StoreResult(board, StoreSignal.LIMIT_EXCEEDED)

    source = board.sets[idx]
    copy = SetList(
        id=new_instance_id(),
        gig_id=source.gig_id,
        name=f"{source.name}{COPY_SUFFIX}",
        status=SetStatus.DRAFT,
        order_index=idx + 1,
        songs=tuple(s.model_copy(update={"instance_id": new_instance_id()}) for s in source.songs),
    )
    sets = board.sets[:idx + 1] + (copy,) + board.sets[idx + 1:]
    return StoreResult(board.model_copy(update={"sets": _reindex(sets)}))

def clear_sets(board: Board, gig_id: Optional[str] = None) -> StoreResult:
    """
    全セットを削除し、既定の "Set 1" を作り直す
    """
    cleared = board.model_copy(update={"sets": ()})
    return create_set(cleared, gig_id=gig_id)

# --- Library operations ---

def upsert_library_song(board: Board, song: LibrarySong) -> StoreResult:
    """
    ライブラリのエントリのみ更新する。既存の SetSong スナップショットには反映しない。
    """
    idx = index_of(board.library, song.id)
    if idx == -1:
        return StoreResult(board.model_copy(update={"library": board.library + (song,)}))
    library = list(board.library)
    library[idx] = song
    return StoreResult(board.model_copy(update={"library": tuple(library)}))

def sync_song_into_sets(board: Board, song: LibrarySong) -> StoreResult:
    """
    ライブラリ側の編集を既存の SetSong スナップショットへ明示的に投影する (一方向)。
    instance_id と notes は保持する。
    """
    board = upsert_library_song(board, song).board
    fields = song.song_fields()

    sets = []
    for s in board.sets:
        if any(item.id == song.id for item in s.songs):
            songs = tuple(
                item.model_copy(update=fields) if item.id == song.id else item
                for item in s.songs
            )
            sets.append(s.model_copy(update={"songs": songs}))
        else:
            sets.append(s)
    return StoreResult(board.model_copy(update={"sets": tuple(sets)}))

# --- Change detection ---

def diff_boards(before: Board, after: Board) -> BoardDiff:
    """
    同一性 (is) の比較で、永続化が必要なセットと削除されたインスタンスを求める
    """
    before_sets = {s.id: s for s in before.sets}
    after_ids = {s.id for s in after.sets}

    changed: List[SetList] = [s for s in after.sets if before_sets.get(s.id) is not s]
    removed_set_ids = tuple(sid for sid in before_sets if sid not in after_ids)

    surviving = set(after.instance_ids())
    removed_instances = tuple(
        (s.id, song.instance_id)
        for s in before.sets if s.id in after_ids
        for song in s.songs if song.instance_id not in surviving
    )

    sequence_changed = [s.id for s in before.sets] != [s.id for s in after.sets]
    return BoardDiff(tuple(changed), removed_set_ids, removed_instances, sequence_changed)
