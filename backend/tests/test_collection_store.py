import pytest
from collections import Counter

from domain.constants import LIBRARY_COLLECTION_ID, SETS_COLLECTION_ID, SetStatus
from domain.errors import StoreSignal
from domain.models.board import Board
from domain.services import collection_store as store
from helpers import make_board, make_song, song_keys

@pytest.fixture
def board() -> Board:
    return make_board(
        ("s1", [("i1", "a"), ("i2", "b"), ("i3", "c")]),
        ("s2", [("i4", "d")]),
    )

def test_reorders_set(board):
    result = store.move_within_collection(board, "s1", 0, 2)
    assert result.ok
    assert song_keys(result.board, "s1") == ["i2", "i3", "i1"]

def test_same_index_is_identity(board):
    result = store.move_within_collection(board, "s1", 1, 1)
    assert result.board is board

def test_untouched_collections_keep_identity(board):
    result = store.move_within_collection(board, "s1", 0, 1)
    assert result.board.get_set("s2") is board.get_set("s2")
    assert result.board.library is board.library

def test_indices_are_clamped(board):
    result = store.move_within_collection(board, "s1", -5, 99)
    assert song_keys(result.board, "s1") == ["i2", "i3", "i1"]

def test_unknown_or_empty_collection_is_noop(board):
    empty = store.create_set(board).board
    new_set_id = empty.sets[-1].id
    assert store.move_within_collection(board, "missing", 0, 1).signal == StoreSignal.NOT_FOUND
    result = store.move_within_collection(empty, new_set_id, 0, 1)
    assert result.signal == StoreSignal.NOT_FOUND
    assert result.board is empty

def test_reorders_library(board):
    result = store.move_within_collection(board, LIBRARY_COLLECTION_ID, 3, 0)
    assert [s.id for s in result.board.library] == ["d", "a", "b", "c"]

def test_reorders_set_sequence_and_rewrites_order_index(board):
    result = store.move_within_collection(board, SETS_COLLECTION_ID, 0, 1)
    assert [s.id for s in result.board.sets] == ["s2", "s1"]
    assert [s.order_index for s in result.board.sets] == [0, 1]

def test_mixed_sequence_conserves_instances(board):
    """
    任意の操作列の後: 現在のインスタンス + 削除されたもの == 元のインスタンス + 新規に挿入されたもの
    """
    steps = [
        # (操作, 削除される instance id, 新規インスタンス数)
        (lambda b: store.move_within_collection(b, "s1", 0, 2), [], 0),
        (lambda b: store.move_between_collections(b, "s1", "s2", "i2", 0), [], 0),
        (lambda b: store.move_between_collections(b, LIBRARY_COLLECTION_ID, "s1", "d", 1), [], 1),
        (lambda b: store.move_between_collections(b, "s2", LIBRARY_COLLECTION_ID, "i4"), ["i4"], 0),
        (lambda b: store.remove_from_collection(b, "s1", "i3"), ["i3"], 0),
        (lambda b: store.insert_new_instance(b, "s2", b.library_song("a")), [], 1),
        (lambda b: store.move_between_collections(b, "s1", "s2", "i1", 99), [], 0),
        (lambda b: store.insert_new_instances(b, "s1", [b.library_song("b"), b.library_song("c")]), [], 2),
        (lambda b: store.move_within_collection(b, "s2", 2, 0), [], 0),
        (lambda b: store.remove_from_collection(b, "s2", "missing"), [], 0),
    ]

    current = board
    removed, inserted = Counter(), Counter()
    for operation, removed_ids, new_count in steps:
        after = operation(current).board
        added = Counter(after.instance_ids()) - Counter(current.instance_ids())
        assert sum(added.values()) == new_count
        inserted.update(added)
        removed.update(removed_ids)
        current = after

    assert Counter(current.instance_ids()) + removed == Counter(board.instance_ids()) + inserted
    assert len(set(current.instance_ids())) == len(current.instance_ids())

def test_moves_instance_and_preserves_fields(board):
    before = board.get_set("s1").songs[1]
    result = store.move_between_collections(board, "s1", "s2", "i2", 0)
    assert song_keys(result.board, "s1") == ["i1", "i3"]
    assert song_keys(result.board, "s2") == ["i2", "i4"]
    assert result.board.get_set("s2").songs[0] == before

def test_total_count_is_preserved(board):
    result = store.move_between_collections(board, "s1", "s2", "i1")
    assert len(result.board.instance_ids()) == len(board.instance_ids())
    assert sorted(result.board.instance_ids()) == sorted(board.instance_ids())

@pytest.mark.parametrize("index", [None, -1, 99])
def test_appends_when_index_missing_negative_or_out_of_range(board, index):
    result = store.move_between_collections(board, "s1", "s2", "i1", index)
    assert song_keys(result.board, "s2") == ["i4", "i1"]

def test_same_collection_degrades_to_reorder(board):
    result = store.move_between_collections(board, "s1", "s1", "i1", 1)
    assert song_keys(result.board, "s1") == ["i2", "i1", "i3"]

def test_library_to_set_creates_new_instance(board):
    result = store.move_between_collections(board, LIBRARY_COLLECTION_ID, "s2", "a", 0)
    added = result.board.get_set("s2").songs[0]
    assert added.id == "a"
    assert added.instance_id not in board.instance_ids()
    assert added.notes == ""
    assert result.board.library is board.library

def test_set_to_library_removes_instance(board):
    result = store.move_between_collections(board, "s1", LIBRARY_COLLECTION_ID, "i1")
    assert song_keys(result.board, "s1") == ["i2", "i3"]
    assert result.board.library is board.library

def test_unknown_item_is_soft_miss(board):
    result = store.move_between_collections(board, "s1", "s2", "nope")
    assert result.signal == StoreSignal.NOT_FOUND
    assert result.board is board

def test_sets_collection_is_not_a_move_target(board):
    result = store.move_between_collections(board, "s1", SETS_COLLECTION_ID, "i1")
    assert result.signal == StoreSignal.NOT_FOUND

def test_insert_new_instance_at_index(board):
    result = store.insert_new_instance(board, "s1", board.library_song("d"), 1)
    songs = result.board.get_set("s1").songs
    assert [s.id for s in songs] == ["a", "d", "b", "c"]

def test_insert_new_instances_appends_in_order(board):
    result = store.insert_new_instances(board, "s2", [board.library_song("a"), board.library_song("a")])
    songs = result.board.get_set("s2").songs
    assert [s.id for s in songs] == ["d", "a", "a"]
    assert songs[1].instance_id != songs[2].instance_id

def test_remove_from_collection(board):
    result = store.remove_from_collection(board, "s1", "i2")
    assert song_keys(result.board, "s1") == ["i1", "i3"]
    assert store.remove_from_collection(board, "s1", "missing").signal == StoreSignal.NOT_FOUND

def test_update_instance_note(board):
    result = store.update_instance_note(board, "s1", "i3", "capo 2")
    assert result.board.get_set("s1").songs[2].notes == "capo 2"
    assert result.board.get_set("s2") is board.get_set("s2")

def test_create_set_names_and_appends(board):
    result = store.create_set(board)
    created = result.board.sets[-1]
    assert created.name == "Set 3"
    assert created.status == SetStatus.DRAFT
    assert created.order_index == 2

def test_fifth_set_accepted_sixth_rejected():
    board = make_board(*[(f"s{i}", []) for i in range(4)])
    fifth = store.create_set(board, max_sets=5)
    assert fifth.ok
    assert len(fifth.board.sets) == 5

    sixth = store.create_set(fifth.board, max_sets=5)
    assert sixth.signal == StoreSignal.LIMIT_EXCEEDED
    assert sixth.board is fifth.board

def test_delete_set_reindexes(board):
    result = store.delete_set(board, "s1")
    assert [(s.id, s.order_index) for s in result.board.sets] == [("s2", 0)]

def test_duplicate_set_inserts_copy_after_source(board):
    result = store.duplicate_set(board, "s1")
    copy = result.board.sets[1]
    assert copy.name == "Set 1 (Copy)"
    assert [s.id for s in copy.songs] == ["a", "b", "c"]
    assert not set(song_keys(result.board, copy.id)) & set(board.instance_ids())
    assert [s.order_index for s in result.board.sets] == [0, 1, 2]

def test_duplicate_set_respects_cap(board):
    assert store.duplicate_set(board, "s1", max_sets=2).signal == StoreSignal.LIMIT_EXCEEDED

def test_rename_or_retag(board):
    result = store.rename_or_retag(board, "s2", {"name": "Encore", "status": "Final"})
    renamed = result.board.get_set("s2")
    assert renamed.name == "Encore"
    assert renamed.status == SetStatus.FINAL
    assert renamed.songs is board.get_set("s2").songs

def test_clear_sets_recreates_default(board):
    result = store.clear_sets(board, gig_id="gig")
    assert [s.name for s in result.board.sets] == ["Set 1"]
    assert result.board.sets[0].songs == ()

def test_upsert_does_not_touch_snapshots(board):
    edited = make_song("a", title="Renamed")
    result = store.upsert_library_song(board, edited)
    assert result.board.library_song("a").title == "Renamed"
    assert result.board.get_set("s1").songs[0].title == "A"
    assert result.board.sets is board.sets

def test_sync_projects_edit_into_sets(board):
    board = store.update_instance_note(board, "s1", "i1", "keep me").board
    result = store.sync_song_into_sets(board, make_song("a", title="Renamed"))
    synced = result.board.get_set("s1").songs[0]
    assert synced.title == "Renamed"
    assert synced.instance_id == "i1"
    assert synced.notes == "keep me"
    assert result.board.get_set("s2") is board.get_set("s2")

def test_no_change_is_empty(board):
    assert store.diff_boards(board, board).is_empty

def test_cross_set_move_marks_both_sets(board):
    after = store.move_between_collections(board, "s1", "s2", "i1").board
    diff = store.diff_boards(board, after)
    assert {s.id for s in diff.changed_sets} == {"s1", "s2"}
    assert diff.removed_instances == ()
    assert not diff.sequence_changed

def test_removed_instance_and_set(board):
    after = store.remove_from_collection(board, "s1", "i2").board
    after = store.delete_set(after, "s2").board
    diff = store.diff_boards(board, after)
    assert diff.removed_instances == (("s1", "i2"),)
    assert diff.removed_set_ids == ("s2",)
    assert diff.sequence_changed
