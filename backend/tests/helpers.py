from domain.models.board import Board, LibrarySong, SetList, SetSong

def make_song(song_id: str, **kwargs) -> LibrarySong:
    return LibrarySong(id=song_id, title=kwargs.pop("title", song_id.upper()), artist="Artist", duration_seconds=100, **kwargs)

def make_board(*set_defs, names=None) -> Board:
    """set_defs: (set_id, [(instance_id, song_id), ...])"""
    library = tuple(make_song(s) for s in ("a", "b", "c", "d"))
    by_id = {s.id: s for s in library}
    sets = tuple(
        SetList(
            id=set_id,
            gig_id="gig",
            name=names[i] if names else f"Set {i + 1}",
            order_index=i,
            songs=tuple(SetSong.snapshot(by_id[song_id], instance_id=instance_id) for instance_id, song_id in songs),
        )
        for i, (set_id, songs) in enumerate(set_defs)
    )
    return Board(gig_id="gig", library=library, sets=sets)

def song_keys(board: Board, set_id: str):
    return [s.instance_id for s in board.get_set(set_id).songs]
